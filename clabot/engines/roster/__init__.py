"""Signer roster engine — loads the CLA signer e-mail set."""

from clabot.engines.roster.roster import SignerRoster, parse_roster_csv

__all__ = ["SignerRoster", "parse_roster_csv"]
