"""clabot — reconcile pull request CLA labels against a signer roster."""

__version__ = "1.0.0"
