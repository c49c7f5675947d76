"""Custom exceptions for clabot."""


class ClaBotError(Exception):
    """Base exception for all clabot errors."""


class ConfigurationMissing(ClaBotError):
    """Raised when required settings are absent or malformed."""

    def __init__(self, keys: list[str], detail: str | None = None):
        self.keys = keys
        message = f"missing required configuration: {', '.join(keys)}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class SourceUnavailable(ClaBotError):
    """Raised when a GitHub listing, label, patch or comment call fails."""


class RateLimitError(SourceUnavailable):
    """Raised when GitHub rate limit is still exhausted after waiting."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limit exceeded, retry after {retry_after}s")


class RosterUnavailable(ClaBotError):
    """Raised when the signer roster cannot be read or is malformed."""


class EmailNotFound(ClaBotError):
    """Raised when a PR patch has no parsable ``From:`` authorship line."""

    def __init__(self, number: int):
        self.number = number
        super().__init__(f"no author email found in patch of PR #{number}")
