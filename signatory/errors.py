"""Exceptions raised while configuring a signer or signing a request."""


class SigningError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(SigningError, ValueError):
    """The signer was built from missing or malformed inputs."""


class MalformedInput(SigningError, ValueError):
    """A request URL or timestamp could not be parsed."""


class DateScopeMismatch(SigningError, ValueError):
    """The request timestamp falls on a different day than the credential scope."""

    def __init__(self, timestamp: str, scope_date: str) -> None:
        super().__init__(f'Invalid request timestamp {timestamp} for scope date {scope_date}')
        self.timestamp = timestamp
        self.scope_date = scope_date
