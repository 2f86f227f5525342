"""Account domain specific exceptions."""


class AccountError(Exception):
    """Base class for account domain errors."""


class InvalidCredentialsError(AccountError):
    """Raised when the username is unknown or the password does not match."""


class AccountDisabledError(AccountError):
    """Raised when a matching account is not active."""


class AccountNotFoundError(AccountError):
    """Raised when the requested account cannot be found."""
