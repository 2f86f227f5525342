"""Account module exports."""

from .exceptions import AccountDisabledError, AccountError, AccountNotFoundError, InvalidCredentialsError
from .service import AccountService

__all__ = [
    "AccountDisabledError",
    "AccountError",
    "AccountNotFoundError",
    "AccountService",
    "InvalidCredentialsError",
]
