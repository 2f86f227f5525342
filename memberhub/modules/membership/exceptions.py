"""Business operation failures.

Raised before any collection is written, so a failed operation never leaves
the cache half-updated.
"""


class MembershipError(Exception):
    """Base class for membership business errors."""


class NotFoundError(MembershipError, LookupError):
    """A referenced member, card type or record does not exist."""

    def __init__(self, entity: str, identifier: str) -> None:
        super().__init__(f"{entity} not found: {identifier}")
        self.entity = entity
        self.identifier = identifier


class ValidationError(MembershipError, ValueError):
    """The operation's input is malformed or violates a business rule."""
