"""Collection store specific exceptions."""


class CollectionError(Exception):
    """Base class for collection store errors."""


class CollectionNotRegisteredError(CollectionError):
    """Raised when a collection name is outside the enumerated set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Collection {name} is not registered")
        self.name = name


class InvalidCollectionPayloadError(CollectionError):
    """Raised when a payload is neither an array nor an object."""
