from typing import List, Optional


class StorefrontError(Exception):
    """Base class for storefront domain errors."""


class ValidationError(StorefrontError, ValueError):
    """Order input rejected at the store boundary.

    ``errors`` holds one message per problem so the caller can fix the
    request in a single round trip.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class InvalidArgument(StorefrontError, TypeError):
    """Malformed input handed to the analytics aggregator."""


class NotFoundError(StorefrontError, LookupError):
    def __init__(self, entity: str, identifier, detail: Optional[str] = None):
        self.entity = entity
        self.identifier = identifier
        super().__init__(detail or f"{entity} {identifier} not found")
