"""Service-level failures.

Services raise these; ``main.py`` turns them into HTTP responses.
"""
from typing import List


class StorefrontError(Exception):
    """Base class for all storefront errors."""


class InvalidInputError(StorefrontError):
    """One or more request constraints were violated."""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class ResourceNotFoundError(StorefrontError):
    """A referenced order or product does not exist."""

    def __init__(self, resource: str, resource_id: int):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found with id: {resource_id}")


class PersistenceError(StorefrontError):
    """The store could not complete an atomic write."""
