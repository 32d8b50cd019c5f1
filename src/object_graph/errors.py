"""
Errors raised by object graph stores.
"""


class StoreError(Exception):
    """Base class for every failure reported by a store."""


class ObjectNotFound(StoreError, KeyError):
    """The store holds no object (or no commit) with the requested identifier."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return Exception.__str__(self)


class BadRevision(StoreError, ValueError):
    """A revision string is malformed, ambiguous or names a non-commit."""


class CorruptObject(StoreError):
    """Stored bytes do not decode or do not match their identifier."""
