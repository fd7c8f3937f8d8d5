from __future__ import annotations


class IqraError(Exception):
    """Base class for every error the records core raises."""


class ValidationError(IqraError):
    """An add operation received missing or unusable input.

    Raised before the store is touched, so the store is left unchanged.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class SchemaError(IqraError):
    """A snapshot could not be decoded into the four-collection shape."""
