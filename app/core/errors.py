from __future__ import annotations

from typing import Any


class ValidationError(Exception):
    """
    Raised for malformed or out-of-range caller input.
    Carries every offending field, not just the first one found.
    """

    def __init__(self, errors: list[dict[str, Any]]):
        self.errors = errors
        fields = ", ".join(str(e["field"]) for e in errors)
        super().__init__(f"invalid input: {fields}")

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class NotFoundError(Exception):
    pass


class StoreError(Exception):
    """The record store was unreachable or a query failed."""
