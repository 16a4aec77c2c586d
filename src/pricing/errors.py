"""
Error taxonomy for the pricing core.

- InvalidInput: the request is malformed or out of range. Callers surface it
  to the user (HTTP 400) with the offending field.
- UnknownClauseType: the catalog was handed a value outside ClauseType.
  That is a programming error, not a user-facing condition.
"""

from __future__ import annotations

from typing import Any, Optional


class QuoteEngineError(Exception):
    pass


class InvalidInput(QuoteEngineError, ValueError):
    def __init__(self, message: str, field: Optional[str] = None, value: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "field": self.field}


class UnknownClauseType(QuoteEngineError, LookupError):
    def __init__(self, value: Any) -> None:
        super().__init__(f"Unknown clause type: {value!r}")
        self.value = value
