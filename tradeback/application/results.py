"""Result objects returned across the application boundary.

Application services never raise bookkeeping errors at their callers;
they return a result whose ``error`` is a human-readable message and
whose ``error_kind`` tells the caller what went wrong.
"""

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import ValidationError

from tradeback.domain.exceptions import ErrorKind, TradebackError

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """Result of a catalog or backtest operation."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: Exception, log: logging.Logger | None = None) -> "ServiceResult[T]":
        message, kind = describe_error(error)
        if log is not None:
            log.warning("%s", message)
        return cls(success=False, error=message, error_kind=kind)


def describe_error(error: Exception) -> tuple[str, ErrorKind]:
    """Map an exception to a message and an error kind.

    Anything that is neither a bookkeeping error nor a validation error
    came from the store and is reported as a persistence failure.
    """
    if isinstance(error, TradebackError):
        return str(error), error.kind
    if isinstance(error, ValidationError):
        return format_validation_error(error), ErrorKind.VALIDATION
    return f"store operation failed: {error}", ErrorKind.PERSISTENCE


def format_validation_error(error: ValidationError) -> str:
    """One-line summary of a pydantic validation error."""
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"]) or "input"
        parts.append(f"{location}: {item['msg']}")
    return "invalid input: " + "; ".join(parts)
