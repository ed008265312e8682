"""Error taxonomy for the bookkeeping core.

Services catch these and convert them into failed result objects;
they never cross the application boundary as raised exceptions.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failed operation, carried on result objects."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    PERSISTENCE = "persistence"


class TradebackError(Exception):
    """Base class for all bookkeeping errors."""

    kind: ErrorKind = ErrorKind.VALIDATION


class NotFoundError(TradebackError):
    """Raised when a referenced backtest, stock, strategy, position or trade is missing."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class TradeValidationError(TradebackError):
    """Raised when a trade or record fails validation (oversell, missing fields, ...)."""

    kind = ErrorKind.VALIDATION


class PersistenceError(TradebackError):
    """Raised when a store operation fails or returns no result."""

    kind = ErrorKind.PERSISTENCE


class SnapshotError(TradebackError):
    """Raised when snapshot text cannot be parsed or validated."""

    kind = ErrorKind.VALIDATION
