"""Error type raised by every fleet engine operation."""

from enum import Enum


class ErrorCode(Enum):
    """Machine-readable failure categories surfaced to callers."""

    # Validation
    INVALID_TIME = "INVALID_TIME"
    INVALID_READING = "INVALID_READING"
    INVALID_INTERVAL = "INVALID_INTERVAL"
    INVALID_INPUT = "INVALID_INPUT"
    # Lookup
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE = "DUPLICATE"
    # Invariant violations
    ALREADY_OPEN = "ALREADY_OPEN"
    NOT_OPEN = "NOT_OPEN"
    NON_MONOTONIC = "NON_MONOTONIC"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    ALREADY_CLOSED = "ALREADY_CLOSED"
    NOT_COMPLETED = "NOT_COMPLETED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    OUT_OF_ORDER = "OUT_OF_ORDER"
    # Authorization
    FORBIDDEN = "FORBIDDEN"
    REASON_TOO_SHORT = "REASON_TOO_SHORT"


class FleetError(Exception):
    """A rejected operation. The fleet state is left unchanged."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"
