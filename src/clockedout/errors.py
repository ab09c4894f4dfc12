"""Error taxonomy for parsing, validation, storage, and workflow failures.

Every error carries a short ``user_message`` and an optional ``recovery_hint``
for display. Program logic must branch on the exception class, never on these
strings.
"""

from __future__ import annotations

from typing import Optional, Sequence


class ClockedOutError(Exception):
    """Base class for all ClockedOut errors."""

    user_message: str = "Something went wrong."
    recovery_hint: Optional[str] = None

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)


# =============================================================================
# Parsing
# =============================================================================


class ParseError(ClockedOutError, ValueError):
    """Raised when CSV content or a value inside it cannot be interpreted."""

    user_message = "The CSV file could not be parsed."


class InvalidFormat(ParseError):
    user_message = "The CSV file format is invalid."
    recovery_hint = "Please ensure the file is a valid CSV file."

    def __init__(self, details: str) -> None:
        self.details = details
        super().__init__(f"Invalid CSV format: {details}")


class MissingColumns(ParseError):
    user_message = "The CSV file is missing required columns."
    recovery_hint = (
        "The CSV must contain a 'Time Tracked' column and a 'Start' or 'Start Text' column."
    )

    def __init__(self, columns: Sequence[str]) -> None:
        self.columns = list(columns)
        super().__init__(f"Missing required columns: {', '.join(self.columns)}")


class DateParseError(ParseError):
    """A timestamp could not be turned into an absolute instant."""

    user_message = "Some dates in the CSV file could not be parsed."


class InvalidDate(DateParseError):
    recovery_hint = "Please check that dates are in the format 'MM/dd/yyyy, h:mm:ss a zzz'."

    def __init__(self, value: str, details: str = "No supported format matched") -> None:
        self.value = value
        self.details = details
        super().__init__(f"Invalid date format: {value}. {details}")


class TimezoneConversionFailed(DateParseError):
    user_message = "Could not convert timezone information."
    recovery_hint = "Please check that timezone information is present in the date strings."

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Failed to convert timezone for date: {value}")


class InvalidTime(ParseError):
    user_message = "Some time values in the CSV file are invalid."
    recovery_hint = "Please check that time values are valid numbers."

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid time value: {value}")


class EmptyFile(ParseError):
    user_message = "The CSV file is empty."
    recovery_hint = "Please select a CSV file that contains data."

    def __init__(self) -> None:
        super().__init__("The CSV file is empty")


class FileReadError(ParseError):
    user_message = "Could not read the CSV file."
    recovery_hint = (
        "Please check that the file is not corrupted and you have permission to read it."
    )

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to read file {path}: {reason}")


# =============================================================================
# Validation
# =============================================================================


class ValidationError(ClockedOutError, ValueError):
    """Raised when user-supplied numbers are out of bounds."""

    user_message = "The value is invalid."


class InvalidRate(ValidationError):
    user_message = "The hourly rate is invalid."
    recovery_hint = "Please enter a valid number for the hourly rate."

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid rate value: {value}")


class NegativeValue(ValidationError):
    recovery_hint = "Please enter a positive number."

    def __init__(self, field: str) -> None:
        self.field = field
        self.user_message = f"{field} cannot be negative."
        super().__init__(f"{field} cannot be negative")


class ZeroValue(ValidationError):
    recovery_hint = "Please enter a value greater than zero."

    def __init__(self, field: str) -> None:
        self.field = field
        self.user_message = f"{field} cannot be zero."
        super().__init__(f"{field} cannot be zero")


class OutOfRange(ValidationError):
    def __init__(self, field: str, minimum: float, maximum: float) -> None:
        self.field = field
        self.minimum = minimum
        self.maximum = maximum
        self.user_message = f"{field} is out of the allowed range."
        self.recovery_hint = f"Please enter a value between {minimum} and {maximum}."
        super().__init__(f"{field} must be between {minimum} and {maximum}")


# =============================================================================
# Storage
# =============================================================================


class StorageError(ClockedOutError, RuntimeError):
    """Raised when the database cannot complete an operation."""

    user_message = "Database operation failed."


class MigrationFailed(StorageError):
    user_message = "Database update failed."
    recovery_hint = "Please try restarting the application. If the problem persists, contact support."

    def __init__(self, version: str, reason: str) -> None:
        self.version = version
        super().__init__(f"Migration {version} failed: {reason}")


class QueryFailed(StorageError):
    user_message = "Could not retrieve data from the database."
    recovery_hint = "Please try again. If the problem persists, the database may be corrupted."

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        super().__init__(f"Query failed: {operation}. Error: {reason}")


class ConstraintViolation(StorageError):
    user_message = "Data validation failed."
    recovery_hint = "Please check that all required fields are filled correctly."

    def __init__(self, details: str) -> None:
        self.details = details
        super().__init__(f"Database constraint violation: {details}")


class ConnectionFailed(StorageError):
    user_message = "Could not connect to the database."
    recovery_hint = "Please try restarting the application."

    def __init__(self, reason: str) -> None:
        super().__init__(f"Database connection failed: {reason}")


class TransactionFailed(StorageError):
    recovery_hint = "Please try the operation again."

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        super().__init__(f"Transaction failed during {operation}: {reason}")


class RecordNotFound(StorageError):
    user_message = "The requested record was not found."
    recovery_hint = "The data may have been deleted. Please refresh the view."

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Record not found: {identifier}")


class WeeklySummaryWriteFailed(TransactionFailed):
    """The monthly row was stored but its weekly breakdown was not.

    The month's weekly rows still reflect the previous import (or are absent).
    Retrying only the weekly step restores consistency.
    """

    user_message = "The monthly total was saved but the weekly breakdown was not."
    recovery_hint = "Retry the import to rebuild the weekly breakdown."

    def __init__(self, month_key: str, month_id: int, reason: str) -> None:
        self.month_key = month_key
        self.month_id = month_id
        super().__init__(f"weekly summaries for {month_key} (month id {month_id})", reason)


# =============================================================================
# Workflow
# =============================================================================


class WorkflowStateError(ClockedOutError, RuntimeError):
    """An import workflow operation was called in the wrong state."""

    user_message = "The import cannot continue from its current step."
    recovery_hint = "Load the CSV file again."


__all__ = [
    "ClockedOutError",
    "ConnectionFailed",
    "ConstraintViolation",
    "DateParseError",
    "EmptyFile",
    "FileReadError",
    "InvalidDate",
    "InvalidFormat",
    "InvalidRate",
    "InvalidTime",
    "MigrationFailed",
    "MissingColumns",
    "NegativeValue",
    "OutOfRange",
    "ParseError",
    "QueryFailed",
    "RecordNotFound",
    "StorageError",
    "TimezoneConversionFailed",
    "TransactionFailed",
    "ValidationError",
    "WeeklySummaryWriteFailed",
    "WorkflowStateError",
    "ZeroValue",
]
