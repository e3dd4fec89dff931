"""Exception taxonomy shared by the persistence layer and its consumers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .validation import ErrorMessage


class ProgrammingError(Exception):
    """A developer defect. Never caught and absorbed by the persistence layer."""


class UnknownPropertyError(ProgrammingError):
    def __init__(self, property_name: str) -> None:
        super().__init__(f"Unexpected property '{property_name}' requested.")
        self.property_name = property_name


class SchemaDefinitionError(ProgrammingError):
    """Raised when a persistent class declares an inconsistent schema."""


class NotPersistedError(ProgrammingError):
    """Raised when an operation needs a stored row but the instance has no id."""


class InvalidPersistentError(Exception):
    """Raised by create/update when the instance does not validate."""

    def __init__(self, errors: Dict[str, "ErrorMessage"]) -> None:
        self.errors = dict(errors)
        detail = ", ".join(f"{name}: {message}" for name, message in self.errors.items())
        super().__init__(f"Invalid persistent data ({detail})" if detail else "Invalid persistent data")


class RecordNotFoundError(LookupError):
    def __init__(self, table: str, record_id: int) -> None:
        super().__init__(f"No record with id {record_id} in table '{table}'.")
        self.table = table
        self.record_id = record_id


__all__ = [
    "InvalidPersistentError",
    "NotPersistedError",
    "ProgrammingError",
    "RecordNotFoundError",
    "SchemaDefinitionError",
    "UnknownPropertyError",
]
