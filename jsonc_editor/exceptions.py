"""Package-specific exception types."""

from __future__ import annotations


class EditError(ValueError):
    """Base class for editing-related errors.

    Most editing functions degrade to returning their input unchanged; the
    subclasses below cover the cases where no meaningful text can be produced.
    """


class SerializationError(EditError):
    """Raised when a value cannot be serialized as JSON.

    Args:
        key: Key the value was meant to be stored under.
    """

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Cannot serialize value for {key!r}: {reason}")


class StaleItemError(EditError):
    """Raised when an item scanned from an older document version is reused.

    Args:
        item_generation: Generation the item was scanned at.
        document_generation: Current generation of the document.
    """

    def __init__(self, item_generation: int | None, document_generation: int):
        self.item_generation = item_generation
        self.document_generation = document_generation
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return (
            f"Item was scanned at generation {self.item_generation} but the document "
            f"is at generation {self.document_generation}; re-scan before editing"
        )


class JsoncDecodeError(EditError):
    """Raised when JSONC text cannot be decoded.

    Args:
        message: Description of the decoding failure.
        line: One-based line number of the failure.
        column: One-based column number of the failure.
    """

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"{message} (line {line}, column {column})")


class StorageError(OSError):
    """Raised when a config file cannot be read or written safely."""
