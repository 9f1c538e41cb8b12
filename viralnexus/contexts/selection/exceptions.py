"""Custom exceptions for the selection context."""

from typing import Any, Optional


class InvalidRecordError(ValueError):
    """
    Exception raised when a content record cannot be read as a structured record.

    The selector absorbs this and answers with the invalid-input placeholder,
    so it only escapes from direct calls to ContentRecord.from_dict().

    Attributes:
        message: Error description
        received_type: Name of the type that was supplied instead of a mapping
    """

    def __init__(self, message: str, received: Any = None):
        self.message = message
        self.received_type = type(received).__name__
        super().__init__(f"{message} (got {self.received_type})")


class SelectorConfigError(ValueError):
    """
    Exception raised when selector configuration is invalid.

    Attributes:
        message: Error description
        key: Offending configuration key, when known
    """

    def __init__(self, message: str, key: Optional[str] = None):
        self.message = message
        self.key = key
        parts = [message]
        if key:
            parts.append(f"Key: {key}")
        super().__init__("\n".join(parts))
