from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class ArpolarError(Exception):
    message: str
    code: int

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class UsageError(ArpolarError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 2)


class ValidationError(ArpolarError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 3)


class IOErrorWithCode(ArpolarError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 5)


class PayloadTooLargeError(ArpolarError):
    """Raised when a stored value does not fit the storage quota."""

    def __init__(self, message: str, *, size: int = 0, limit: int = 0) -> None:
        super().__init__(message, 7)
        self.size = size
        self.limit = limit
