"""Result types shared by services and the blob store contract."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Classification of a failed operation."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"
    PACKAGING = "packaging"
    TOKEN = "token"
    DECODE = "decode"
    INTERNAL = "internal"


@dataclass(frozen=True)
class StorageResult(Generic[T]):
    """Explicit ok/error outcome of a blob store call."""

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "StorageResult[T]":
        """Build a successful result."""
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "StorageResult[T]":
        """Build a failed result."""
        return cls(ok=False, error=error)
