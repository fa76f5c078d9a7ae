"""Archive capability ports."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ArchiveEntry:
    """One member of an opened archive.

    ``content`` is ``None`` when the member could not be read; ``error`` then
    describes why.
    """

    name: str
    is_directory: bool
    content: bytes | None = None
    error: str | None = None


class ArchiveWriter(Protocol):
    """Builds an archive from named byte payloads."""

    def build(self, entries: Iterable[tuple[str, bytes]]) -> bytes:
        """Return the finalized archive bytes, entries in the given order."""


class ArchiveReader(Protocol):
    """Opens an archive held in memory."""

    def read_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
        """Yield every member; raises ``ValueError`` if the archive is unreadable."""
