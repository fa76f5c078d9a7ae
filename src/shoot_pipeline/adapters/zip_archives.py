"""ZIP archive adapters built on zipfile."""

import io
import zipfile
import zlib
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from shoot_pipeline.services.archives import (
    ArchiveEntry,
    ArchiveReader,
    ArchiveWriter,
)


@dataclass
class ZipArchiveWriter(ArchiveWriter):
    """Deflate-compressed ZIP writer."""

    compresslevel: int = 6

    def build(self, entries: Iterable[tuple[str, bytes]]) -> bytes:
        """Return the finalized archive bytes."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(
            buffer,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self.compresslevel,
        ) as archive:
            for name, data in entries:
                archive.writestr(name, data)
        return buffer.getvalue()


@dataclass
class ZipArchiveReader(ArchiveReader):
    """Reads members of an in-memory ZIP, isolating per-member failures.

    ``max_entry_bytes`` bounds the decompressed size of a single member; larger
    members come back with an ``error`` instead of content.
    """

    max_entry_bytes: int | None = None

    def read_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
        """Yield every member; raises ``ValueError`` if the archive is unreadable."""
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as exc:
            raise ValueError(f"Invalid ZIP archive: {exc}") from exc
        with archive:
            for info in archive.infolist():
                if info.is_dir():
                    yield ArchiveEntry(name=info.filename, is_directory=True)
                    continue
                if self._too_large(info.file_size):
                    yield self._oversized(info.filename)
                    continue
                try:
                    content = self._read(archive, info)
                except (zipfile.BadZipFile, zlib.error, OSError) as exc:
                    yield ArchiveEntry(
                        name=info.filename, is_directory=False, error=str(exc)
                    )
                    continue
                if self._too_large(len(content)):
                    yield self._oversized(info.filename)
                    continue
                yield ArchiveEntry(
                    name=info.filename, is_directory=False, content=content
                )

    def _read(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
        if self.max_entry_bytes is None:
            return archive.read(info)
        # Header sizes can lie; never inflate more than one byte past the cap.
        with archive.open(info) as member:
            return member.read(self.max_entry_bytes + 1)

    def _too_large(self, size: int) -> bool:
        return self.max_entry_bytes is not None and size > self.max_entry_bytes

    def _oversized(self, name: str) -> ArchiveEntry:
        return ArchiveEntry(
            name=name,
            is_directory=False,
            error=f"Entry exceeds {self.max_entry_bytes} bytes",
        )
