"""EXIF extraction for uploaded frames."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from shoot_pipeline.domain.filenames import exposure_token

logger = logging.getLogger(__name__)

_EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
_DATE_TAGS = ("EXIF DateTimeOriginal", "Image DateTime")
_EXPOSURE_BIAS_TAG = "EXIF ExposureBiasValue"


class ExifDecoder(Protocol):
    """Capability interface over a third-party EXIF library."""

    def decode(self, data: bytes) -> dict[str, object]:
        """Return tag values keyed by ``"<IFD> <TagName>"``."""


@dataclass(frozen=True)
class ExifData:
    """Normalized EXIF values relevant to stacking."""

    capture_timestamp: int | None = None
    exposure_value: str | None = None


@dataclass
class ExifService:
    """Extracts capture time and exposure bias, degrading to empty results."""

    decoder: ExifDecoder

    def extract(self, data: bytes) -> ExifData:
        """Read capture timestamp (epoch ms) and exposure token from image bytes."""
        try:
            tags = self.decoder.decode(data)
        except Exception:  # noqa: BLE001
            logger.warning("EXIF decode failed for %d bytes", len(data))
            return ExifData()

        timestamp = None
        for tag in _DATE_TAGS:
            timestamp = parse_exif_timestamp(tags.get(tag))
            if timestamp is not None:
                break
        return ExifData(
            capture_timestamp=timestamp,
            exposure_value=_exposure_from_bias(tags.get(_EXPOSURE_BIAS_TAG)),
        )


def parse_exif_timestamp(value: object) -> int | None:
    """Convert ``YYYY:MM:DD HH:MM:SS`` into epoch milliseconds (UTC)."""
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.strptime(value.strip(), _EXIF_DATE_FORMAT)
    except ValueError:
        return None
    return int(parsed.replace(tzinfo=UTC).timestamp() * 1000)


def _exposure_from_bias(value: object) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        bias = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if bias != bias:  # NaN
        return None
    return exposure_token(bias)
