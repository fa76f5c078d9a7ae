"""EXIF decoder backed by exifread."""

import io
from dataclasses import dataclass

import exifread

from shoot_pipeline.services.exif import ExifDecoder

_STRING_TAGS = ("EXIF DateTimeOriginal", "Image DateTime")
_RATIO_TAGS = ("EXIF ExposureBiasValue",)


@dataclass
class ExifReadDecoder(ExifDecoder):
    """Reads the tags the intake needs from RAW and JPEG byte buffers."""

    stop_tag: str = "UNDEF"

    def decode(self, data: bytes) -> dict[str, object]:
        """Return printable dates and numeric exposure bias."""
        tags = exifread.process_file(
            io.BytesIO(data), details=False, stop_tag=self.stop_tag
        )
        result: dict[str, object] = {}
        for name in _STRING_TAGS:
            tag = tags.get(name)
            if tag is not None:
                result[name] = str(tag.printable).strip()
        for name in _RATIO_TAGS:
            tag = tags.get(name)
            if tag is not None and tag.values:
                result[name] = _ratio_to_float(tag.values[0])
        return result


def _ratio_to_float(value: object) -> float:
    numerator = getattr(value, "num", None)
    denominator = getattr(value, "den", None)
    if numerator is not None and denominator:
        return numerator / denominator
    return float(value)  # type: ignore[arg-type]
