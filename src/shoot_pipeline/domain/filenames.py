"""Filename schemas for raw intake, editor delivery and capture devices.

Three schemas are supported and never cross-validated:

* raw/handoff: ``{date}-{shoot}_{room}_{index}_g{stack}_e{ev}.{ext}``
* delivery: ``{date}-{shoot}_{room}_{index}_v{version}.{ext}``
* capture device upload: ``{PP}{date}_{job}_{shoot}_{ROOM}_g{NNN}_e{ev}.{ext}``

Encoders never fail and fall back to sentinel values. Decoders return ``None``
for anything that does not match, since legacy and attacker-controlled names
are expected.
"""

import math
import re
from dataclasses import dataclass
from datetime import date
from pathlib import PurePosixPath
from typing import Protocol
from uuid import UUID

from shoot_pipeline.domain.models import StackRecord
from shoot_pipeline.domain.rooms import (
    DEFAULT_ROOM_TYPE,
    filename_slug,
    room_type_from_code,
    room_type_from_slug,
)

RAW_FILE_EXTENSIONS: tuple[str, ...] = (
    ".cr3",
    ".nef",
    ".raf",
    ".arw",
    ".dng",
    ".rw2",
    ".orf",
    ".crw",
    ".cr2",
)
DELIVERY_IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png")
UPLOAD_IMAGE_EXTENSIONS: tuple[str, ...] = (
    RAW_FILE_EXTENSIONS + DELIVERY_IMAGE_EXTENSIONS + (".tif", ".tiff")
)
MAX_FILENAME_LENGTH = 255

_RAW_PATTERN = re.compile(
    r"^(?P<date>\d{8})-(?P<shoot_code>[A-Za-z0-9]{5})_(?P<room_type>\w+?)"
    r"_(?P<index>\d{3})_g(?P<stack>\d+)_e(?P<ev>0|[+-]\d+)"
    r"\.(?P<ext>[A-Za-z0-9]+)$"
)
_DELIVERY_PATTERN = re.compile(
    r"^(?P<date>\d{8})-(?P<shoot_code>[A-Za-z0-9]{5})_(?P<room_type>[a-z_]+)"
    r"_(?P<index>\d{3})_v(?P<version>\d+)\.(?P<ext>(?i:jpg|jpeg|png))$"
)
_UPLOAD_PATTERN = re.compile(
    r"^(?P<photographer>[A-Z]{2})(?P<date>\d{8})_(?P<job>\d{6})"
    r"_(?P<shoot_code>[a-z0-9]{5})_(?P<room>[A-Z0-9]+)_(?P<stack>g\d{3})"
    r"_(?P<ev>e[+-]?\d)\.(?P<ext>[a-zA-Z0-9]+)$"
)
_EXPOSURE_PATTERN = re.compile(r"^e?([+-]?\d+(?:\.\d+)?)$")
_STACK_NUMBER_PATTERN = re.compile(r"^g(\d+)$")


class _RawSource(Protocol):
    original_filename: str
    exposure_value: str | None


@dataclass(frozen=True)
class RawFilename:
    """Components of a raw/handoff filename."""

    date: str
    shoot_code: str
    room_type: str
    sequence_index: int
    stack_number: int
    exposure: str
    extension: str


@dataclass(frozen=True)
class DeliveryFilename:
    """Components of a delivery filename."""

    date: str
    shoot_code: str
    room_type: str
    sequence_index: int
    version: int
    extension: str


@dataclass(frozen=True)
class UploadFilename:
    """Components of a capture-device filename."""

    photographer: str
    date: str
    job_number: str
    shoot_code: str
    room_code: str
    stack_number: str
    exposure_value: str
    extension: str


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return int(math.floor(value + 0.5))


def format_exposure_token(value: str | float | None) -> str:
    """Return the signed integer exposure token used inside filenames.

    Accepts numbers and strings such as ``"e+1"``, ``"-0.7"`` or ``"e0"``;
    anything unreadable becomes ``"0"``.
    """
    if value is None:
        return "0"
    if isinstance(value, str):
        match = _EXPOSURE_PATTERN.match(value.strip())
        if not match:
            return "0"
        number = float(match.group(1))
    else:
        number = float(value)
    if math.isnan(number) or math.isinf(number):
        return "0"
    stops = round_half_up(number)
    if stops > 0:
        return f"+{stops}"
    if stops < 0:
        return str(stops)
    return "0"


def exposure_token(bias: float) -> str:
    """Return the stored exposure token (``e0``, ``e+2``, ``e-4``)."""
    return f"e{format_exposure_token(bias)}"


def exposure_stops(token: str | None) -> int:
    """Return the integer stop count of an exposure token, 0 if unreadable."""
    return int(format_exposure_token(token))


def format_shoot_date(value: date) -> str:
    """Format a date as ``YYYYMMDD``."""
    return value.strftime("%Y%m%d")


def stack_number_token(ordinal: int) -> str:
    """Return the stack number token for a 1-based ordinal (``g001``)."""
    return f"g{ordinal:03d}"


def stack_ordinal(stack_number: str | None) -> int:
    """Return the ordinal encoded in a stack number token, 0 if unreadable."""
    match = _STACK_NUMBER_PATTERN.match(stack_number or "")
    return int(match.group(1)) if match else 0


def file_extension(filename: str, fallback: str = "raw") -> str:
    """Return the lowercase extension of a filename without the dot."""
    suffix = PurePosixPath(filename).suffix.lower().lstrip(".")
    return suffix or fallback


def raw_handoff_filename(
    image: _RawSource,
    stack: StackRecord,
    stack_number: int,
    shoot_code: str,
    shoot_date: date,
) -> str:
    """Build the canonical raw filename for an image within its stack."""
    room_type = filename_slug(stack.room_type or DEFAULT_ROOM_TYPE)
    index = f"{max(stack.sequence_index, 0):03d}"
    ev = format_exposure_token(image.exposure_value)
    ext = file_extension(image.original_filename)
    return (
        f"{format_shoot_date(shoot_date)}-{shoot_code}_{room_type}_{index}"
        f"_{stack_number_token(stack_number)}_e{ev}.{ext}"
    )


def decode_raw_filename(filename: str) -> RawFilename | None:
    """Parse a raw/handoff filename."""
    if not isinstance(filename, str):
        return None
    match = _RAW_PATTERN.match(filename)
    if not match:
        return None
    return RawFilename(
        date=match["date"],
        shoot_code=match["shoot_code"],
        room_type=match["room_type"],
        sequence_index=int(match["index"]),
        stack_number=int(match["stack"]),
        exposure=match["ev"],
        extension=match["ext"],
    )


def parse_room_type_from_filename(filename: str) -> str | None:
    """Recover the room type from a raw or delivery filename."""
    raw = decode_raw_filename(filename)
    if raw:
        return room_type_from_slug(raw.room_type)
    delivery = parse_delivery_filename(filename)
    return room_type_from_slug(delivery.room_type) if delivery else None


def parse_sequence_index_from_filename(filename: str) -> int | None:
    """Recover the sequence index from a raw or delivery filename."""
    raw = decode_raw_filename(filename)
    if raw:
        return raw.sequence_index
    delivery = parse_delivery_filename(filename)
    return delivery.sequence_index if delivery else None


def encode_delivery_filename(components: DeliveryFilename) -> str:
    """Build a delivery filename from its components."""
    return (
        f"{components.date}-{components.shoot_code}_{components.room_type}"
        f"_{components.sequence_index:03d}_v{components.version}"
        f".{components.extension}"
    )


def final_filename_for_stack(
    stack: StackRecord, shoot_code: str, shoot_date: date, version: int = 1
) -> str:
    """Build the delivery filename the editor is expected to return."""
    return encode_delivery_filename(
        DeliveryFilename(
            date=format_shoot_date(shoot_date),
            shoot_code=shoot_code,
            room_type=filename_slug(stack.room_type or DEFAULT_ROOM_TYPE),
            sequence_index=max(stack.sequence_index, 0),
            version=version,
            extension="jpg",
        )
    )


def parse_delivery_filename(filename: str) -> DeliveryFilename | None:
    """Match a filename against the delivery pattern only."""
    if not isinstance(filename, str):
        return None
    match = _DELIVERY_PATTERN.match(filename)
    if not match:
        return None
    return DeliveryFilename(
        date=match["date"],
        shoot_code=match["shoot_code"],
        room_type=match["room_type"],
        sequence_index=int(match["index"]),
        version=int(match["version"]),
        extension=match["ext"],
    )


def is_plausible_date(value: str) -> bool:
    """Check a ``YYYYMMDD`` string for a plausible calendar date."""
    if len(value) != 8 or not value.isdigit():
        return False
    year, month, day = int(value[:4]), int(value[4:6]), int(value[6:])
    return 2020 <= year <= 2100 and 1 <= month <= 12 and 1 <= day <= 31


def decode_delivery_filename(filename: str) -> DeliveryFilename | None:
    """Parse a delivery filename and reject implausible dates."""
    parsed = parse_delivery_filename(filename)
    if parsed is None or not is_plausible_date(parsed.date):
        return None
    return parsed


def parse_upload_filename(filename: str) -> UploadFilename | None:
    """Parse a capture-device filename."""
    if not isinstance(filename, str):
        return None
    match = _UPLOAD_PATTERN.match(filename)
    if not match:
        return None
    return UploadFilename(
        photographer=match["photographer"],
        date=match["date"],
        job_number=match["job"],
        shoot_code=match["shoot_code"],
        room_code=match["room"],
        stack_number=match["stack"],
        exposure_value=match["ev"],
        extension=match["ext"],
    )


def encode_upload_filename(components: UploadFilename) -> str:
    """Build a capture-device filename from its components."""
    return (
        f"{components.photographer}{components.date}_{components.job_number}"
        f"_{components.shoot_code}_{components.room_code}"
        f"_{components.stack_number}_{components.exposure_value}"
        f".{components.extension}"
    )


def extract_stack_number(filename: str) -> str | None:
    """Return the ``gNNN`` stack token of a capture-device filename."""
    parsed = parse_upload_filename(filename)
    return parsed.stack_number if parsed else None


def extract_exposure_value(filename: str) -> str | None:
    parsed = parse_upload_filename(filename)
    return parsed.exposure_value if parsed else None


def extract_room_code(filename: str) -> str | None:
    parsed = parse_upload_filename(filename)
    return parsed.room_code if parsed else None


def extract_room_type(filename: str) -> str | None:
    """Return the room type behind a capture-device room code.

    Unknown codes map to the default room type; unparseable names give ``None``.
    """
    code = extract_room_code(filename)
    return room_type_from_code(code) if code else None


def is_raw_file(filename: str) -> bool:
    """Return True for known camera RAW extensions."""
    return PurePosixPath(filename).suffix.lower() in RAW_FILE_EXTENSIONS


def validate_raw_filename(filename: str | None) -> str | None:
    """Return an error message for an unusable RAW filename, else None."""
    if not filename:
        return "Filename is required"
    if not is_raw_file(filename):
        supported = ", ".join(RAW_FILE_EXTENSIONS)
        return f"Invalid file type. Supported formats: {supported}"
    if len(filename) > MAX_FILENAME_LENGTH:
        return f"Filename too long (max {MAX_FILENAME_LENGTH} characters)"
    return None


def is_accepted_upload(filename: str | None, content_type: str | None) -> bool:
    """Decide whether an uploaded file is an image the intake can handle."""
    if not filename or len(filename) > MAX_FILENAME_LENGTH:
        return False
    if content_type and content_type.startswith("image/"):
        return True
    return PurePosixPath(filename).suffix.lower() in UPLOAD_IMAGE_EXTENSIONS


def object_path(job_id: UUID, shoot_id: UUID, filename: str, category: str) -> str:
    """Return the storage key for a file of a shoot."""
    if category == "raw":
        return f"projects/{job_id}/raw/{shoot_id}/{filename}"
    if category == "handoff":
        return f"projects/{job_id}/handoff/{filename}"
    raise ValueError(f"Unknown storage category: {category}")


def editor_return_path(job_id: UUID, shoot_id: UUID) -> str:
    """Return the storage key of the ZIP uploaded by the editor."""
    return f"projects/{job_id}/edits/{shoot_id}/editor_return.zip"


def edited_image_path(
    job_id: UUID, shoot_id: UUID, version: int, filename: str
) -> str:
    """Return the version-scoped storage key of an edited image."""
    return f"projects/{job_id}/edits/{shoot_id}/final/v{version}/{filename}"
