"""Grouping of bracketed exposures into stacks.

Two independent paths exist. ``assemble_stacks`` chunks a freshly uploaded
batch by capture time. ``detect_stacks`` trusts stack membership already
encoded in capture-device filenames.

Chunking assumes brackets arrive as contiguous runs once sorted by capture
time (or filename when no timestamp exists). Interleaved brackets from
different rooms without reliable timestamps are grouped wrongly; room
homogeneity within a chunk is not checked.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from shoot_pipeline.domain.filenames import exposure_stops, parse_upload_filename
from shoot_pipeline.domain.rooms import room_type_from_code

SUPPORTED_FRAME_COUNTS: tuple[int, ...] = (3, 5)

FIVE_FRAME_POSITIONS: dict[str, int] = {
    "e-4": 0,
    "e-2": 1,
    "e0": 2,
    "e+2": 3,
    "e+4": 4,
}
THREE_FRAME_POSITIONS: dict[str, int] = {"e-2": 0, "e0": 1, "e+2": 2}


@dataclass(frozen=True)
class UploadedFile:
    """A file received in an upload batch."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ParsedImage:
    """An uploaded file with its extracted EXIF values."""

    file: UploadedFile
    capture_timestamp: int | None = None
    exposure_value: str | None = None


@dataclass(frozen=True)
class AssembledStack:
    """A chunk of consecutive images forming one bracket."""

    images: list[ParsedImage]
    base_exposure: str

    def ranked(self) -> list[ParsedImage]:
        """Return the images ordered by exposure ascending."""
        return sorted(
            self.images, key=lambda image: exposure_stops(image.exposure_value)
        )


def _capture_order(image: ParsedImage) -> tuple[bool, int, str]:
    timestamp = image.capture_timestamp
    return (timestamp is None, timestamp or 0, image.file.filename)


def assemble_stacks(
    images: Iterable[ParsedImage], frame_count: int
) -> list[AssembledStack]:
    """Chunk images into stacks of ``frame_count`` consecutive frames.

    The final chunk may be short when the batch size is not a multiple of the
    frame count. Unsupported frame counts produce no stacks.
    """
    if frame_count not in SUPPORTED_FRAME_COUNTS:
        return []
    ordered = sorted(images, key=_capture_order)
    stacks: list[AssembledStack] = []
    for start in range(0, len(ordered), frame_count):
        chunk = ordered[start : start + frame_count]
        middle = chunk[len(chunk) // 2]
        stacks.append(
            AssembledStack(images=chunk, base_exposure=middle.exposure_value or "e0")
        )
    return stacks


@dataclass(frozen=True)
class DetectedFrame:
    """A frame placed within a detected stack."""

    filename: str
    exposure_value: str
    position_in_stack: int


@dataclass
class DetectedStack:
    """Stack membership recovered from filenames."""

    room_code: str
    room_type: str
    stack_number: str
    frames: list[DetectedFrame] = field(default_factory=list)
    needs_review: bool = False

    @property
    def frame_count(self) -> int:
        return len(self.frames)


@dataclass
class StackDetection:
    """Outcome of filename-based stack detection."""

    stacks: list[DetectedStack] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def detect_stacks(filenames: Iterable[str]) -> StackDetection:
    """Group capture-device filenames by room code and stack number."""
    result = StackDetection()
    groups: dict[tuple[str, str], list[str]] = {}
    exposures: dict[str, str] = {}
    for filename in filenames:
        parsed = parse_upload_filename(filename)
        if parsed is None:
            result.errors.append(f"Invalid filename format: {filename}")
            continue
        key = (parsed.room_code, parsed.stack_number)
        groups.setdefault(key, []).append(filename)
        exposures[filename] = parsed.exposure_value

    for (room_code, stack_number), members in sorted(groups.items()):
        label = f"{room_code}/{stack_number}"
        count = len(members)
        expected = FIVE_FRAME_POSITIONS if count > 3 else THREE_FRAME_POSITIONS
        stack = DetectedStack(
            room_code=room_code,
            room_type=room_type_from_code(room_code),
            stack_number=stack_number,
        )
        for filename in members:
            exposure = exposures[filename]
            position = expected.get(exposure)
            if position is None:
                result.errors.append(
                    f"{label}: unexpected exposure value {exposure} in {filename} "
                    f"for a {count}-frame stack"
                )
                continue
            stack.frames.append(
                DetectedFrame(
                    filename=filename,
                    exposure_value=exposure,
                    position_in_stack=position,
                )
            )
        stack.frames.sort(key=lambda frame: frame.position_in_stack)

        present = {frame.exposure_value for frame in stack.frames}
        missing = [token for token in expected if token not in present]
        if missing and len(stack.frames) == count:
            stack.needs_review = True
            result.warnings.append(
                f"{label}: missing exposure values {', '.join(missing)}"
            )
        if count not in SUPPORTED_FRAME_COUNTS:
            stack.needs_review = True
            result.warnings.append(
                f"{label}: unexpected frame count {count} (expected 3 or 5)"
            )
        result.stacks.append(stack)
    return result
