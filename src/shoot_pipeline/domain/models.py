"""Domain models for jobs, shoots and their image records."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class ShootStatus(StrEnum):
    """Lifecycle states of a shoot, in forward order."""

    INITIALIZED = "initialized"
    UPLOADING = "uploading"
    INTAKE_COMPLETE = "intake_complete"
    HANDOFF_GENERATED = "handoff_generated"
    EDITOR_RETURNED = "editor_returned"
    PROCESSING = "processing"

    @property
    def rank(self) -> int:
        """Position of the state in the forward-only lifecycle."""
        return list(ShootStatus).index(self)


# Timestamp column stamped together with each status.
STATUS_TIMESTAMP_FIELDS: dict[ShootStatus, str] = {
    ShootStatus.UPLOADING: "upload_started_at",
    ShootStatus.INTAKE_COMPLETE: "intake_completed_at",
    ShootStatus.HANDOFF_GENERATED: "handoff_generated_at",
    ShootStatus.EDITOR_RETURNED: "editor_returned_at",
    ShootStatus.PROCESSING: "editor_returned_at",
}


class ApprovalStatus(StrEnum):
    """Client decision on an edited image."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TokenType(StrEnum):
    """Purpose of an editor token."""

    UPLOAD = "upload"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class JobRecord:
    """A photography order owning one or more shoots."""

    id: UUID
    job_number: str
    property_name: str | None = None
    property_address: str | None = None


@dataclass(frozen=True)
class ShootRecord:
    """One photography session for a property."""

    id: UUID
    job_id: UUID
    shoot_code: str
    status: ShootStatus
    created_at: datetime
    status_changed_at: datetime | None = None


@dataclass(frozen=True)
class StackRecord:
    """A persisted exposure bracket."""

    id: UUID
    shoot_id: UUID
    stack_number: str
    room_type: str
    frame_count: int
    sequence_index: int


@dataclass(frozen=True)
class ImageRecord:
    """A raw intake image."""

    id: UUID
    shoot_id: UUID
    stack_id: UUID | None
    original_filename: str
    renamed_filename: str | None
    file_path: str
    file_size: int
    mime_type: str
    exposure_value: str
    position_in_stack: int
    exif_date: int | None


@dataclass(frozen=True)
class NewImage:
    """Values for an image row that has not been persisted yet."""

    shoot_id: UUID
    stack_id: UUID | None
    original_filename: str
    renamed_filename: str | None
    file_path: str
    file_size: int
    mime_type: str
    exposure_value: str
    position_in_stack: int
    exif_date: int | None


@dataclass(frozen=True)
class EditedImageRecord:
    """A delivery-side image returned by the editor."""

    id: UUID
    shoot_id: UUID
    stack_id: UUID | None
    filename: str
    file_path: str
    file_size: int
    version: int
    room_type: str | None
    sequence_index: int | None
    client_approval_status: ApprovalStatus
    created_at: datetime
    reviewed_at: datetime | None = None


@dataclass(frozen=True)
class NewEditedImage:
    """Values for an edited image row that has not been persisted yet."""

    shoot_id: UUID
    stack_id: UUID | None
    filename: str
    file_path: str
    file_size: int
    version: int
    room_type: str | None
    sequence_index: int | None


@dataclass(frozen=True)
class EditorTokenRecord:
    """Time-boxed credential handed to the external editor or client."""

    id: UUID
    shoot_id: UUID
    token: str
    token_type: TokenType
    expires_at: datetime
    file_path: str | None = None
    used_at: datetime | None = None
