"""Supabase-backed edited image repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from shoot_pipeline.adapters.supabase_rows import optional_uuid, parse_timestamp
from shoot_pipeline.domain.models import (
    ApprovalStatus,
    EditedImageRecord,
    NewEditedImage,
)
from shoot_pipeline.services.editor_returns import EditedImageRepository

_COLUMNS = (
    "id, shoot_id, stack_id, filename, file_path, file_size, version, room_type, "
    "sequence_index, client_approval_status, created_at, reviewed_at"
)


@dataclass
class SupabaseEditedImageRepository(EditedImageRepository):
    """Supabase implementation for edited images."""

    client: Client

    def create_edited_image(self, image: NewEditedImage) -> EditedImageRecord:
        """Create an edited image row in the pending state."""
        response = (
            self.client.table("edited_images")
            .insert(
                {
                    "shoot_id": str(image.shoot_id),
                    "stack_id": str(image.stack_id) if image.stack_id else None,
                    "filename": image.filename,
                    "file_path": image.file_path,
                    "file_size": image.file_size,
                    "version": image.version,
                    "room_type": image.room_type,
                    "sequence_index": image.sequence_index,
                    "client_approval_status": ApprovalStatus.PENDING.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create edited image")
        return _to_edited_image(response.data[0])

    def get_edited_image(self, image_id: UUID) -> EditedImageRecord | None:
        """Return an edited image by id."""
        response = (
            self.client.table("edited_images")
            .select(_COLUMNS)
            .eq("id", str(image_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_edited_image(response.data[0])

    def list_edited_images(self, shoot_id: UUID) -> list[EditedImageRecord]:
        """Return every edited image of a shoot."""
        response = (
            self.client.table("edited_images")
            .select(_COLUMNS)
            .eq("shoot_id", str(shoot_id))
            .order("version")
            .execute()
        )
        return [_to_edited_image(row) for row in response.data or []]

    def update_approval_status(
        self, image_id: UUID, status: ApprovalStatus, reviewed_at: datetime
    ) -> EditedImageRecord | None:
        """Record a client decision and return the updated row."""
        response = (
            self.client.table("edited_images")
            .update(
                {
                    "client_approval_status": status.value,
                    "reviewed_at": reviewed_at.isoformat(),
                }
            )
            .eq("id", str(image_id))
            .execute()
        )
        if not response.data:
            return None
        return _to_edited_image(response.data[0])


def _to_edited_image(row: dict) -> EditedImageRecord:
    sequence_index = row.get("sequence_index")
    return EditedImageRecord(
        id=UUID(row["id"]),
        shoot_id=UUID(row["shoot_id"]),
        stack_id=optional_uuid(row.get("stack_id")),
        filename=row["filename"],
        file_path=row["file_path"],
        file_size=int(row.get("file_size") or 0),
        version=int(row["version"]),
        room_type=row.get("room_type"),
        sequence_index=int(sequence_index) if sequence_index is not None else None,
        client_approval_status=ApprovalStatus(row["client_approval_status"]),
        created_at=parse_timestamp(row.get("created_at")) or datetime.now(tz=UTC),
        reviewed_at=parse_timestamp(row.get("reviewed_at")),
    )
