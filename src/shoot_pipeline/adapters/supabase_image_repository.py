"""Supabase-backed raw image repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from shoot_pipeline.adapters.supabase_rows import optional_uuid
from shoot_pipeline.domain.models import ImageRecord, NewImage
from shoot_pipeline.services.shoots import ImageRepository

_COLUMNS = (
    "id, shoot_id, stack_id, original_filename, renamed_filename, file_path, "
    "file_size, mime_type, exposure_value, position_in_stack, exif_date"
)


@dataclass
class SupabaseImageRepository(ImageRepository):
    """Supabase implementation for raw intake images."""

    client: Client

    def create_image(self, image: NewImage) -> ImageRecord:
        """Create an image row and return it."""
        response = (
            self.client.table("images")
            .insert(
                {
                    "shoot_id": str(image.shoot_id),
                    "stack_id": str(image.stack_id) if image.stack_id else None,
                    "original_filename": image.original_filename,
                    "renamed_filename": image.renamed_filename,
                    "file_path": image.file_path,
                    "file_size": image.file_size,
                    "mime_type": image.mime_type,
                    "exposure_value": image.exposure_value,
                    "position_in_stack": image.position_in_stack,
                    "exif_date": image.exif_date,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create image")
        return _to_image(response.data[0])

    def list_stack_images(self, stack_id: UUID) -> list[ImageRecord]:
        """Return the images of a stack ordered by position."""
        response = (
            self.client.table("images")
            .select(_COLUMNS)
            .eq("stack_id", str(stack_id))
            .order("position_in_stack")
            .execute()
        )
        return [_to_image(row) for row in response.data or []]

    def update_renamed_filename(self, image_id: UUID, renamed_filename: str) -> None:
        """Store a recomputed canonical filename."""
        self.client.table("images").update(
            {"renamed_filename": renamed_filename}
        ).eq("id", str(image_id)).execute()


def _to_image(row: dict) -> ImageRecord:
    return ImageRecord(
        id=UUID(row["id"]),
        shoot_id=UUID(row["shoot_id"]),
        stack_id=optional_uuid(row.get("stack_id")),
        original_filename=row["original_filename"],
        renamed_filename=row.get("renamed_filename"),
        file_path=row["file_path"],
        file_size=int(row.get("file_size") or 0),
        mime_type=row.get("mime_type") or "application/octet-stream",
        exposure_value=row.get("exposure_value") or "e0",
        position_in_stack=int(row.get("position_in_stack") or 0),
        exif_date=row.get("exif_date"),
    )
