"""Upload batch intake: EXIF, stacking, storage and canonical names."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC
from uuid import UUID

from shoot_pipeline.domain.filenames import (
    object_path,
    raw_handoff_filename,
    stack_ordinal,
)
from shoot_pipeline.domain.models import NewImage, ShootStatus
from shoot_pipeline.domain.results import ErrorKind
from shoot_pipeline.domain.stacking import (
    SUPPORTED_FRAME_COUNTS,
    ParsedImage,
    UploadedFile,
    assemble_stacks,
)
from shoot_pipeline.services.exif import ExifService
from shoot_pipeline.services.shoots import ImageRepository, ShootService
from shoot_pipeline.services.storage import BlobStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntakeResult:
    """Summary of a processed upload batch."""

    success: bool
    stack_count: int = 0
    image_count: int = 0
    skipped_count: int = 0
    error: str | None = None
    error_kind: ErrorKind | None = None


@dataclass
class IntakeService:
    """Turns an upload batch into stacks and image records."""

    shoot_service: ShootService
    images: ImageRepository
    exif_service: ExifService
    storage: BlobStorage

    async def process_upload(
        self, shoot_id: UUID, files: list[UploadedFile], frame_count: int = 5
    ) -> IntakeResult:
        """Process one upload batch for a shoot."""
        if frame_count not in SUPPORTED_FRAME_COUNTS:
            return IntakeResult(
                success=False,
                error="frameCount must be 3 or 5",
                error_kind=ErrorKind.VALIDATION,
            )
        if not files:
            return IntakeResult(
                success=False,
                error="No files uploaded",
                error_kind=ErrorKind.VALIDATION,
            )
        try:
            return await self._process(shoot_id, files, frame_count)
        except Exception as exc:
            logger.exception("Error processing upload for shoot %s", shoot_id)
            return IntakeResult(
                success=False, error=str(exc), error_kind=ErrorKind.INTERNAL
            )

    async def _process(
        self, shoot_id: UUID, files: list[UploadedFile], frame_count: int
    ) -> IntakeResult:
        loaded = self.shoot_service.load(shoot_id)
        if not loaded.success or loaded.shoot is None or loaded.job is None:
            return IntakeResult(
                success=False, error=loaded.error, error_kind=loaded.error_kind
            )
        shoot, job = loaded.shoot, loaded.job
        self.shoot_service.advance_status(shoot_id, ShootStatus.UPLOADING)
        shoot_date = shoot.created_at.astimezone(UTC).date()

        # Raw object keys are derived from the original filename.
        seen = {
            image.original_filename
            for item in self.shoot_service.list_stacks(shoot_id)
            for image in item.images
        }
        skipped = 0
        parsed = []
        for file in files:
            if file.filename in seen:
                logger.warning(
                    "Skipping duplicate upload %s for shoot %s",
                    file.filename,
                    shoot.shoot_code,
                )
                skipped += 1
                continue
            seen.add(file.filename)
            exif = self.exif_service.extract(file.content)
            parsed.append(
                ParsedImage(
                    file=file,
                    capture_timestamp=exif.capture_timestamp,
                    exposure_value=exif.exposure_value,
                )
            )

        stack_count = 0
        image_count = 0
        for assembled in assemble_stacks(parsed, frame_count):
            stored: list[tuple[ParsedImage, str]] = []
            for image in assembled.ranked():
                path = object_path(job.id, shoot_id, image.file.filename, "raw")
                upload = await self.storage.upload(
                    path, image.file.content, image.file.content_type
                )
                if not upload.ok:
                    logger.error(
                        "Failed to upload %s: %s", image.file.filename, upload.error
                    )
                    skipped += 1
                    continue
                stored.append((image, path))
            if not stored:
                logger.warning(
                    "Skipping stack with base exposure %s: no frame stored",
                    assembled.base_exposure,
                )
                continue

            stack = await self.shoot_service.create_stack(shoot_id, len(stored))
            stack_count += 1
            for position, (image, path) in enumerate(stored):
                pending = NewImage(
                    shoot_id=shoot_id,
                    stack_id=stack.id,
                    original_filename=image.file.filename,
                    renamed_filename=None,
                    file_path=path,
                    file_size=image.file.size,
                    mime_type=image.file.content_type,
                    exposure_value=image.exposure_value or "e0",
                    position_in_stack=position,
                    exif_date=image.capture_timestamp,
                )
                renamed = raw_handoff_filename(
                    pending,
                    stack,
                    stack_ordinal(stack.stack_number),
                    shoot.shoot_code,
                    shoot_date,
                )
                self.images.create_image(
                    replace(pending, renamed_filename=renamed)
                )
                image_count += 1
            logger.info(
                "Stack %s of shoot %s stored with %d frames (base %s)",
                stack.stack_number,
                shoot.shoot_code,
                len(stored),
                assembled.base_exposure,
            )

        return IntakeResult(
            success=True,
            stack_count=stack_count,
            image_count=image_count,
            skipped_count=skipped,
        )
