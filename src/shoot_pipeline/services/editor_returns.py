"""Editor return intake, versioned processing and client review."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import PurePosixPath
from typing import Protocol
from uuid import UUID

from shoot_pipeline.domain.filenames import (
    DELIVERY_IMAGE_EXTENSIONS,
    decode_delivery_filename,
    edited_image_path,
    editor_return_path,
)
from shoot_pipeline.domain.models import (
    ApprovalStatus,
    EditedImageRecord,
    NewEditedImage,
    ShootStatus,
    StackRecord,
    TokenType,
)
from shoot_pipeline.domain.results import ErrorKind
from shoot_pipeline.domain.rooms import room_type_from_slug
from shoot_pipeline.services.archives import ArchiveReader
from shoot_pipeline.services.notifications import (
    EDITOR_UPLOAD_COMPLETE,
    Notifier,
    notify_quietly,
)
from shoot_pipeline.services.queue import (
    PROCESS_EDITOR_RETURN,
    ProcessingQueue,
    QueueJobStatus,
)
from shoot_pipeline.services.shoots import ShootService
from shoot_pipeline.services.storage import BlobStorage
from shoot_pipeline.services.tokens import TokenService

logger = logging.getLogger(__name__)

_OS_ARTIFACT_PREFIX = "__MACOSX/"


class EditedImageRepository(Protocol):
    """Persistence interface for edited images."""

    def create_edited_image(self, image: NewEditedImage) -> EditedImageRecord:
        """Create an edited image row in the pending state."""

    def get_edited_image(self, image_id: UUID) -> EditedImageRecord | None:
        """Return an edited image by id."""

    def list_edited_images(self, shoot_id: UUID) -> list[EditedImageRecord]:
        """Return every edited image of a shoot."""

    def update_approval_status(
        self, image_id: UUID, status: ApprovalStatus, reviewed_at: datetime
    ) -> EditedImageRecord | None:
        """Record a client decision and return the updated row."""


@dataclass(frozen=True)
class EditorUploadResult:
    """Outcome of receiving an editor ZIP."""

    success: bool
    file_path: str | None = None
    queue_job_id: UUID | None = None
    scheduled_for: datetime | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


@dataclass(frozen=True)
class EditorReturnResult:
    """Outcome of processing an editor ZIP.

    ``success`` is False whenever any entry produced an error, even if other
    entries were recorded.
    """

    success: bool
    version: int | None = None
    processed_count: int = 0
    skipped_count: int = 0
    errors: list[str] = field(default_factory=list)
    error_kind: ErrorKind | None = None


@dataclass(frozen=True)
class ReviewItem:
    """An edited image with the stack it was matched to."""

    image: EditedImageRecord
    stack: StackRecord | None


@dataclass(frozen=True)
class QueueRun:
    """Outcome of one drained queue job."""

    job_id: UUID
    shoot_id: UUID
    result: EditorReturnResult


def _content_type(filename: str) -> str:
    return "image/png" if filename.lower().endswith(".png") else "image/jpeg"


@dataclass
class EditorReturnService:
    """Receives, versions and reviews the editor's delivery images."""

    shoot_service: ShootService
    edited_images: EditedImageRepository
    storage: BlobStorage
    archive_reader: ArchiveReader
    tokens: TokenService
    queue: ProcessingQueue
    notifier: Notifier
    quiet_window: timedelta = timedelta(minutes=60)
    job_retention: timedelta = timedelta(days=1)

    async def receive_upload(
        self, token: str, filename: str | None, data: bytes
    ) -> EditorUploadResult:
        """Store the editor's ZIP and schedule it for processing."""
        if not filename or not filename.lower().endswith(".zip"):
            return EditorUploadResult(
                success=False,
                error="A ZIP file is required",
                error_kind=ErrorKind.VALIDATION,
            )
        if not data:
            return EditorUploadResult(
                success=False,
                error="Uploaded file is empty",
                error_kind=ErrorKind.VALIDATION,
            )
        check = self.tokens.consume(token, TokenType.UPLOAD)
        if not check.accepted or check.token is None:
            return EditorUploadResult(
                success=False, error=check.error, error_kind=ErrorKind.TOKEN
            )
        shoot_id = check.token.shoot_id
        loaded = self.shoot_service.load(shoot_id)
        if not loaded.success or loaded.shoot is None or loaded.job is None:
            return EditorUploadResult(
                success=False, error=loaded.error, error_kind=loaded.error_kind
            )

        path = editor_return_path(loaded.job.id, shoot_id)
        upload = await self.storage.upload(path, data, "application/zip")
        if not upload.ok:
            logger.error("Failed to store editor return %s: %s", path, upload.error)
            return EditorUploadResult(
                success=False,
                error=f"Failed to store upload: {upload.error}",
                error_kind=ErrorKind.STORAGE,
            )

        self.shoot_service.advance_status(shoot_id, ShootStatus.EDITOR_RETURNED)
        job = self.queue.schedule(
            shoot_id,
            PROCESS_EDITOR_RETURN,
            self.quiet_window,
            {"job_id": str(loaded.job.id)},
        )
        await notify_quietly(
            self.notifier,
            EDITOR_UPLOAD_COMPLETE,
            shoot_id,
            {
                "shootCode": loaded.shoot.shoot_code,
                "jobNumber": loaded.job.job_number,
                "fileSize": len(data),
                "processingScheduledFor": job.scheduled_for.isoformat(),
            },
        )
        return EditorUploadResult(
            success=True,
            file_path=path,
            queue_job_id=job.id,
            scheduled_for=job.scheduled_for,
        )

    async def process_return(
        self, job_id: UUID, shoot_id: UUID
    ) -> EditorReturnResult:
        """Unpack the stored editor ZIP into a new version of edited images."""
        loaded = self.shoot_service.load(shoot_id)
        if not loaded.success or loaded.shoot is None or loaded.job is None:
            return EditorReturnResult(
                success=False,
                errors=[loaded.error or "Shoot not found"],
                error_kind=loaded.error_kind,
            )
        if loaded.job.id != job_id:
            return EditorReturnResult(
                success=False,
                errors=["Shoot does not belong to this project"],
                error_kind=ErrorKind.NOT_FOUND,
            )
        if loaded.shoot.status.rank < ShootStatus.EDITOR_RETURNED.rank:
            return EditorReturnResult(
                success=False,
                errors=[f"No editor return uploaded (status {loaded.shoot.status})"],
                error_kind=ErrorKind.CONFLICT,
            )

        errors: list[str] = []
        processed = 0
        skipped = 0
        version: int | None = None
        seen: set[str] = set()
        archive_path = editor_return_path(job_id, shoot_id)
        download = await self.storage.download(archive_path)
        if not download.ok or download.value is None:
            logger.error(
                "Failed to download editor return %s: %s",
                archive_path,
                download.error,
            )
            return EditorReturnResult(
                success=False,
                errors=[f"Failed to download ZIP: {download.error}"],
                error_kind=ErrorKind.STORAGE,
            )
        try:
            stacks = {
                (item.stack.room_type, item.stack.sequence_index): item.stack
                for item in self.shoot_service.list_stacks(shoot_id)
            }
            existing = self.edited_images.list_edited_images(shoot_id)
            version = max((image.version for image in existing), default=0) + 1
            logger.info(
                "Processing editor return for %s as version %d",
                loaded.shoot.shoot_code,
                version,
            )

            for entry in self.archive_reader.read_entries(download.value):
                if entry.is_directory or entry.name.startswith(_OS_ARTIFACT_PREFIX):
                    continue
                filename = PurePosixPath(entry.name).name
                if PurePosixPath(filename).suffix.lower() not in (
                    DELIVERY_IMAGE_EXTENSIONS
                ):
                    logger.info("Skipping non-image entry %s", entry.name)
                    skipped += 1
                    continue
                if entry.content is None:
                    errors.append(f"Unreadable entry {entry.name}: {entry.error}")
                    skipped += 1
                    continue
                parsed = decode_delivery_filename(filename)
                if parsed is None:
                    errors.append(f"Invalid filename format: {filename}")
                    skipped += 1
                    continue
                if parsed.shoot_code != loaded.shoot.shoot_code:
                    errors.append(
                        f"Shoot code mismatch in {filename}: expected "
                        f"{loaded.shoot.shoot_code}, got {parsed.shoot_code}"
                    )
                    skipped += 1
                    continue
                # Folders inside the ZIP flatten to one key per basename.
                if filename in seen:
                    errors.append(f"Duplicate filename {filename} in {entry.name}")
                    skipped += 1
                    continue
                seen.add(filename)

                path = edited_image_path(job_id, shoot_id, version, filename)
                upload = await self.storage.upload(
                    path, entry.content, _content_type(filename)
                )
                if not upload.ok:
                    errors.append(f"Failed to upload {filename}: {upload.error}")
                    skipped += 1
                    continue

                room_type = room_type_from_slug(parsed.room_type)
                stack = stacks.get((room_type, parsed.sequence_index))
                if stack is None:
                    logger.warning(
                        "No matching stack for %s (%s #%03d)",
                        filename,
                        room_type,
                        parsed.sequence_index,
                    )
                self.edited_images.create_edited_image(
                    NewEditedImage(
                        shoot_id=shoot_id,
                        stack_id=stack.id if stack else None,
                        filename=filename,
                        file_path=path,
                        file_size=len(entry.content),
                        version=version,
                        room_type=room_type,
                        sequence_index=parsed.sequence_index,
                    )
                )
                processed += 1
        except Exception as exc:
            logger.exception("Error processing editor return for %s", shoot_id)
            if processed > 0:
                self.shoot_service.advance_status(shoot_id, ShootStatus.PROCESSING)
                self._settle(shoot_id)
            return EditorReturnResult(
                success=False,
                version=version if processed > 0 else None,
                processed_count=processed,
                skipped_count=skipped,
                errors=[*errors, str(exc)],
                error_kind=(
                    ErrorKind.DECODE
                    if isinstance(exc, ValueError)
                    else ErrorKind.INTERNAL
                ),
            )

        if processed > 0:
            self.shoot_service.advance_status(shoot_id, ShootStatus.PROCESSING)
        if processed > 0 or not errors:
            self._settle(shoot_id)
        for error in errors:
            logger.error("Editor return %s: %s", loaded.shoot.shoot_code, error)
        return EditorReturnResult(
            success=not errors,
            version=version,
            processed_count=processed,
            skipped_count=skipped,
            errors=errors,
            error_kind=ErrorKind.VALIDATION if errors else None,
        )

    def _settle(self, shoot_id: UUID) -> None:
        """Complete queued runs for a ZIP that has already been processed."""
        self.queue.complete_pending(shoot_id, PROCESS_EDITOR_RETURN)

    async def run_due_jobs(self, now: datetime | None = None) -> list[QueueRun]:
        """Process every editor return whose quiet window has elapsed."""
        cutoff = now or datetime.now(tz=UTC)
        runs: list[QueueRun] = []
        for job in self.queue.due_jobs(cutoff):
            if job.job_type != PROCESS_EDITOR_RETURN:
                continue
            current = self.queue.get_job(job.id)
            if current is None or current.status != QueueJobStatus.PENDING:
                logger.info("Queue job %s already settled", job.id)
                continue
            result = await self.process_return(
                UUID(job.payload["job_id"]), job.shoot_id
            )
            if result.processed_count > 0 or result.success:
                self.queue.mark_completed(job.id)
            else:
                self.queue.mark_failed(job.id, "; ".join(result.errors))
            runs.append(QueueRun(job_id=job.id, shoot_id=job.shoot_id, result=result))
        self.queue.prune(cutoff - self.job_retention)
        return runs

    def list_for_review(
        self, shoot_id: UUID
    ) -> dict[int, dict[str, list[ReviewItem]]]:
        """Return edited images grouped by version, then room type."""
        stacks = {
            item.stack.id: item.stack
            for item in self.shoot_service.list_stacks(shoot_id)
        }
        grouped: dict[int, dict[str, list[ReviewItem]]] = defaultdict(
            lambda: defaultdict(list)
        )
        images = sorted(
            self.edited_images.list_edited_images(shoot_id),
            key=lambda image: (
                image.version,
                image.sequence_index or 0,
                image.filename,
            ),
        )
        for image in images:
            room = image.room_type or "uncategorized"
            stack = stacks.get(image.stack_id) if image.stack_id else None
            grouped[image.version][room].append(ReviewItem(image=image, stack=stack))
        return {version: dict(rooms) for version, rooms in grouped.items()}

    def set_approval(
        self, image_id: UUID, status: ApprovalStatus
    ) -> EditedImageRecord | None:
        """Record the client's decision on an edited image."""
        updated = self.edited_images.update_approval_status(
            image_id, status, datetime.now(tz=UTC)
        )
        if updated is not None:
            logger.info("Edited image %s marked %s", updated.filename, status)
        return updated
