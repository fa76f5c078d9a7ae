"""Raw handoff packaging for the external editor."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from shoot_pipeline.domain.filenames import format_shoot_date, object_path
from shoot_pipeline.domain.manifests import (
    MANIFEST_FILENAME,
    ManifestImage,
    ManifestStack,
    RawHandoffManifest,
)
from shoot_pipeline.domain.models import (
    EditorTokenRecord,
    JobRecord,
    ShootRecord,
    ShootStatus,
    TokenType,
)
from shoot_pipeline.domain.results import ErrorKind
from shoot_pipeline.services.archives import ArchiveWriter
from shoot_pipeline.services.notifications import (
    HANDOFF_READY,
    Notifier,
    notify_quietly,
)
from shoot_pipeline.services.shoots import ShootService
from shoot_pipeline.services.storage import BlobStorage
from shoot_pipeline.services.tokens import TokenService

logger = logging.getLogger(__name__)

ZIP_CONTENT_TYPE = "application/zip"


class PackagingError(Exception):
    """Raised when a package cannot be produced."""


@dataclass(frozen=True)
class HandoffResult:
    """Outcome of building the raw handoff package."""

    success: bool
    file_path: str | None = None
    stack_count: int = 0
    image_count: int = 0
    skipped_count: int = 0
    manifest: RawHandoffManifest | None = None
    download_token: EditorTokenRecord | None = None
    upload_token: EditorTokenRecord | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


@dataclass
class HandoffService:
    """Builds the raw ZIP and hands out the editor's tokens."""

    shoot_service: ShootService
    storage: BlobStorage
    archive_writer: ArchiveWriter
    tokens: TokenService
    notifier: Notifier
    token_validity: timedelta = timedelta(hours=36)

    async def generate_package(self, shoot_id: UUID) -> HandoffResult:
        """Package every stack of a shoot and upload the archive."""
        loaded = self.shoot_service.load(shoot_id)
        if not loaded.success or loaded.shoot is None or loaded.job is None:
            return HandoffResult(
                success=False, error=loaded.error, error_kind=loaded.error_kind
            )
        try:
            return await self._package(loaded.job, loaded.shoot)
        except PackagingError as exc:
            logger.error("Handoff packaging failed for %s: %s", shoot_id, exc)
            return HandoffResult(
                success=False, error=str(exc), error_kind=ErrorKind.PACKAGING
            )
        except Exception as exc:
            logger.exception("Error generating handoff package for %s", shoot_id)
            return HandoffResult(
                success=False, error=str(exc), error_kind=ErrorKind.INTERNAL
            )

    async def create_handoff(self, job_id: UUID, shoot_id: UUID) -> HandoffResult:
        """Generate the package, issue download and upload tokens, notify."""
        loaded = self.shoot_service.load(shoot_id)
        if not loaded.success or loaded.shoot is None:
            return HandoffResult(
                success=False, error=loaded.error, error_kind=loaded.error_kind
            )
        if loaded.shoot.job_id != job_id:
            return HandoffResult(
                success=False,
                error="Shoot does not belong to this project",
                error_kind=ErrorKind.NOT_FOUND,
            )
        result = await self.generate_package(shoot_id)
        if not result.success or result.file_path is None:
            return result

        download = self.tokens.issue(
            shoot_id, TokenType.DOWNLOAD, self.token_validity, result.file_path
        )
        upload = self.tokens.issue(shoot_id, TokenType.UPLOAD, self.token_validity)
        await notify_quietly(
            self.notifier,
            HANDOFF_READY,
            shoot_id,
            {
                "shootCode": loaded.shoot.shoot_code,
                "downloadToken": download.token,
                "uploadToken": upload.token,
                "expiresAt": download.expires_at.isoformat(),
            },
        )
        return HandoffResult(
            success=True,
            file_path=result.file_path,
            stack_count=result.stack_count,
            image_count=result.image_count,
            skipped_count=result.skipped_count,
            manifest=result.manifest,
            download_token=download,
            upload_token=upload,
        )

    async def _package(self, job: JobRecord, shoot: ShootRecord) -> HandoffResult:
        entries: list[tuple[str, bytes]] = []
        stacks: list[ManifestStack] = []
        skipped = 0
        for item in self.shoot_service.list_stacks(shoot.id):
            listed: list[ManifestImage] = []
            for image in item.images:
                name = image.renamed_filename or image.original_filename
                download = await self.storage.download(image.file_path)
                if not download.ok or download.value is None:
                    logger.warning(
                        "Skipping %s in handoff: %s", image.file_path, download.error
                    )
                    skipped += 1
                    continue
                entries.append((name, download.value))
                listed.append(
                    ManifestImage(
                        original_filename=image.original_filename,
                        renamed_filename=name,
                        exposure_value=image.exposure_value,
                        position_in_stack=image.position_in_stack,
                    )
                )
            stacks.append(
                ManifestStack(
                    stack_number=item.stack.stack_number,
                    room_type=item.stack.room_type,
                    frame_count=item.stack.frame_count,
                    images=listed,
                )
            )

        manifest = RawHandoffManifest(
            job_number=job.job_number,
            shoot_code=shoot.shoot_code,
            shoot_date=format_shoot_date(shoot.created_at.astimezone(UTC).date()),
            property_name=job.property_name,
            property_address=job.property_address,
            stacks=stacks,
            generated_at=datetime.now(tz=UTC).isoformat(),
        )
        entries.append((MANIFEST_FILENAME, manifest.to_json_bytes()))
        archive = self.archive_writer.build(entries)
        if not archive:
            raise PackagingError("ZIP archive is empty")

        filename = f"{job.job_number}_{shoot.shoot_code}_handoff.zip"
        path = object_path(job.id, shoot.id, filename, "handoff")
        upload = await self.storage.upload(path, archive, ZIP_CONTENT_TYPE)
        if not upload.ok:
            logger.error("Failed to upload handoff package %s: %s", path, upload.error)
            return HandoffResult(
                success=False,
                error=f"Failed to upload handoff package: {upload.error}",
                error_kind=ErrorKind.STORAGE,
            )

        self.shoot_service.advance_status(shoot.id, ShootStatus.HANDOFF_GENERATED)
        image_count = len(entries) - 1
        logger.info(
            "Handoff package %s built with %d stacks and %d images",
            path,
            len(stacks),
            image_count,
        )
        return HandoffResult(
            success=True,
            file_path=path,
            stack_count=len(stacks),
            image_count=image_count,
            skipped_count=skipped,
            manifest=manifest,
        )
