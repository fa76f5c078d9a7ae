"""Client delivery packaging of approved edited images."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from shoot_pipeline.domain.filenames import object_path
from shoot_pipeline.domain.manifests import MANIFEST_FILENAME, FinalHandoffManifest
from shoot_pipeline.domain.models import (
    ApprovalStatus,
    EditedImageRecord,
    EditorTokenRecord,
    TokenType,
)
from shoot_pipeline.domain.results import ErrorKind
from shoot_pipeline.services.archives import ArchiveWriter
from shoot_pipeline.services.editor_returns import EditedImageRepository
from shoot_pipeline.services.handoff import ZIP_CONTENT_TYPE
from shoot_pipeline.services.notifications import (
    FINAL_HANDOFF_READY,
    Notifier,
    notify_quietly,
)
from shoot_pipeline.services.shoots import ShootService
from shoot_pipeline.services.storage import BlobStorage
from shoot_pipeline.services.tokens import TokenService

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class FinalHandoffResult:
    """Outcome of building the client delivery package."""

    success: bool
    file_path: str | None = None
    version: int | None = None
    total_images: int = 0
    requested_images: int = 0
    manifest: FinalHandoffManifest | None = None
    download_token: EditorTokenRecord | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


@dataclass
class FinalHandoffService:
    """Packages approved images of one version, grouped by room."""

    shoot_service: ShootService
    edited_images: EditedImageRepository
    storage: BlobStorage
    archive_writer: ArchiveWriter
    tokens: TokenService
    notifier: Notifier
    token_validity: timedelta = timedelta(days=7)

    async def generate(
        self, job_id: UUID, shoot_id: UUID, version: int | None = None
    ) -> FinalHandoffResult:
        """Build, upload and issue a download token for the delivery ZIP."""
        try:
            return await self._generate(job_id, shoot_id, version)
        except Exception as exc:
            logger.exception("Error generating final handoff for %s", shoot_id)
            return FinalHandoffResult(
                success=False, error=str(exc), error_kind=ErrorKind.INTERNAL
            )

    async def _generate(
        self, job_id: UUID, shoot_id: UUID, version: int | None
    ) -> FinalHandoffResult:
        loaded = self.shoot_service.load(shoot_id)
        if not loaded.success or loaded.shoot is None or loaded.job is None:
            return FinalHandoffResult(
                success=False, error=loaded.error, error_kind=loaded.error_kind
            )
        shoot, job = loaded.shoot, loaded.job
        if job.id != job_id:
            return FinalHandoffResult(
                success=False,
                error="Shoot does not belong to this project",
                error_kind=ErrorKind.NOT_FOUND,
            )

        approved = [
            image
            for image in self.edited_images.list_edited_images(shoot_id)
            if image.client_approval_status == ApprovalStatus.APPROVED
        ]
        if not approved:
            return FinalHandoffResult(
                success=False,
                error="No approved images found for handoff",
                error_kind=ErrorKind.VALIDATION,
            )
        target = version or max(image.version for image in approved)
        selected = [image for image in approved if image.version == target]
        if not selected:
            return FinalHandoffResult(
                success=False,
                version=target,
                error=f"No approved images found for version {target}",
                error_kind=ErrorKind.VALIDATION,
            )

        by_room: dict[str, list[EditedImageRecord]] = defaultdict(list)
        for image in selected:
            by_room[image.room_type or UNCATEGORIZED].append(image)

        entries: list[tuple[str, bytes]] = []
        packaged: dict[str, list[str]] = {}
        for room, images in by_room.items():
            for image in images:
                download = await self.storage.download(image.file_path)
                if not download.ok or download.value is None:
                    logger.warning(
                        "Failed to download %s: %s", image.filename, download.error
                    )
                    continue
                entries.append((f"{room}/{image.filename}", download.value))
                packaged.setdefault(room, []).append(image.filename)

        if not entries:
            return FinalHandoffResult(
                success=False,
                version=target,
                requested_images=len(selected),
                error="Failed to package any images",
                error_kind=ErrorKind.PACKAGING,
            )

        manifest = FinalHandoffManifest(
            job_number=job.job_number,
            shoot_code=shoot.shoot_code,
            property_name=job.property_name,
            generated_at=datetime.now(tz=UTC).isoformat(),
            version=target,
            total_images=len(entries),
            images_by_room=packaged,
        )
        entries.append((MANIFEST_FILENAME, manifest.to_json_bytes()))
        archive = self.archive_writer.build(entries)
        if not archive:
            return FinalHandoffResult(
                success=False,
                version=target,
                error="ZIP archive is empty",
                error_kind=ErrorKind.PACKAGING,
            )

        filename = f"{job.job_number}_{shoot.shoot_code}_v{target}_final.zip"
        path = object_path(job.id, shoot.id, filename, "handoff")
        upload = await self.storage.upload(path, archive, ZIP_CONTENT_TYPE)
        if not upload.ok:
            return FinalHandoffResult(
                success=False,
                version=target,
                error=f"Failed to upload handoff package: {upload.error}",
                error_kind=ErrorKind.STORAGE,
            )

        token = self.tokens.issue(
            shoot_id, TokenType.DOWNLOAD, self.token_validity, path
        )
        await notify_quietly(
            self.notifier,
            FINAL_HANDOFF_READY,
            shoot_id,
            {
                "shootCode": shoot.shoot_code,
                "version": target,
                "totalImages": manifest.total_images,
                "downloadToken": token.token,
            },
        )
        logger.info(
            "Final handoff %s packaged %d of %d approved images",
            path,
            manifest.total_images,
            len(selected),
        )
        return FinalHandoffResult(
            success=True,
            file_path=path,
            version=target,
            total_images=manifest.total_images,
            requested_images=len(selected),
            manifest=manifest,
            download_token=token,
        )
