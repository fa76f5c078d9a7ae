"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from shoot_pipeline.adapters.exifread_decoder import ExifReadDecoder
from shoot_pipeline.adapters.supabase_blob_storage import SupabaseBlobStorage
from shoot_pipeline.adapters.supabase_edited_image_repository import (
    SupabaseEditedImageRepository,
)
from shoot_pipeline.adapters.supabase_image_repository import SupabaseImageRepository
from shoot_pipeline.adapters.supabase_job_repository import SupabaseJobRepository
from shoot_pipeline.adapters.supabase_shoot_repository import SupabaseShootRepository
from shoot_pipeline.adapters.supabase_stack_repository import SupabaseStackRepository
from shoot_pipeline.adapters.supabase_token_repository import SupabaseTokenRepository
from shoot_pipeline.adapters.webhook_notifier import HttpxWebhookNotifier
from shoot_pipeline.adapters.zip_archives import ZipArchiveReader, ZipArchiveWriter
from shoot_pipeline.config import Settings
from shoot_pipeline.services.editor_returns import EditorReturnService
from shoot_pipeline.services.exif import ExifService
from shoot_pipeline.services.final_handoff import FinalHandoffService
from shoot_pipeline.services.handoff import HandoffService
from shoot_pipeline.services.intake import IntakeService
from shoot_pipeline.services.notifications import LoggingNotifier, Notifier
from shoot_pipeline.services.queue import InMemoryProcessingQueue, ProcessingQueue
from shoot_pipeline.services.shoots import ShootService
from shoot_pipeline.services.storage import BlobStorage
from shoot_pipeline.services.tokens import TokenService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    storage: BlobStorage
    shoot_service: ShootService
    token_service: TokenService
    intake_service: IntakeService
    handoff_service: HandoffService
    editor_return_service: EditorReturnService
    final_handoff_service: FinalHandoffService
    queue: ProcessingQueue
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    storage = SupabaseBlobStorage(supabase_client, resolved_settings.storage_bucket)
    edited_image_repository = SupabaseEditedImageRepository(supabase_client)
    shoot_service = ShootService(
        jobs=SupabaseJobRepository(supabase_client),
        shoots=SupabaseShootRepository(supabase_client),
        stacks=SupabaseStackRepository(supabase_client),
        images=SupabaseImageRepository(supabase_client),
    )
    token_service = TokenService(SupabaseTokenRepository(supabase_client))
    webhook_notifier = (
        HttpxWebhookNotifier.create(resolved_settings.notification_webhook_url)
        if resolved_settings.notification_webhook_url
        else None
    )
    notifier: Notifier = webhook_notifier or LoggingNotifier()
    queue = InMemoryProcessingQueue()
    archive_writer = ZipArchiveWriter()

    intake_service = IntakeService(
        shoot_service=shoot_service,
        images=shoot_service.images,
        exif_service=ExifService(ExifReadDecoder()),
        storage=storage,
    )
    handoff_service = HandoffService(
        shoot_service=shoot_service,
        storage=storage,
        archive_writer=archive_writer,
        tokens=token_service,
        notifier=notifier,
        token_validity=timedelta(hours=resolved_settings.handoff_token_hours),
    )
    editor_return_service = EditorReturnService(
        shoot_service=shoot_service,
        edited_images=edited_image_repository,
        storage=storage,
        archive_reader=ZipArchiveReader(
            max_entry_bytes=resolved_settings.max_upload_bytes
        ),
        tokens=token_service,
        queue=queue,
        notifier=notifier,
        quiet_window=timedelta(
            minutes=resolved_settings.editor_quiet_window_minutes
        ),
    )
    final_handoff_service = FinalHandoffService(
        shoot_service=shoot_service,
        edited_images=edited_image_repository,
        storage=storage,
        archive_writer=archive_writer,
        tokens=token_service,
        notifier=notifier,
        token_validity=timedelta(days=resolved_settings.final_handoff_token_days),
    )

    async def close_resources() -> None:
        if webhook_notifier is not None:
            await webhook_notifier.close()

    return AppContainer(
        settings=resolved_settings,
        storage=storage,
        shoot_service=shoot_service,
        token_service=token_service,
        intake_service=intake_service,
        handoff_service=handoff_service,
        editor_return_service=editor_return_service,
        final_handoff_service=final_handoff_service,
        queue=queue,
        close_resources=close_resources,
    )
