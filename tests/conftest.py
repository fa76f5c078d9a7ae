"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from shoot_pipeline.adapters.zip_archives import ZipArchiveReader, ZipArchiveWriter
from shoot_pipeline.config import Settings
from shoot_pipeline.containers import AppContainer
from shoot_pipeline.domain.models import (
    ApprovalStatus,
    EditedImageRecord,
    EditorTokenRecord,
    ImageRecord,
    JobRecord,
    NewEditedImage,
    NewImage,
    ShootRecord,
    ShootStatus,
    StackRecord,
    TokenType,
)
from shoot_pipeline.domain.results import StorageResult
from shoot_pipeline.services.editor_returns import (
    EditedImageRepository,
    EditorReturnService,
)
from shoot_pipeline.services.exif import ExifDecoder, ExifService
from shoot_pipeline.services.final_handoff import FinalHandoffService
from shoot_pipeline.services.handoff import HandoffService
from shoot_pipeline.services.intake import IntakeService
from shoot_pipeline.services.notifications import Notifier
from shoot_pipeline.services.queue import InMemoryProcessingQueue
from shoot_pipeline.services.shoots import (
    ImageRepository,
    JobRepository,
    ShootRepository,
    ShootService,
    StackRepository,
)
from shoot_pipeline.services.storage import BlobStorage
from shoot_pipeline.services.tokens import EditorTokenRepository, TokenService

# Structurally valid JWT so supabase.create_client accepts it.
TEST_SUPABASE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJl"
)


@dataclass
class InMemoryJobRepository(JobRepository):
    """In-memory job repository for tests."""

    jobs: dict[UUID, JobRecord] = field(default_factory=dict)

    def add(self, job_number: str = "100234", **kwargs) -> JobRecord:
        job = JobRecord(id=uuid4(), job_number=job_number, **kwargs)
        self.jobs[job.id] = job
        return job

    def get_job(self, job_id: UUID) -> JobRecord | None:
        return self.jobs.get(job_id)

    def get_job_by_number(self, job_number: str) -> JobRecord | None:
        for job in self.jobs.values():
            if job.job_number == job_number:
                return job
        return None


@dataclass
class InMemoryShootRepository(ShootRepository):
    """In-memory shoot repository for tests."""

    shoots: dict[UUID, ShootRecord] = field(default_factory=dict)
    stamps: dict[UUID, dict[str, datetime]] = field(default_factory=dict)

    def get_shoot(self, shoot_id: UUID) -> ShootRecord | None:
        return self.shoots.get(shoot_id)

    def get_shoot_by_code(self, shoot_code: str) -> ShootRecord | None:
        for shoot in self.shoots.values():
            if shoot.shoot_code == shoot_code:
                return shoot
        return None

    def create_shoot(self, job_id: UUID, shoot_code: str) -> ShootRecord:
        shoot = ShootRecord(
            id=uuid4(),
            job_id=job_id,
            shoot_code=shoot_code,
            status=ShootStatus.INITIALIZED,
            created_at=datetime.now(tz=UTC),
        )
        self.shoots[shoot.id] = shoot
        return shoot

    def update_shoot_status(
        self,
        shoot_id: UUID,
        status: ShootStatus,
        timestamp_field: str,
        changed_at: datetime,
    ) -> None:
        self.shoots[shoot_id] = replace(
            self.shoots[shoot_id], status=status, status_changed_at=changed_at
        )
        self.stamps.setdefault(shoot_id, {})[timestamp_field] = changed_at


@dataclass
class InMemoryStackRepository(StackRepository):
    """In-memory stack repository for tests."""

    stacks: dict[UUID, StackRecord] = field(default_factory=dict)

    def create_stack(  # noqa: PLR0913
        self,
        shoot_id: UUID,
        stack_number: str,
        frame_count: int,
        room_type: str,
        sequence_index: int,
    ) -> StackRecord:
        stack = StackRecord(
            id=uuid4(),
            shoot_id=shoot_id,
            stack_number=stack_number,
            room_type=room_type,
            frame_count=frame_count,
            sequence_index=sequence_index,
        )
        self.stacks[stack.id] = stack
        return stack

    def get_stack(self, stack_id: UUID) -> StackRecord | None:
        return self.stacks.get(stack_id)

    def list_stacks(self, shoot_id: UUID) -> list[StackRecord]:
        return sorted(
            (stack for stack in self.stacks.values() if stack.shoot_id == shoot_id),
            key=lambda stack: stack.stack_number,
        )

    def max_sequence_index(self, shoot_id: UUID, room_type: str) -> int:
        return max(
            (
                stack.sequence_index
                for stack in self.stacks.values()
                if stack.shoot_id == shoot_id and stack.room_type == room_type
            ),
            default=0,
        )

    def update_stack_room(
        self, stack_id: UUID, room_type: str, sequence_index: int
    ) -> None:
        self.stacks[stack_id] = replace(
            self.stacks[stack_id], room_type=room_type, sequence_index=sequence_index
        )


@dataclass
class InMemoryImageRepository(ImageRepository):
    """In-memory raw image repository for tests."""

    images: dict[UUID, ImageRecord] = field(default_factory=dict)

    def create_image(self, image: NewImage) -> ImageRecord:
        record = ImageRecord(id=uuid4(), **vars(image))
        self.images[record.id] = record
        return record

    def list_stack_images(self, stack_id: UUID) -> list[ImageRecord]:
        return sorted(
            (image for image in self.images.values() if image.stack_id == stack_id),
            key=lambda image: image.position_in_stack,
        )

    def update_renamed_filename(self, image_id: UUID, renamed_filename: str) -> None:
        self.images[image_id] = replace(
            self.images[image_id], renamed_filename=renamed_filename
        )


@dataclass
class InMemoryEditedImageRepository(EditedImageRepository):
    """In-memory edited image repository for tests."""

    images: dict[UUID, EditedImageRecord] = field(default_factory=dict)
    failing_filenames: set[str] = field(default_factory=set)

    def add(  # noqa: PLR0913
        self,
        shoot_id: UUID,
        filename: str,
        version: int = 1,
        room_type: str | None = "kitchen",
        status: ApprovalStatus = ApprovalStatus.APPROVED,
        file_path: str | None = None,
    ) -> EditedImageRecord:
        record = EditedImageRecord(
            id=uuid4(),
            shoot_id=shoot_id,
            stack_id=None,
            filename=filename,
            file_path=file_path or f"edits/{filename}",
            file_size=10,
            version=version,
            room_type=room_type,
            sequence_index=1,
            client_approval_status=status,
            created_at=datetime.now(tz=UTC),
        )
        self.images[record.id] = record
        return record

    def create_edited_image(self, image: NewEditedImage) -> EditedImageRecord:
        if image.filename in self.failing_filenames:
            raise RuntimeError("database unavailable")
        record = EditedImageRecord(
            id=uuid4(),
            client_approval_status=ApprovalStatus.PENDING,
            created_at=datetime.now(tz=UTC),
            **vars(image),
        )
        self.images[record.id] = record
        return record

    def get_edited_image(self, image_id: UUID) -> EditedImageRecord | None:
        return self.images.get(image_id)

    def list_edited_images(self, shoot_id: UUID) -> list[EditedImageRecord]:
        return [image for image in self.images.values() if image.shoot_id == shoot_id]

    def update_approval_status(
        self, image_id: UUID, status: ApprovalStatus, reviewed_at: datetime
    ) -> EditedImageRecord | None:
        image = self.images.get(image_id)
        if image is None:
            return None
        updated = replace(
            image, client_approval_status=status, reviewed_at=reviewed_at
        )
        self.images[image_id] = updated
        return updated


@dataclass
class InMemoryTokenRepository(EditorTokenRepository):
    """In-memory token repository for tests."""

    tokens: dict[str, EditorTokenRecord] = field(default_factory=dict)

    def create_token(  # noqa: PLR0913
        self,
        shoot_id: UUID,
        token_type: TokenType,
        token: str,
        expires_at: datetime,
        file_path: str | None,
    ) -> EditorTokenRecord:
        record = EditorTokenRecord(
            id=uuid4(),
            shoot_id=shoot_id,
            token=token,
            token_type=token_type,
            expires_at=expires_at,
            file_path=file_path,
        )
        self.tokens[token] = record
        return record

    def get_token(self, token: str) -> EditorTokenRecord | None:
        return self.tokens.get(token)

    def mark_used_if_valid(self, token: str, now: datetime) -> bool:
        record = self.tokens.get(token)
        if record is None or record.used_at is not None or record.expires_at <= now:
            return False
        self.tokens[token] = replace(record, used_at=now)
        return True

    def expire(self, token: str) -> None:
        record = self.tokens[token]
        self.tokens[token] = replace(
            record, expires_at=datetime.now(tz=UTC) - timedelta(minutes=1)
        )


@dataclass
class FakeBlobStorage(BlobStorage):
    """In-memory blob store that can be told to fail for given keys."""

    objects: dict[str, bytes] = field(default_factory=dict)
    content_types: dict[str, str] = field(default_factory=dict)
    failing_uploads: set[str] = field(default_factory=set)
    failing_downloads: set[str] = field(default_factory=set)

    async def upload(
        self, path: str, data: bytes, content_type: str
    ) -> StorageResult[None]:
        if path in self.failing_uploads or any(
            path.endswith(name) for name in self.failing_uploads
        ):
            return StorageResult.failure("upload refused")
        self.objects[path] = data
        self.content_types[path] = content_type
        return StorageResult.success()

    async def download(self, path: str) -> StorageResult[bytes]:
        if path in self.failing_downloads or path not in self.objects:
            return StorageResult.failure(f"object not found: {path}")
        return StorageResult.success(self.objects[path])

    async def list(self, prefix: str) -> StorageResult[list[str]]:
        return StorageResult.success(
            sorted(key for key in self.objects if key.startswith(prefix))
        )

    async def delete(self, path: str) -> StorageResult[None]:
        self.objects.pop(path, None)
        return StorageResult.success()


@dataclass
class FakeExifDecoder(ExifDecoder):
    """Decoder that returns tags registered per payload."""

    tags: dict[bytes, dict[str, object]] = field(default_factory=dict)

    def decode(self, data: bytes) -> dict[str, object]:
        if data not in self.tags:
            raise ValueError("no EXIF block")
        return self.tags[data]


@dataclass
class RecordingNotifier(Notifier):
    """Notifier that records events."""

    events: list[tuple[str, UUID, dict[str, object]]] = field(default_factory=list)

    async def notify(
        self, event: str, shoot_id: UUID, payload: dict[str, object]
    ) -> None:
        self.events.append((event, shoot_id, payload))


@dataclass
class Workspace:
    """Every fake wired into the services, for direct inspection in tests."""

    jobs: InMemoryJobRepository
    shoots: InMemoryShootRepository
    stacks: InMemoryStackRepository
    images: InMemoryImageRepository
    edited_images: InMemoryEditedImageRepository
    tokens: InMemoryTokenRepository
    storage: FakeBlobStorage
    exif_decoder: FakeExifDecoder
    notifier: RecordingNotifier
    queue: InMemoryProcessingQueue
    shoot_service: ShootService
    token_service: TokenService
    intake_service: IntakeService
    handoff_service: HandoffService
    editor_return_service: EditorReturnService
    final_handoff_service: FinalHandoffService

    def new_shoot(
        self,
        status: ShootStatus = ShootStatus.INITIALIZED,
        shoot_code: str = "ab12c",
        job_number: str = "100234",
    ) -> tuple[JobRecord, ShootRecord]:
        job = self.jobs.get_job_by_number(job_number) or self.jobs.add(
            job_number,
            property_name="Lakeside Villa",
            property_address="1 Shore Road",
        )
        shoot = self.shoots.create_shoot(job.id, shoot_code)
        if status != ShootStatus.INITIALIZED:
            shoot = replace(shoot, status=status)
            self.shoots.shoots[shoot.id] = shoot
        return job, shoot


def build_workspace() -> Workspace:
    jobs = InMemoryJobRepository()
    shoots = InMemoryShootRepository()
    stacks = InMemoryStackRepository()
    images = InMemoryImageRepository()
    edited_images = InMemoryEditedImageRepository()
    tokens = InMemoryTokenRepository()
    storage = FakeBlobStorage()
    exif_decoder = FakeExifDecoder()
    notifier = RecordingNotifier()
    queue = InMemoryProcessingQueue()
    writer = ZipArchiveWriter()

    shoot_service = ShootService(jobs=jobs, shoots=shoots, stacks=stacks, images=images)
    token_service = TokenService(tokens)
    return Workspace(
        jobs=jobs,
        shoots=shoots,
        stacks=stacks,
        images=images,
        edited_images=edited_images,
        tokens=tokens,
        storage=storage,
        exif_decoder=exif_decoder,
        notifier=notifier,
        queue=queue,
        shoot_service=shoot_service,
        token_service=token_service,
        intake_service=IntakeService(
            shoot_service=shoot_service,
            images=images,
            exif_service=ExifService(exif_decoder),
            storage=storage,
        ),
        handoff_service=HandoffService(
            shoot_service=shoot_service,
            storage=storage,
            archive_writer=writer,
            tokens=token_service,
            notifier=notifier,
        ),
        editor_return_service=EditorReturnService(
            shoot_service=shoot_service,
            edited_images=edited_images,
            storage=storage,
            archive_reader=ZipArchiveReader(),
            tokens=token_service,
            queue=queue,
            notifier=notifier,
        ),
        final_handoff_service=FinalHandoffService(
            shoot_service=shoot_service,
            edited_images=edited_images,
            storage=storage,
            archive_writer=writer,
            tokens=token_service,
            notifier=notifier,
        ),
    )


@pytest.fixture
def workspace() -> Workspace:
    return build_workspace()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=TEST_SUPABASE_KEY,
        producer_token="producer-token",
        public_base_url="https://pipeline.example.com",
    )


@pytest.fixture
def container(settings: Settings, workspace: Workspace) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        storage=workspace.storage,
        shoot_service=workspace.shoot_service,
        token_service=workspace.token_service,
        intake_service=workspace.intake_service,
        handoff_service=workspace.handoff_service,
        editor_return_service=workspace.editor_return_service,
        final_handoff_service=workspace.final_handoff_service,
        queue=workspace.queue,
        close_resources=close_resources,
    )
