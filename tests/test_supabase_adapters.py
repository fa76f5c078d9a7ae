"""Tests for Supabase adapter implementations."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from shoot_pipeline.adapters.supabase_blob_storage import SupabaseBlobStorage
from shoot_pipeline.adapters.supabase_edited_image_repository import (
    SupabaseEditedImageRepository,
)
from shoot_pipeline.adapters.supabase_image_repository import SupabaseImageRepository
from shoot_pipeline.adapters.supabase_job_repository import SupabaseJobRepository
from shoot_pipeline.adapters.supabase_shoot_repository import SupabaseShootRepository
from shoot_pipeline.adapters.supabase_stack_repository import SupabaseStackRepository
from shoot_pipeline.adapters.supabase_token_repository import SupabaseTokenRepository
from shoot_pipeline.domain.models import (
    ApprovalStatus,
    NewEditedImage,
    NewImage,
    ShootStatus,
    TokenType,
)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def is_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def gt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeBucket:
    objects: dict[str, bytes] = field(default_factory=dict)
    options: dict[str, object] = field(default_factory=dict)

    def upload(self, path: str, data: bytes, options: dict) -> dict:
        self.objects[path] = data
        self.options = options
        return {"Key": path}

    def download(self, path: str) -> bytes:
        if path not in self.objects:
            raise RuntimeError("Object not found")
        return self.objects[path]

    def remove(self, paths: list[str]) -> list[dict]:
        for path in paths:
            self.objects.pop(path, None)
        return []

    def list(self, folder: str) -> list[dict[str, object]]:
        prefix = f"{folder}/"
        return [
            {"name": key.removeprefix(prefix)}
            for key in self.objects
            if key.startswith(prefix)
        ]


@dataclass
class FakeStorage:
    buckets: dict[str, FakeBucket] = field(default_factory=dict)

    def from_(self, name: str) -> FakeBucket:
        return self.buckets.setdefault(name, FakeBucket())


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    storage: FakeStorage = field(default_factory=FakeStorage)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _shoot_row(shoot_id: str, job_id: str, status: str = "initialized") -> dict:
    return {
        "id": shoot_id,
        "job_id": job_id,
        "shoot_code": "ab12c",
        "status": status,
        "created_at": "2025-01-20T10:00:00+00:00",
        "status_changed_at": None,
    }


def test_supabase_job_repository_lookup() -> None:
    client = FakeSupabaseClient()
    job_id = str(uuid4())
    client.table("jobs").queue(
        "select",
        [{"id": job_id, "job_number": "100234", "property_name": "Lakeside Villa"}],
    )

    repository = SupabaseJobRepository(client)
    job = repository.get_job_by_number("100234")

    assert job is not None
    assert str(job.id) == job_id
    assert job.property_name == "Lakeside Villa"
    assert job.property_address is None
    assert repository.get_job(uuid4()) is None


def test_supabase_shoot_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    shoots_table = client.table("shoots")
    shoot_id, job_id = str(uuid4()), str(uuid4())
    shoots_table.queue("insert", [_shoot_row(shoot_id, job_id)])
    shoots_table.queue("select", [_shoot_row(shoot_id, job_id, "uploading")])

    repository = SupabaseShootRepository(client)
    created = repository.create_shoot(uuid4(), "ab12c")
    fetched = repository.get_shoot_by_code("ab12c")

    assert created.status == ShootStatus.INITIALIZED
    assert created.created_at == datetime(2025, 1, 20, 10, tzinfo=UTC)
    assert fetched is not None
    assert fetched.status == ShootStatus.UPLOADING
    assert shoots_table.last_filters == [("shoot_code", "ab12c")]


def test_supabase_shoot_status_update_writes_timestamp_column() -> None:
    client = FakeSupabaseClient()
    shoots_table = client.table("shoots")
    shoot_id = uuid4()
    shoots_table.queue("update", [_shoot_row(str(shoot_id), str(uuid4()))])
    changed_at = datetime(2025, 1, 20, 12, tzinfo=UTC)

    repository = SupabaseShootRepository(client)
    repository.update_shoot_status(
        shoot_id, ShootStatus.UPLOADING, "upload_started_at", changed_at
    )

    assert shoots_table.last_payload == {
        "status": "uploading",
        "upload_started_at": changed_at.isoformat(),
        "status_changed_at": changed_at.isoformat(),
    }
    assert ("id", str(shoot_id)) in shoots_table.last_filters

    with pytest.raises(RuntimeError):
        repository.update_shoot_status(
            shoot_id, ShootStatus.UPLOADING, "upload_started_at", changed_at
        )


def test_supabase_stack_repository() -> None:
    client = FakeSupabaseClient()
    stacks_table = client.table("stacks")
    stack_id, shoot_id = str(uuid4()), str(uuid4())
    stacks_table.queue(
        "insert",
        [
            {
                "id": stack_id,
                "shoot_id": shoot_id,
                "stack_number": "g001",
                "room_type": "undefined_space",
                "frame_count": 5,
                "sequence_index": 1,
            }
        ],
    )
    stacks_table.queue("select", [{"sequence_index": 3}])

    repository = SupabaseStackRepository(client)
    stack = repository.create_stack(uuid4(), "g001", 5, "undefined_space", 1)

    assert str(stack.id) == stack_id
    assert stack.frame_count == 5
    assert repository.max_sequence_index(uuid4(), "küche") == 3
    assert repository.max_sequence_index(uuid4(), "küche") == 0


def test_supabase_image_repository() -> None:
    client = FakeSupabaseClient()
    images_table = client.table("images")
    image_id, shoot_id, stack_id = str(uuid4()), uuid4(), uuid4()
    images_table.queue(
        "insert",
        [
            {
                "id": image_id,
                "shoot_id": str(shoot_id),
                "stack_id": str(stack_id),
                "original_filename": "IMG_1.CR3",
                "renamed_filename": "20250120-ab12c_kueche_001_g001_e0.cr3",
                "file_path": "projects/x/raw/y/IMG_1.CR3",
                "file_size": 42,
                "mime_type": "image/x-canon-cr3",
                "exposure_value": "e0",
                "position_in_stack": 2,
                "exif_date": None,
            }
        ],
    )

    repository = SupabaseImageRepository(client)
    image = repository.create_image(
        NewImage(
            shoot_id=shoot_id,
            stack_id=stack_id,
            original_filename="IMG_1.CR3",
            renamed_filename="20250120-ab12c_kueche_001_g001_e0.cr3",
            file_path="projects/x/raw/y/IMG_1.CR3",
            file_size=42,
            mime_type="image/x-canon-cr3",
            exposure_value="e0",
            position_in_stack=2,
            exif_date=None,
        )
    )

    assert str(image.id) == image_id
    assert image.stack_id == stack_id
    assert images_table.last_payload["stack_id"] == str(stack_id)  # type: ignore[index]

    repository.update_renamed_filename(image.id, "renamed.cr3")
    assert images_table.last_payload == {"renamed_filename": "renamed.cr3"}


def test_supabase_edited_image_repository() -> None:
    client = FakeSupabaseClient()
    edited_table = client.table("edited_images")
    image_id, shoot_id = str(uuid4()), uuid4()
    row = {
        "id": image_id,
        "shoot_id": str(shoot_id),
        "stack_id": None,
        "filename": "20250120-ab12c_kueche_001_v1.jpg",
        "file_path": "projects/x/edits/y/final/v1/a.jpg",
        "file_size": 10,
        "version": 1,
        "room_type": "küche",
        "sequence_index": 1,
        "client_approval_status": "pending",
        "created_at": "2025-01-20T10:00:00+00:00",
        "reviewed_at": None,
    }
    edited_table.queue("insert", [row])
    edited_table.queue(
        "update",
        [
            {
                **row,
                "client_approval_status": "approved",
                "reviewed_at": "2025-01-21T09:00:00+00:00",
            }
        ],
    )

    repository = SupabaseEditedImageRepository(client)
    created = repository.create_edited_image(
        NewEditedImage(
            shoot_id=shoot_id,
            stack_id=None,
            filename=row["filename"],  # type: ignore[arg-type]
            file_path=row["file_path"],  # type: ignore[arg-type]
            file_size=10,
            version=1,
            room_type="küche",
            sequence_index=1,
        )
    )
    assert created.client_approval_status == ApprovalStatus.PENDING
    payload = edited_table.last_payload
    assert isinstance(payload, dict)
    assert payload["client_approval_status"] == "pending"

    updated = repository.update_approval_status(
        created.id, ApprovalStatus.APPROVED, datetime.now(tz=UTC)
    )
    assert updated is not None
    assert updated.client_approval_status == ApprovalStatus.APPROVED
    assert updated.reviewed_at is not None
    assert repository.update_approval_status(
        created.id, ApprovalStatus.APPROVED, datetime.now(tz=UTC)
    ) is None


def test_supabase_token_repository_conditional_use() -> None:
    client = FakeSupabaseClient()
    tokens_table = client.table("editor_tokens")
    expires_at = datetime.now(tz=UTC) + timedelta(hours=36)
    tokens_table.queue(
        "insert",
        [
            {
                "id": str(uuid4()),
                "shoot_id": str(uuid4()),
                "token": "abc",
                "token_type": "download",
                "expires_at": expires_at.isoformat(),
                "file_path": "projects/x/handoff/a.zip",
                "used_at": None,
            }
        ],
    )
    tokens_table.queue("update", [{"token": "abc"}])

    repository = SupabaseTokenRepository(client)
    record = repository.create_token(
        uuid4(), TokenType.DOWNLOAD, "abc", expires_at, "projects/x/handoff/a.zip"
    )
    now = datetime.now(tz=UTC)

    assert record.token_type == TokenType.DOWNLOAD
    assert record.used_at is None
    assert repository.mark_used_if_valid("abc", now) is True
    assert ("used_at", "null") in tokens_table.last_filters
    assert ("expires_at", now.isoformat()) in tokens_table.last_filters
    assert repository.mark_used_if_valid("abc", now) is False


def test_supabase_blob_storage_roundtrip() -> None:
    client = FakeSupabaseClient()
    storage = SupabaseBlobStorage(client, "shoots")  # type: ignore[arg-type]

    async def scenario() -> None:
        uploaded = await storage.upload("projects/a/raw/b/one.cr3", b"raw", "image/x")
        assert uploaded.ok
        listed = await storage.list("projects/a/raw/b/")
        assert listed.value == ["projects/a/raw/b/one.cr3"]
        downloaded = await storage.download("projects/a/raw/b/one.cr3")
        assert downloaded.value == b"raw"
        assert (await storage.delete("projects/a/raw/b/one.cr3")).ok
        missing = await storage.download("projects/a/raw/b/one.cr3")
        assert not missing.ok
        assert missing.error == "Object not found"

    asyncio.run(scenario())

    assert client.storage.buckets["shoots"].options == {
        "content-type": "image/x",
        "upsert": "true",
    }
