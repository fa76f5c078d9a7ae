"""Shoot lifecycle, stack allocation and room assignment."""

import logging
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from shoot_pipeline.domain.filenames import (
    raw_handoff_filename,
    stack_number_token,
    stack_ordinal,
)
from shoot_pipeline.domain.models import (
    STATUS_TIMESTAMP_FIELDS,
    ImageRecord,
    JobRecord,
    NewImage,
    ShootRecord,
    ShootStatus,
    StackRecord,
)
from shoot_pipeline.domain.results import ErrorKind
from shoot_pipeline.domain.rooms import DEFAULT_ROOM_TYPE, normalize_room_type
from shoot_pipeline.services.locks import KeyedLocks

logger = logging.getLogger(__name__)

SHOOT_CODE_LENGTH = 5
_SHOOT_CODE_ALPHABET = string.ascii_lowercase + string.digits
_MAX_CODE_ATTEMPTS = 10


class JobRepository(Protocol):
    """Persistence interface for jobs."""

    def get_job(self, job_id: UUID) -> JobRecord | None:
        """Return a job by id."""

    def get_job_by_number(self, job_number: str) -> JobRecord | None:
        """Return a job by its human-facing number."""


class ShootRepository(Protocol):
    """Persistence interface for shoots."""

    def get_shoot(self, shoot_id: UUID) -> ShootRecord | None:
        """Return a shoot by id."""

    def get_shoot_by_code(self, shoot_code: str) -> ShootRecord | None:
        """Return a shoot by its code."""

    def create_shoot(self, job_id: UUID, shoot_code: str) -> ShootRecord:
        """Create a shoot in the initialized state."""

    def update_shoot_status(
        self,
        shoot_id: UUID,
        status: ShootStatus,
        timestamp_field: str,
        changed_at: datetime,
    ) -> None:
        """Write the status and its timestamp column in a single update."""


class StackRepository(Protocol):
    """Persistence interface for exposure stacks."""

    def create_stack(  # noqa: PLR0913
        self,
        shoot_id: UUID,
        stack_number: str,
        frame_count: int,
        room_type: str,
        sequence_index: int,
    ) -> StackRecord:
        """Create a stack row."""

    def get_stack(self, stack_id: UUID) -> StackRecord | None:
        """Return a stack by id."""

    def list_stacks(self, shoot_id: UUID) -> list[StackRecord]:
        """Return the stacks of a shoot ordered by stack number."""

    def max_sequence_index(self, shoot_id: UUID, room_type: str) -> int:
        """Return the highest sequence index used for a room, 0 when unused."""

    def update_stack_room(
        self, stack_id: UUID, room_type: str, sequence_index: int
    ) -> None:
        """Move a stack to a room with a new sequence index."""


class ImageRepository(Protocol):
    """Persistence interface for raw intake images."""

    def create_image(self, image: NewImage) -> ImageRecord:
        """Create an image row."""

    def list_stack_images(self, stack_id: UUID) -> list[ImageRecord]:
        """Return the images of a stack ordered by position."""

    def update_renamed_filename(self, image_id: UUID, renamed_filename: str) -> None:
        """Store a recomputed canonical filename."""


@dataclass(frozen=True)
class ShootResult:
    """Outcome of a shoot-level action."""

    success: bool
    shoot: ShootRecord | None = None
    job: JobRecord | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


@dataclass(frozen=True)
class RoomAssignment:
    """Outcome of assigning a room type to a stack."""

    success: bool
    stack: StackRecord | None = None
    renamed_filenames: list[str] = field(default_factory=list)
    error: str | None = None
    error_kind: ErrorKind | None = None


@dataclass(frozen=True)
class StackWithImages:
    """A stack together with its images."""

    stack: StackRecord
    images: list[ImageRecord]


def generate_shoot_code() -> str:
    """Return a random lowercase alphanumeric shoot code."""
    return "".join(
        secrets.choice(_SHOOT_CODE_ALPHABET) for _ in range(SHOOT_CODE_LENGTH)
    )


@dataclass
class ShootService:
    """Owns shoot state transitions and stack numbering."""

    jobs: JobRepository
    shoots: ShootRepository
    stacks: StackRepository
    images: ImageRepository
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    code_factory: Callable[[], str] = generate_shoot_code

    def create_shoot(self, job_number: str) -> ShootResult:
        """Open a new shoot for a job with a unique shoot code."""
        job = self.jobs.get_job_by_number(job_number)
        if job is None:
            return ShootResult(
                success=False,
                error="Job not found with this job number",
                error_kind=ErrorKind.NOT_FOUND,
            )
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = self.code_factory()
            if self.shoots.get_shoot_by_code(code) is None:
                shoot = self.shoots.create_shoot(job.id, code)
                logger.info("Created shoot %s for job %s", code, job.job_number)
                return ShootResult(success=True, shoot=shoot, job=job)
        return ShootResult(
            success=False,
            error="Could not allocate a unique shoot code",
            error_kind=ErrorKind.CONFLICT,
        )

    def load(self, shoot_id: UUID) -> ShootResult:
        """Return a shoot together with its job."""
        shoot = self.shoots.get_shoot(shoot_id)
        if shoot is None:
            return ShootResult(
                success=False, error="Shoot not found", error_kind=ErrorKind.NOT_FOUND
            )
        job = self.jobs.get_job(shoot.job_id)
        if job is None:
            return ShootResult(
                success=False, error="Job not found", error_kind=ErrorKind.NOT_FOUND
            )
        return ShootResult(success=True, shoot=shoot, job=job)

    def advance_status(self, shoot_id: UUID, target: ShootStatus) -> bool:
        """Move a shoot forward; earlier or equal targets are ignored."""
        shoot = self.shoots.get_shoot(shoot_id)
        if shoot is None:
            return False
        if target.rank <= shoot.status.rank:
            logger.info(
                "Shoot %s already at %s, not moving to %s",
                shoot.shoot_code,
                shoot.status,
                target,
            )
            return False
        self.shoots.update_shoot_status(
            shoot_id,
            target,
            STATUS_TIMESTAMP_FIELDS[target],
            datetime.now(tz=UTC),
        )
        logger.info("Shoot %s moved %s -> %s", shoot.shoot_code, shoot.status, target)
        return True

    def complete_intake(self, shoot_id: UUID) -> ShootResult:
        """Mark the upload phase of a shoot as finished."""
        loaded = self.load(shoot_id)
        if not loaded.success or loaded.shoot is None:
            return loaded
        if loaded.shoot.status != ShootStatus.UPLOADING:
            return ShootResult(
                success=False,
                shoot=loaded.shoot,
                error=f"Cannot complete intake from status {loaded.shoot.status}",
                error_kind=ErrorKind.CONFLICT,
            )
        self.advance_status(shoot_id, ShootStatus.INTAKE_COMPLETE)
        return ShootResult(
            success=True, shoot=self.shoots.get_shoot(shoot_id), job=loaded.job
        )

    def list_stacks(self, shoot_id: UUID) -> list[StackWithImages]:
        """Return every stack of a shoot with its images."""
        return [
            StackWithImages(
                stack=stack, images=self.images.list_stack_images(stack.id)
            )
            for stack in self.stacks.list_stacks(shoot_id)
        ]

    async def create_stack(
        self, shoot_id: UUID, frame_count: int, room_type: str = DEFAULT_ROOM_TYPE
    ) -> StackRecord:
        """Create a stack with the next stack number and room sequence index."""
        async with self.locks.lock("shoot", shoot_id):
            existing = self.stacks.list_stacks(shoot_id)
            ordinal = max(
                (stack_ordinal(s.stack_number) for s in existing), default=0
            )
            async with self.locks.lock("room", shoot_id, room_type):
                last = self.stacks.max_sequence_index(shoot_id, room_type)
                sequence_index = last + 1
                return self.stacks.create_stack(
                    shoot_id=shoot_id,
                    stack_number=stack_number_token(ordinal + 1),
                    frame_count=frame_count,
                    room_type=room_type,
                    sequence_index=sequence_index,
                )

    async def assign_room_type(self, stack_id: UUID, room_type: str) -> RoomAssignment:
        """Classify a stack and rename its images to match."""
        stack = self.stacks.get_stack(stack_id)
        if stack is None:
            return RoomAssignment(
                success=False, error="Stack not found", error_kind=ErrorKind.NOT_FOUND
            )
        loaded = self.load(stack.shoot_id)
        if not loaded.success or loaded.shoot is None:
            return RoomAssignment(
                success=False, error=loaded.error, error_kind=loaded.error_kind
            )
        shoot = loaded.shoot
        normalized = normalize_room_type(room_type)
        if normalized == stack.room_type:
            return RoomAssignment(success=True, stack=stack)

        async with self.locks.lock("room", stack.shoot_id, normalized):
            sequence_index = (
                self.stacks.max_sequence_index(stack.shoot_id, normalized) + 1
            )
            self.stacks.update_stack_room(stack_id, normalized, sequence_index)
        updated = replace(stack, room_type=normalized, sequence_index=sequence_index)

        renamed: list[str] = []
        for image in self.images.list_stack_images(stack_id):
            filename = raw_handoff_filename(
                image,
                updated,
                stack_ordinal(updated.stack_number),
                shoot.shoot_code,
                shoot.created_at.astimezone(UTC).date(),
            )
            self.images.update_renamed_filename(image.id, filename)
            renamed.append(filename)
        logger.info(
            "Stack %s of shoot %s assigned to %s #%03d",
            updated.stack_number,
            shoot.shoot_code,
            normalized,
            sequence_index,
        )
        return RoomAssignment(success=True, stack=updated, renamed_filenames=renamed)
