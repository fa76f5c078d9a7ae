"""Supabase-backed shoot repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from shoot_pipeline.adapters.supabase_rows import parse_timestamp
from shoot_pipeline.domain.models import ShootRecord, ShootStatus
from shoot_pipeline.services.shoots import ShootRepository

_COLUMNS = "id, job_id, shoot_code, status, created_at, status_changed_at"


@dataclass
class SupabaseShootRepository(ShootRepository):
    """Supabase implementation for shoots."""

    client: Client

    def get_shoot(self, shoot_id: UUID) -> ShootRecord | None:
        """Return a shoot by id."""
        response = (
            self.client.table("shoots")
            .select(_COLUMNS)
            .eq("id", str(shoot_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_shoot(response.data[0])

    def get_shoot_by_code(self, shoot_code: str) -> ShootRecord | None:
        """Return a shoot by its code."""
        response = (
            self.client.table("shoots")
            .select(_COLUMNS)
            .eq("shoot_code", shoot_code)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_shoot(response.data[0])

    def create_shoot(self, job_id: UUID, shoot_code: str) -> ShootRecord:
        """Create a shoot in the initialized state."""
        response = (
            self.client.table("shoots")
            .insert(
                {
                    "job_id": str(job_id),
                    "shoot_code": shoot_code,
                    "status": ShootStatus.INITIALIZED.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create shoot")
        return _to_shoot(response.data[0])

    def update_shoot_status(
        self,
        shoot_id: UUID,
        status: ShootStatus,
        timestamp_field: str,
        changed_at: datetime,
    ) -> None:
        """Write the status and its timestamp column in a single update."""
        stamp = changed_at.isoformat()
        response = (
            self.client.table("shoots")
            .update(
                {
                    "status": status.value,
                    timestamp_field: stamp,
                    "status_changed_at": stamp,
                }
            )
            .eq("id", str(shoot_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to update shoot status to {status}")


def _to_shoot(row: dict) -> ShootRecord:
    created_at = parse_timestamp(row["created_at"])
    if created_at is None:
        raise RuntimeError("Shoot row is missing created_at")
    return ShootRecord(
        id=UUID(row["id"]),
        job_id=UUID(row["job_id"]),
        shoot_code=row["shoot_code"],
        status=ShootStatus(row["status"]),
        created_at=created_at,
        status_changed_at=parse_timestamp(row.get("status_changed_at")),
    )
