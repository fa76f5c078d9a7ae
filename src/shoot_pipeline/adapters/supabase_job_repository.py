"""Supabase-backed job repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from shoot_pipeline.domain.models import JobRecord
from shoot_pipeline.services.shoots import JobRepository

_COLUMNS = "id, job_number, property_name, property_address"


@dataclass
class SupabaseJobRepository(JobRepository):
    """Read-only access to jobs owned by the order system."""

    client: Client

    def get_job(self, job_id: UUID) -> JobRecord | None:
        """Return a job by id."""
        response = (
            self.client.table("jobs")
            .select(_COLUMNS)
            .eq("id", str(job_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_job(response.data[0])

    def get_job_by_number(self, job_number: str) -> JobRecord | None:
        """Return a job by its human-facing number."""
        response = (
            self.client.table("jobs")
            .select(_COLUMNS)
            .eq("job_number", job_number)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_job(response.data[0])


def _to_job(row: dict) -> JobRecord:
    return JobRecord(
        id=UUID(row["id"]),
        job_number=row["job_number"],
        property_name=row.get("property_name"),
        property_address=row.get("property_address"),
    )
