"""Supabase-backed stack repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from shoot_pipeline.domain.models import StackRecord
from shoot_pipeline.services.shoots import StackRepository

_COLUMNS = "id, shoot_id, stack_number, room_type, frame_count, sequence_index"


@dataclass
class SupabaseStackRepository(StackRepository):
    """Supabase implementation for exposure stacks."""

    client: Client

    def create_stack(  # noqa: PLR0913
        self,
        shoot_id: UUID,
        stack_number: str,
        frame_count: int,
        room_type: str,
        sequence_index: int,
    ) -> StackRecord:
        """Create a stack row and return it."""
        response = (
            self.client.table("stacks")
            .insert(
                {
                    "shoot_id": str(shoot_id),
                    "stack_number": stack_number,
                    "frame_count": frame_count,
                    "room_type": room_type,
                    "sequence_index": sequence_index,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create stack")
        return _to_stack(response.data[0])

    def get_stack(self, stack_id: UUID) -> StackRecord | None:
        """Return a stack by id."""
        response = (
            self.client.table("stacks")
            .select(_COLUMNS)
            .eq("id", str(stack_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_stack(response.data[0])

    def list_stacks(self, shoot_id: UUID) -> list[StackRecord]:
        """Return the stacks of a shoot ordered by stack number."""
        response = (
            self.client.table("stacks")
            .select(_COLUMNS)
            .eq("shoot_id", str(shoot_id))
            .order("stack_number")
            .execute()
        )
        return [_to_stack(row) for row in response.data or []]

    def max_sequence_index(self, shoot_id: UUID, room_type: str) -> int:
        """Return the highest sequence index used for a room, 0 when unused."""
        response = (
            self.client.table("stacks")
            .select("sequence_index")
            .eq("shoot_id", str(shoot_id))
            .eq("room_type", room_type)
            .order("sequence_index", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return 0
        return int(response.data[0]["sequence_index"] or 0)

    def update_stack_room(
        self, stack_id: UUID, room_type: str, sequence_index: int
    ) -> None:
        """Move a stack to a room with a new sequence index."""
        self.client.table("stacks").update(
            {"room_type": room_type, "sequence_index": sequence_index}
        ).eq("id", str(stack_id)).execute()


def _to_stack(row: dict) -> StackRecord:
    return StackRecord(
        id=UUID(row["id"]),
        shoot_id=UUID(row["shoot_id"]),
        stack_number=row["stack_number"],
        room_type=row["room_type"],
        frame_count=int(row["frame_count"]),
        sequence_index=int(row["sequence_index"]),
    )
