"""Supabase-backed editor token repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from shoot_pipeline.adapters.supabase_rows import parse_timestamp
from shoot_pipeline.domain.models import EditorTokenRecord, TokenType
from shoot_pipeline.services.tokens import EditorTokenRepository

_COLUMNS = "id, shoot_id, token, token_type, expires_at, file_path, used_at"


@dataclass
class SupabaseTokenRepository(EditorTokenRepository):
    """Supabase implementation for editor tokens."""

    client: Client

    def create_token(  # noqa: PLR0913
        self,
        shoot_id: UUID,
        token_type: TokenType,
        token: str,
        expires_at: datetime,
        file_path: str | None,
    ) -> EditorTokenRecord:
        """Create a token row and return it."""
        response = (
            self.client.table("editor_tokens")
            .insert(
                {
                    "shoot_id": str(shoot_id),
                    "token": token,
                    "token_type": token_type.value,
                    "expires_at": expires_at.isoformat(),
                    "file_path": file_path,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create editor token")
        return _to_token(response.data[0])

    def get_token(self, token: str) -> EditorTokenRecord | None:
        """Return a token row by its value."""
        response = (
            self.client.table("editor_tokens")
            .select(_COLUMNS)
            .eq("token", token)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_token(response.data[0])

    def mark_used_if_valid(self, token: str, now: datetime) -> bool:
        """Set ``used_at`` only if unused and unexpired; report whether it did."""
        stamp = now.isoformat()
        response = (
            self.client.table("editor_tokens")
            .update({"used_at": stamp})
            .eq("token", token)
            .is_("used_at", "null")
            .gt("expires_at", stamp)
            .execute()
        )
        return bool(response.data)


def _to_token(row: dict) -> EditorTokenRecord:
    expires_at = parse_timestamp(row["expires_at"])
    if expires_at is None:
        raise RuntimeError("Token row is missing expires_at")
    return EditorTokenRecord(
        id=UUID(row["id"]),
        shoot_id=UUID(row["shoot_id"]),
        token=row["token"],
        token_type=TokenType(row["token_type"]),
        expires_at=expires_at,
        file_path=row.get("file_path"),
        used_at=parse_timestamp(row.get("used_at")),
    )
