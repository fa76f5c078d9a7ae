"""Editor token issuing and single-use consumption."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from shoot_pipeline.domain.models import EditorTokenRecord, TokenType

logger = logging.getLogger(__name__)


class EditorTokenRepository(Protocol):
    """Persistence interface for editor tokens."""

    def create_token(  # noqa: PLR0913
        self,
        shoot_id: UUID,
        token_type: TokenType,
        token: str,
        expires_at: datetime,
        file_path: str | None,
    ) -> EditorTokenRecord:
        """Create a token row."""

    def get_token(self, token: str) -> EditorTokenRecord | None:
        """Return a token row by its value."""

    def mark_used_if_valid(self, token: str, now: datetime) -> bool:
        """Set ``used_at`` only if unused and unexpired; report whether it did."""


@dataclass(frozen=True)
class TokenCheck:
    """Outcome of consuming a token."""

    accepted: bool
    token: EditorTokenRecord | None = None
    error: str | None = None


@dataclass
class TokenService:
    """Issues time-boxed tokens and honours each at most once."""

    repository: EditorTokenRepository

    def issue(
        self,
        shoot_id: UUID,
        token_type: TokenType,
        validity: timedelta,
        file_path: str | None = None,
    ) -> EditorTokenRecord:
        """Create a random token valid for the given duration."""
        expires_at = datetime.now(tz=UTC) + validity
        record = self.repository.create_token(
            shoot_id=shoot_id,
            token_type=token_type,
            token=secrets.token_hex(32),
            expires_at=expires_at,
            file_path=file_path,
        )
        logger.info(
            "Issued %s token for shoot %s until %s",
            token_type,
            shoot_id,
            expires_at.isoformat(),
        )
        return record

    def consume(
        self, token: str, token_type: TokenType, require_file: bool = False
    ) -> TokenCheck:
        """Validate a token and mark it used."""
        record = self.repository.get_token(token)
        if record is None:
            return TokenCheck(accepted=False, error="Invalid or expired token")
        if record.token_type != token_type:
            return TokenCheck(accepted=False, error="Invalid token type")
        now = datetime.now(tz=UTC)
        if record.expires_at <= now:
            return TokenCheck(accepted=False, error="Token has expired")
        if record.used_at is not None:
            return TokenCheck(accepted=False, error="Token has already been used")
        if require_file and not record.file_path:
            return TokenCheck(
                accepted=False, error="Invalid token: no file path associated"
            )
        if not self.repository.mark_used_if_valid(token, now):
            return TokenCheck(accepted=False, error="Token has already been used")
        return TokenCheck(accepted=True, token=record)
