"""Persistence helpers for per-phone conversation state."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, List, Optional

from ..database import Database
from ..models import ConversationState


def _isoformat(dt: Optional[datetime] = None) -> str:
    value = dt or datetime.now(timezone.utc)
    return value.replace(microsecond=0).isoformat()


def _row_to_state(row: Any) -> ConversationState:
    data_raw = row["data"] if row["data"] is not None else "{}"
    return ConversationState(
        phone=row["phone"],
        state=row["state"],
        data=json.loads(data_raw),
        updated_at=row["updated_at"],
    )


class StateRepository:
    """Upserts and reads the single state record kept for each phone."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def get_state(self, phone: str) -> Optional[ConversationState]:
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT phone, state, data, updated_at
                FROM conversation_states
                WHERE phone = ?
                """,
                (phone,),
            ).fetchone()
        return _row_to_state(row) if row else None

    def put_state(self, state: ConversationState) -> ConversationState:
        updated_at = state.updated_at or _isoformat()
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO conversation_states (phone, state, data, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (phone) DO UPDATE
                SET state = excluded.state,
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (state.phone, state.state, json.dumps(state.data, ensure_ascii=False), updated_at),
            )
            conn.commit()
        return replace(state, updated_at=updated_at)

    def list_states(self, limit: int = 100) -> List[ConversationState]:
        if limit <= 0:
            raise ValueError("limit must be positive")
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT phone, state, data, updated_at
                FROM conversation_states
                ORDER BY updated_at DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [_row_to_state(row) for row in rows]

    def delete_all(self) -> None:
        with self._db.connection() as conn:
            conn.execute("DELETE FROM conversation_states")
            conn.commit()
