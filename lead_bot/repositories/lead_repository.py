"""Append-only storage for completed leads."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, List

from ..database import Database
from ..models import Lead

_COLUMNS = "id, phone, game, amount, is_urgent, is_new_customer, raw, created_at"


def _row_to_lead(row: Any) -> Lead:
    raw = json.loads(row["raw"]) if row["raw"] else {}
    return Lead(
        id=row["id"],
        phone=row["phone"],
        game=row["game"],
        amount=row["amount"],
        is_urgent=bool(row["is_urgent"]),
        is_new_customer=bool(row["is_new_customer"]),
        raw=raw,
        created_at=row["created_at"],
    )


class LeadRepository:
    def __init__(self, database: Database) -> None:
        self._db = database

    def record_lead(self, lead: Lead) -> Lead:
        created_at = datetime.now(timezone.utc).replace(microsecond=0).isoformat()
        with self._db.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO leads (phone, game, amount, is_urgent, is_new_customer, raw, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    lead.phone,
                    lead.game,
                    int(lead.amount),
                    1 if lead.is_urgent else 0,
                    1 if lead.is_new_customer else 0,
                    json.dumps(lead.raw, ensure_ascii=False, default=str),
                    created_at,
                ),
            )
            lead_id = cursor.lastrowid
            conn.commit()
        return replace(lead, id=lead_id, created_at=created_at)

    def fetch_recent(self, limit: int = 20) -> List[Lead]:
        if limit <= 0:
            raise ValueError("limit must be positive")
        with self._db.connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM leads ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_lead(row) for row in rows]

    def fetch_all(self) -> List[Lead]:
        with self._db.connection() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM leads ORDER BY id DESC").fetchall()
        return [_row_to_lead(row) for row in rows]

    def delete_all(self) -> None:
        with self._db.connection() as conn:
            conn.execute("DELETE FROM leads")
            conn.commit()
