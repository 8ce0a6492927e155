"""Process-wide bot switches stored next to the conversation data."""

from __future__ import annotations

from ..database import Database


class SettingsRepository:
    ENABLED_KEY = "bot_enabled"

    def __init__(self, database: Database) -> None:
        self._db = database

    def get_enabled_flag(self) -> bool:
        with self._db.connection() as conn:
            row = conn.execute(
                "SELECT value FROM bot_settings WHERE key = ?",
                (self.ENABLED_KEY,),
            ).fetchone()
        if row is None:
            return True
        return row["value"] == "1"

    def set_enabled_flag(self, enabled: bool) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO bot_settings (key, value) VALUES (?, ?)
                ON CONFLICT (key) DO UPDATE SET value = excluded.value
                """,
                (self.ENABLED_KEY, "1" if enabled else "0"),
            )
            conn.commit()
