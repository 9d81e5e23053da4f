from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchone, load_json
from .settings_model import StoredSettings
from .settings_repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_section(self, section: str) -> Optional[StoredSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT section, settings, updated_at, updated_by FROM platform_settings WHERE section=%s",
                (section,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return StoredSettings(
                section=row["section"],
                settings=load_json(row["settings"], {}),
                updated_at=row["updated_at"],
                updated_by=row.get("updated_by"),
            )

    def save_section(self, section: str, settings: dict[str, Any], *, updated_by: int, updated_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO platform_settings(section, settings, updated_at, updated_by)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE settings=VALUES(settings), updated_at=VALUES(updated_at),
                                        updated_by=VALUES(updated_by)
                """,
                (section, dump_json(settings), updated_at, updated_by),
            )
