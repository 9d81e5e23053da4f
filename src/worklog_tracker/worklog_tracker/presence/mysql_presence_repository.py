from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import CheckInType, Mood, PresenceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json, normalize_mysql_time
from ..organizations.model import CheckInWindow
from .model import PresenceRecord
from .repository import PresenceRepository

_SELECT = """
    SELECT record_id, user_id, atlassian_account_id, organization_id, status, mood, description,
           work_date, check_in_time, check_in_type, window_snapshot, is_edited, edited_by,
           edited_at, edit_reason, original_status, created_at, updated_at
    FROM online_statuses
"""

_NEWEST_FIRST = " ORDER BY work_date DESC, check_in_time DESC"


def _row_to_record(row: dict[str, Any]) -> PresenceRecord:
    return PresenceRecord(
        record_id=int(row["record_id"]),
        user_id=int(row["user_id"]),
        atlassian_account_id=row.get("atlassian_account_id"),
        organization_id=int(row["organization_id"]),
        status=PresenceStatus(row["status"]),
        mood=Mood(row["mood"]),
        description=row.get("description"),
        work_date=row["work_date"],
        check_in_time=normalize_mysql_time(row["check_in_time"]),
        check_in_type=CheckInType(row["check_in_type"]),
        window_snapshot=CheckInWindow.from_dict(load_json(row.get("window_snapshot"))),
        is_edited=bool(row.get("is_edited", False)),
        edited_by=row.get("edited_by"),
        edited_at=row.get("edited_at"),
        edit_reason=row.get("edit_reason"),
        original_status=load_json(row.get("original_status")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLPresenceRepository(PresenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, args: tuple, *, order: str = "", limit: Optional[int] = None) -> list[PresenceRecord]:
        sql = f"{_SELECT} WHERE {where}{order}"
        if limit is not None:
            sql += " LIMIT %s"
            args = args + (limit,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, args)
            return [_row_to_record(r) for r in fetchall(cur)]

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[PresenceRecord]:
        rows = self._select("user_id=%s AND work_date=%s", (user_id, work_date), limit=1)
        return rows[0] if rows else None

    def get_in_organization(self, record_id: int, organization_id: int) -> Optional[PresenceRecord]:
        rows = self._select("record_id=%s AND organization_id=%s", (record_id, organization_id), limit=1)
        return rows[0] if rows else None

    def create(self, record: PresenceRecord) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO online_statuses(user_id, atlassian_account_id, organization_id, status, mood,
                                            description, work_date, check_in_time, check_in_type, window_snapshot)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.user_id,
                    record.atlassian_account_id,
                    record.organization_id,
                    record.status.value,
                    record.mood.value,
                    record.description,
                    record.work_date,
                    record.check_in_time,
                    record.check_in_type.value,
                    dump_json(record.window_snapshot.to_dict()) if record.window_snapshot else None,
                ),
            )
            return int(cur.lastrowid)

    def save(self, record: PresenceRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE online_statuses
                SET status=%s, mood=%s, description=%s, is_edited=%s, edited_by=%s,
                    edited_at=%s, edit_reason=%s, original_status=%s
                WHERE record_id=%s
                """,
                (
                    record.status.value,
                    record.mood.value,
                    record.description,
                    int(record.is_edited),
                    record.edited_by,
                    record.edited_at,
                    record.edit_reason,
                    dump_json(record.original_status),
                    record.record_id,
                ),
            )

    def delete_in_organization(self, record_id: int, organization_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM online_statuses WHERE record_id=%s AND organization_id=%s",
                (record_id, organization_id),
            )
            return cur.rowcount > 0

    def list_for_user_since(self, user_id: int, since: date, *, limit: Optional[int] = None) -> Sequence[PresenceRecord]:
        return self._select("user_id=%s AND work_date >= %s", (user_id, since), order=_NEWEST_FIRST, limit=limit)

    def list_for_organization_since(
        self,
        organization_id: int,
        since: date,
        *,
        user_id: Optional[int] = None,
    ) -> Sequence[PresenceRecord]:
        if user_id is not None:
            return self._select(
                "organization_id=%s AND work_date >= %s AND user_id=%s",
                (organization_id, since, user_id),
                order=_NEWEST_FIRST,
            )
        return self._select("organization_id=%s AND work_date >= %s", (organization_id, since), order=_NEWEST_FIRST)
