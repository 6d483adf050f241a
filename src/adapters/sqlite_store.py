"""SQLite adapter: implements every data port against a local database file.

Used for local development and as the default provider. List and dict
columns are stored as JSON text.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from pathlib import Path

from src.data.models import CalendarEvent, parse_iso_datetime
from src.ports.calendar_port import CalendarError
from src.ports.store_port import StoreError

logger = logging.getLogger(__name__)

_JSON_COLUMNS = {
    "needs_suggestion_times",
    "date_suggestion_days",
    "favorite_activities",
    "generated_messages",
    "context",
    "ai_suggestion",
}

# relationship_needs.context is free text, not JSON
_NEED_JSON_COLUMNS = {"ai_suggestion"}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS notification_preferences (
    user_id                         TEXT PRIMARY KEY,
    daily_question_time             TEXT,
    needs_suggestion_times          TEXT NOT NULL DEFAULT '[]',
    date_suggestion_days            TEXT NOT NULL DEFAULT '[]',
    date_suggestion_time_preference TEXT
);
CREATE TABLE IF NOT EXISTS calendar_events (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id    TEXT NOT NULL,
    title      TEXT NOT NULL DEFAULT '',
    start_time TEXT NOT NULL,
    end_time   TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS partner_profiles (
    user_id             TEXT PRIMARY KEY,
    name                TEXT,
    love_language       TEXT,
    communication_style TEXT,
    favorite_activities TEXT NOT NULL DEFAULT '[]',
    budget_comfort      TEXT,
    energy_level        TEXT,
    is_long_distance    INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS relationships (
    id           TEXT PRIMARY KEY,
    partner_a_id TEXT NOT NULL,
    partner_b_id TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS ai_suggestions (
    id                 TEXT PRIMARY KEY,
    sender_id          TEXT NOT NULL,
    receiver_id        TEXT NOT NULL,
    suggestion_type    TEXT NOT NULL,
    generated_messages TEXT NOT NULL DEFAULT '[]',
    context            TEXT NOT NULL DEFAULT '{}',
    was_used           INTEGER NOT NULL DEFAULT 0,
    used_message_id    TEXT,
    created_at         TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS suggestion_learning_events (
    id                  TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL,
    event_type          TEXT NOT NULL,
    suggestion_id       TEXT NOT NULL,
    suggestion_type     TEXT,
    love_language       TEXT,
    communication_style TEXT,
    created_at          TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS engagement_events (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    event_type TEXT NOT NULL,
    context    TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS relationship_needs (
    id                       TEXT PRIMARY KEY,
    couple_id                TEXT NOT NULL,
    requester_id             TEXT NOT NULL,
    receiver_id              TEXT NOT NULL,
    need_category            TEXT NOT NULL,
    custom_category          TEXT,
    context                  TEXT,
    urgency                  TEXT NOT NULL,
    status                   TEXT NOT NULL DEFAULT 'pending',
    show_raw_need_to_partner INTEGER NOT NULL DEFAULT 0,
    ai_suggestion            TEXT,
    created_at               TEXT,
    acknowledged_at          TEXT,
    resolved_at              TEXT,
    expires_at               TEXT
);
"""


def _row_to_dict(row: sqlite3.Row, json_columns: set[str] = _JSON_COLUMNS) -> dict:
    out = dict(row)
    for key in json_columns & out.keys():
        if out[key] is not None:
            out[key] = json.loads(out[key])
    return out


def _encode(record: dict, json_columns: set[str] = _JSON_COLUMNS) -> dict:
    encoded = {}
    for key, value in record.items():
        if key in json_columns and value is not None:
            encoded[key] = json.dumps(value)
        elif isinstance(value, bool):
            encoded[key] = int(value)
        else:
            encoded[key] = value
    return encoded


class SQLiteStore:
    """SQLite implementation of the preferences, calendar, profile and store ports."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(_SCHEMA)
        logger.debug("Lovebirds tables initialized at %s", self._db_path)

    def _insert(self, table: str, record: dict, json_columns: set[str] = _JSON_COLUMNS) -> dict:
        row = _encode(record, json_columns)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(row.values()),
            )
        return record

    def _update(
        self, table: str, row_id: str, updates: dict, json_columns: set[str] = _JSON_COLUMNS,
    ) -> int:
        row = _encode(updates, json_columns)
        assignments = ", ".join(f"{col} = ?" for col in row)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                (*row.values(), row_id),
            )
        return cursor.rowcount

    # -- seeding -----------------------------------------------------------

    def save_notification_preferences(
        self,
        user_id: str,
        daily_question_time: str | None = None,
        needs_suggestion_times: list[str] | None = None,
        date_suggestion_days: list[str] | None = None,
        date_suggestion_time_preference: str | None = None,
    ) -> None:
        """Insert or replace a user's notification preferences."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO notification_preferences
                    (user_id, daily_question_time, needs_suggestion_times,
                     date_suggestion_days, date_suggestion_time_preference)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    user_id, daily_question_time,
                    json.dumps(needs_suggestion_times or []),
                    json.dumps(date_suggestion_days or []),
                    date_suggestion_time_preference,
                ),
            )
        logger.info("Notification preferences saved for %s", user_id)

    def add_calendar_event(
        self, user_id: str, start_time: str, end_time: str, title: str = "",
    ) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO calendar_events (user_id, title, start_time, end_time) VALUES (?, ?, ?, ?)",
                (user_id, title, start_time, end_time),
            )
        return cursor.lastrowid

    def save_partner_profile(
        self,
        user_id: str,
        name: str | None = None,
        love_language: str | None = None,
        communication_style: str | None = None,
        favorite_activities: list[str] | None = None,
        budget_comfort: str | None = None,
        energy_level: str | None = None,
        is_long_distance: bool = False,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO partner_profiles
                    (user_id, name, love_language, communication_style,
                     favorite_activities, budget_comfort, energy_level, is_long_distance)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id, name, love_language, communication_style,
                    json.dumps(favorite_activities or []),
                    budget_comfort, energy_level, int(is_long_distance),
                ),
            )

    def add_relationship(self, couple_id: str, partner_a_id: str, partner_b_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO relationships (id, partner_a_id, partner_b_id) VALUES (?, ?, ?)",
                (couple_id, partner_a_id, partner_b_id),
            )

    # -- PreferencesPort ---------------------------------------------------

    async def get_notification_preferences(self, user_id: str) -> dict | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM notification_preferences WHERE user_id = ?", (user_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read preferences for {user_id}: {exc}") from exc
        return _row_to_dict(row) if row is not None else None

    # -- CalendarPort --------------------------------------------------------

    async def get_calendar_events(
        self, user_id: str, start_iso: str, end_iso: str
    ) -> list[dict]:
        try:
            window_start = parse_iso_datetime(start_iso)
            window_end = parse_iso_datetime(end_iso)
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM calendar_events WHERE user_id = ? ORDER BY start_time",
                    (user_id,),
                ).fetchall()
        except (sqlite3.Error, ValueError) as exc:
            raise CalendarError(f"Failed to read calendar for {user_id}: {exc}") from exc

        # Offsets differ between rows, so compare parsed datetimes, not strings
        events = []
        for row in rows:
            record = dict(row)
            try:
                event = CalendarEvent.from_record(record, default_tz=window_start.tzinfo)
                overlaps = event.start_time <= window_end and event.end_time >= window_start
            except (ValueError, TypeError):
                logger.warning("Skipping calendar event #%s with bad timestamps", record["id"])
                continue
            if overlaps:
                events.append(record)
        return events

    # -- ProfilePort ---------------------------------------------------------

    async def get_partner_profile(self, user_id: str) -> dict | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM partner_profiles WHERE user_id = ?", (user_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read profile for {user_id}: {exc}") from exc
        if row is None:
            return None
        profile = _row_to_dict(row)
        profile["is_long_distance"] = bool(profile["is_long_distance"])
        return profile

    # -- SuggestionStorePort -------------------------------------------------

    async def insert_suggestion(self, record: dict) -> dict:
        stored = {"id": uuid.uuid4().hex, **record}
        try:
            self._insert("ai_suggestions", stored)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to store suggestion: {exc}") from exc
        return stored

    async def update_suggestion(self, suggestion_id: str, updates: dict) -> dict:
        try:
            changed = self._update("ai_suggestions", suggestion_id, updates)
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM ai_suggestions WHERE id = ?", (suggestion_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update suggestion {suggestion_id}: {exc}") from exc
        if not changed or row is None:
            raise StoreError(f"Suggestion {suggestion_id} not found")
        stored = _row_to_dict(row)
        stored["was_used"] = bool(stored["was_used"])
        return stored

    async def insert_learning_event(self, record: dict) -> dict:
        stored = {"id": uuid.uuid4().hex, **record}
        try:
            self._insert("suggestion_learning_events", stored)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to store learning event: {exc}") from exc
        return stored

    # -- NeedsStorePort ------------------------------------------------------

    async def get_relationship(self, couple_id: str) -> dict | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM relationships WHERE id = ?", (couple_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read relationship {couple_id}: {exc}") from exc
        return dict(row) if row is not None else None

    async def insert_need(self, record: dict) -> dict:
        stored = {"id": uuid.uuid4().hex, **record}
        try:
            self._insert("relationship_needs", stored, _NEED_JSON_COLUMNS)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to store need: {exc}") from exc
        return stored

    async def update_need(self, need_id: str, updates: dict) -> None:
        try:
            changed = self._update("relationship_needs", need_id, updates, _NEED_JSON_COLUMNS)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update need {need_id}: {exc}") from exc
        if not changed:
            raise StoreError(f"Need {need_id} not found")

    async def record_engagement_event(self, record: dict) -> dict:
        stored = {"id": uuid.uuid4().hex, **record}
        try:
            self._insert("engagement_events", stored)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to store engagement event: {exc}") from exc
        return stored

    async def list_needs(
        self,
        *,
        receiver_id: str | None = None,
        requester_id: str | None = None,
        couple_id: str | None = None,
        statuses: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        query = "SELECT * FROM relationship_needs WHERE 1 = 1"
        params: list = []
        for column, value in (
            ("receiver_id", receiver_id),
            ("requester_id", requester_id),
            ("couple_id", couple_id),
        ):
            if value is not None:
                query += f" AND {column} = ?"
                params.append(value)
        if statuses:
            query += f" AND status IN ({', '.join('?' for _ in statuses)})"
            params.extend(statuses)
        query += " ORDER BY created_at DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list needs: {exc}") from exc

        needs = []
        for row in rows:
            need = _row_to_dict(row, _NEED_JSON_COLUMNS)
            need["show_raw_need_to_partner"] = bool(need["show_raw_need_to_partner"])
            needs.append(need)
        return needs
