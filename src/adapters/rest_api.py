"""REST adapter: implements every data port over a PostgREST-style HTTP API.

Tables are addressed as ``{base_url}/rest/v1/{table}`` with PostgREST
filters (``col=eq.value``). Reads and writes raise CalendarError or
StoreError on any HTTP or transport failure; callers decide whether to
swallow them.
"""

from __future__ import annotations

import logging

import httpx

from src.ports.calendar_port import CalendarError
from src.ports.store_port import StoreError

logger = logging.getLogger(__name__)

_REST_PREFIX = "/rest/v1"


class RestApiClient:
    """HTTP implementation of the preferences, calendar, profile and store ports."""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    def _headers(self, prefer_representation: bool = False) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        if prefer_representation:
            headers["Prefer"] = "return=representation"
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: dict | list | None = None,
        json: dict | None = None,
    ) -> list[dict]:
        url = f"{self._base_url}{_REST_PREFIX}/{table}"
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(prefer_representation=method in ("POST", "PATCH")),
            )
            resp.raise_for_status()
            if not resp.content:
                return []
            data = resp.json()
        return data if isinstance(data, list) else [data]

    async def _select(self, table: str, params: dict | list, what: str) -> list[dict]:
        try:
            return await self._request("GET", table, params=params)
        except Exception as exc:
            logger.error("Failed to read %s: %s", what, exc)
            raise StoreError(f"Failed to read {what}: {exc}") from exc

    async def _select_one(self, table: str, column: str, value: str, what: str) -> dict | None:
        rows = await self._select(table, {column: f"eq.{value}", "select": "*"}, what)
        return rows[0] if rows else None

    async def _insert(self, table: str, record: dict, what: str) -> dict:
        try:
            rows = await self._request("POST", table, json=record)
        except Exception as exc:
            logger.error("Failed to insert %s: %s", what, exc)
            raise StoreError(f"Failed to insert {what}: {exc}") from exc
        if not rows:
            raise StoreError(f"Insert of {what} returned no row")
        return rows[0]

    async def _patch(self, table: str, row_id: str, updates: dict, what: str) -> list[dict]:
        try:
            rows = await self._request("PATCH", table, params={"id": f"eq.{row_id}"}, json=updates)
        except Exception as exc:
            logger.error("Failed to update %s %s: %s", what, row_id, exc)
            raise StoreError(f"Failed to update {what} {row_id}: {exc}") from exc
        if not rows:
            raise StoreError(f"{what.capitalize()} {row_id} not found")
        return rows

    # -- PreferencesPort ---------------------------------------------------

    async def get_notification_preferences(self, user_id: str) -> dict | None:
        return await self._select_one(
            "notification_preferences", "user_id", user_id, "notification preferences",
        )

    # -- CalendarPort --------------------------------------------------------

    async def get_calendar_events(
        self, user_id: str, start_iso: str, end_iso: str
    ) -> list[dict]:
        # Overlap with the window: starts before it ends and ends after it starts
        params = [
            ("user_id", f"eq.{user_id}"),
            ("start_time", f"lte.{end_iso}"),
            ("end_time", f"gte.{start_iso}"),
            ("select", "start_time,end_time,title"),
            ("order", "start_time.asc"),
        ]
        try:
            events = await self._request("GET", "calendar_events", params=params)
        except Exception as exc:
            logger.error("Failed to fetch calendar events for %s: %s", user_id, exc)
            raise CalendarError(f"Failed to fetch calendar events: {exc}") from exc
        logger.debug("Found %d event(s) for %s between %s and %s", len(events), user_id, start_iso, end_iso)
        return events

    # -- ProfilePort ---------------------------------------------------------

    async def get_partner_profile(self, user_id: str) -> dict | None:
        return await self._select_one("partner_profiles", "user_id", user_id, "partner profile")

    # -- SuggestionStorePort -------------------------------------------------

    async def insert_suggestion(self, record: dict) -> dict:
        return await self._insert("ai_suggestions", record, "suggestion")

    async def update_suggestion(self, suggestion_id: str, updates: dict) -> dict:
        rows = await self._patch("ai_suggestions", suggestion_id, updates, "suggestion")
        return rows[0]

    async def insert_learning_event(self, record: dict) -> dict:
        return await self._insert("suggestion_learning_events", record, "learning event")

    # -- NeedsStorePort ------------------------------------------------------

    async def get_relationship(self, couple_id: str) -> dict | None:
        return await self._select_one("relationships", "id", couple_id, "relationship")

    async def insert_need(self, record: dict) -> dict:
        return await self._insert("relationship_needs", record, "need")

    async def update_need(self, need_id: str, updates: dict) -> None:
        await self._patch("relationship_needs", need_id, updates, "need")

    async def record_engagement_event(self, record: dict) -> dict:
        return await self._insert("engagement_events", record, "engagement event")

    async def list_needs(
        self,
        *,
        receiver_id: str | None = None,
        requester_id: str | None = None,
        couple_id: str | None = None,
        statuses: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        params: list[tuple[str, str]] = [("select", "*"), ("order", "created_at.desc")]
        for column, value in (
            ("receiver_id", receiver_id),
            ("requester_id", requester_id),
            ("couple_id", couple_id),
        ):
            if value is not None:
                params.append((column, f"eq.{value}"))
        if statuses:
            params.append(("status", f"in.({','.join(statuses)})"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._select("relationship_needs", params, "needs")
