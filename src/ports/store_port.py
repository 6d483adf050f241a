"""Store ports: abstract interfaces for suggestion and need persistence.

Unlike the read ports, write failures here must surface to the caller.
"""

from __future__ import annotations

from typing import Protocol


class StoreError(Exception):
    """Raised when a data store read or write fails."""


class SuggestionStorePort(Protocol):

    async def insert_suggestion(self, record: dict) -> dict: ...

    async def update_suggestion(self, suggestion_id: str, updates: dict) -> dict: ...

    async def insert_learning_event(self, record: dict) -> dict: ...


class NeedsStorePort(Protocol):

    async def get_relationship(self, couple_id: str) -> dict | None: ...

    async def insert_need(self, record: dict) -> dict: ...

    async def update_need(self, need_id: str, updates: dict) -> None: ...

    async def record_engagement_event(self, record: dict) -> dict: ...

    async def list_needs(
        self,
        *,
        receiver_id: str | None = None,
        requester_id: str | None = None,
        couple_id: str | None = None,
        statuses: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        """Return needs matching every given filter, newest first."""
        ...
