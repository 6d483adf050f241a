"""Profile port: abstract interface for partner profile attributes."""

from __future__ import annotations

from typing import Protocol


class ProfilePort(Protocol):

    async def get_partner_profile(self, user_id: str) -> dict | None:
        """Return love_language, communication_style, name and optional
        secondary preferences for ``user_id``, or None if unknown."""
        ...
