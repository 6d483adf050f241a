"""
Lovebirds Assistant: Entry Point.

    python main.py schedule <user_id> [partner_id]
    python main.py suggest <user_id> <target_user_id> [suggestion_type]
"""

import asyncio
import logging
import sys

from src.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.adapters.store_factory import create_data_store
from src.core.availability_scheduler import NotificationScheduler
from src.core.suggestion_engine import SuggestionEngine
from src.data.models import SuggestionType

_USAGE = __doc__.strip().splitlines()[-2:]


async def _schedule(user_id: str, partner_id: str | None) -> None:
    store = create_data_store()
    scheduler = NotificationScheduler(preferences=store, calendar=store)
    for item in await scheduler.schedule_all_notifications(user_id, partner_id):
        print(f"{item.scheduled_time:%a %Y-%m-%d %H:%M}  {item.type.value:<17} {item.reason}")


async def _suggest(
    user_id: str, target_user_id: str, suggestion_type: SuggestionType,
) -> None:
    store = create_data_store()
    engine = SuggestionEngine(profiles=store, store=store)
    for s in await engine.refresh_suggestions(suggestion_type, user_id, target_user_id):
        print(f"[{s.suggestion_type.value} / {s.tone.value}] {s.message}")


def main(argv: list[str]) -> int:
    if len(argv) >= 2 and argv[0] == "schedule":
        asyncio.run(_schedule(argv[1], argv[2] if len(argv) > 2 else None))
        return 0
    if len(argv) >= 3 and argv[0] == "suggest":
        raw_type = argv[3] if len(argv) > 3 else SuggestionType.CHECK_IN.value
        try:
            suggestion_type = SuggestionType(raw_type)
        except ValueError:
            print(f"Unknown suggestion type: {raw_type}", file=sys.stderr)
        else:
            asyncio.run(_suggest(argv[1], argv[2], suggestion_type))
            return 0
    print("Usage:\n" + "\n".join(_USAGE), file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
