"""Follow live attendance for one event from the terminal.

Usage: python scripts/watch_attendance.py <username> <project_id> <event_id>
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.keshav.keshav.container import build_container
from src.keshav.keshav.core.exceptions import DomainError


async def watch(username: str, project_id: str, event_id: str) -> None:
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        fetch_timeout=float(getattr(settings, "FETCH_TIMEOUT_SECONDS", 10.0)),
        poll_seconds=float(getattr(settings, "CHANGE_FEED_POLL_SECONDS", 1.0)),
    )

    profile = container.profiles_repo.get_by_username(username)
    if profile is None:
        raise SystemExit(f"Unknown user: {username}")

    session = await container.attendance_service.open_session(
        profile, project_id=project_id, event_id=event_id, live=True, read_only=True
    )
    last = None
    try:
        while True:
            current = (session.present_count, len(session.roster))
            if current != last:
                print(f"{session.event.name}: {current[0]} / {current[1]} present")
                last = current
            await asyncio.sleep(1)
    finally:
        session.close()


def main() -> None:
    if len(sys.argv) != 4:
        print(__doc__.strip().splitlines()[-1])
        raise SystemExit(2)

    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(watch(*sys.argv[1:4]))
    except DomainError as e:
        raise SystemExit(str(e))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
