"""Example: use the service layer without Flask.

Controllers are a thin layer; the business rules live in the services.
Usage: python -m examples.example_usage <username> <project_id> <event_id>
"""

import asyncio
import importlib
import sys

from config import get_settings_module

from src.keshav.keshav.container import build_container


async def main(username: str, project_id: str, event_id: str):
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    profile = container.auth_service.get_profile(container.profiles_repo.get_by_username(username).user_id)
    session = await container.attendance_service.open_session(profile, project_id=project_id, event_id=event_id)
    try:
        print(f"{session.present_count} / {len(session.roster)} present")
        for entry in session.list_members()[:10]:
            print(session.to_ui(entry))
    finally:
        session.close()

    access = container.attendance_service.resolve_scope(profile)
    print(container.attendance_summary_service.summarize(access, project_id=project_id, event_id=event_id))


if __name__ == "__main__":
    asyncio.run(main(*sys.argv[1:4]))
