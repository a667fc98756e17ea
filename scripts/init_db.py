"""Create the Keshav tables and, with --seed, the demo admin/taker accounts.

Usage: python scripts/init_db.py [--seed]
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.keshav.keshav.database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

DATABASE_DIR = REPO_ROOT / "database"

# Tables the attendance views read or write.
REQUIRED_TABLES = (
    "members",
    "projects",
    "events",
    "project_registrations",
    "user_profiles",
    "nirikshak_assignments",
    "attendance",
    "attendance_changes",
)


def main(argv: list[str]) -> int:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    missing = sorted(set(REQUIRED_TABLES) - set(list_tables(db_config)))
    if missing:
        print(f"Schema incomplete on {target}: missing {', '.join(missing)}")
        return 1
    print(f"Schema ready on {target}")

    if "--seed" in argv:
        seed_path = DATABASE_DIR / "seed.sql"
        if seed_path.exists():
            apply_seed_sql(db_config, seed_path=seed_path)
        ensure_demo_users(db_config)
        print("Demo accounts: admin / admin123, taker / taker123")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
