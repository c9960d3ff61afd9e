from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hrms.hrms.container import db_connection
from src.hrms.hrms.users.demo_seed import DEMO_USERS, seed_demo_users
from src.hrms.hrms.users.mysql_user_repository import MySQLUserRepository


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    added = seed_demo_users(MySQLUserRepository(db_connection(db_config)))

    print(
        f"OK: Seeded {added} of {len(DEMO_USERS)} demo users -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )
    for email, password, *_ in DEMO_USERS:
        print(f"  {email} / {password}")


if __name__ == "__main__":
    main()
