"""Dump the HRMS tables with `mysqldump` into ./backups.

Usage: python scripts/backup.py [table ...]   (default: every HRMS table)
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hrms.hrms.database.backup import HRMS_TABLES, dump_database


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    tables = sys.argv[1:] or HRMS_TABLES

    try:
        out_file = dump_database(settings.DB_CONFIG, out_dir=REPO_ROOT / "backups", tables=tables)
    except FileNotFoundError:
        raise SystemExit("`mysqldump` not found. Install the MySQL client tools first.")
    except (ValueError, RuntimeError) as exc:
        raise SystemExit(str(exc))
    print(f"OK: Backup created: {out_file}")


if __name__ == "__main__":
    main()
