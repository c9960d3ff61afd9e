from __future__ import annotations

import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from .connection import DBConfig

logger = logging.getLogger(__name__)

# Parent tables before the ones referencing them.
HRMS_TABLES = ("users", "attendance_records", "leave_requests", "payrolls", "notifications")


def backup_filename(database: str, taken_at: datetime) -> str:
    return f"{database}_{taken_at:%Y%m%d_%H%M%S}.sql"


def mysqldump_command(config: DBConfig, *, result_file: Path, tables: Sequence[str] = HRMS_TABLES) -> list[str]:
    unknown = sorted(set(tables) - set(HRMS_TABLES))
    if unknown:
        raise ValueError(f"Unknown tables: {', '.join(unknown)}")
    return [
        "mysqldump",
        f"--host={config.host}",
        f"--port={config.port}",
        f"--user={config.user}",
        "--single-transaction",
        "--default-character-set=utf8mb4",
        f"--result-file={result_file}",
        config.database,
        *tables,
    ]


def dump_database(
    db_config: Mapping[str, Any],
    *,
    out_dir: Path,
    tables: Sequence[str] = HRMS_TABLES,
    taken_at: Optional[datetime] = None,
) -> Path:
    """Dump the HRMS tables into a timestamped file under `out_dir`.

    Needs `mysqldump` on PATH (FileNotFoundError otherwise). The password is
    handed over through MYSQL_PWD and never appears on the command line.
    A failed dump leaves no partial file behind.
    """
    config = DBConfig.from_mapping(db_config)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / backup_filename(config.database, taken_at or now_local())
    cmd = mysqldump_command(config, result_file=out_file, tables=tables)

    try:
        subprocess.run(cmd, env={**os.environ, "MYSQL_PWD": config.password}, capture_output=True, check=True)
    except subprocess.CalledProcessError as exc:
        out_file.unlink(missing_ok=True)
        raise RuntimeError(f"mysqldump failed: {exc.stderr.decode(errors='replace').strip()}") from exc

    logger.info("Dumped %s tables of %s to %s", len(tables), config.target, out_file)
    return out_file
