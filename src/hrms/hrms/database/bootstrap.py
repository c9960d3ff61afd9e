from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)


def _server_connection(config: DBConfig):
    # No default schema: the database may not exist yet.
    return mysql.connector.connect(
        host=config.host,
        port=config.port,
        user=config.user,
        password=config.password,
        connection_timeout=config.connect_timeout,
        use_pure=True,
    )


def _schema_connection(config: DBConfig):
    conn = _server_connection(config)
    conn.database = config.database
    return conn


def _strip_create_db_and_use(sql: str) -> str:
    # The configured DB_NAME wins over whatever schema.sql names.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    return re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # schema.sql keeps one statement per ';'-terminated block and no ';' in literals.
    without_comments = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    for stmt in without_comments.split(";"):
        stmt = stmt.strip()
        if stmt:
            yield stmt


def ensure_database_exists(db_config: Mapping[str, Any]) -> None:
    config = DBConfig.from_mapping(db_config)
    conn = _server_connection(config)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping[str, Any], *, schema_path: str | Path) -> None:
    """Create the database and tables if missing (statements are idempotent)."""
    config = DBConfig.from_mapping(db_config)
    ensure_database_exists(db_config)

    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _schema_connection(config)
    try:
        cur = conn.cursor()
        count = 0
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied %s schema statements to %s", count, config.target)


def list_tables(db_config: Mapping[str, Any]) -> list[str]:
    conn = _schema_connection(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
