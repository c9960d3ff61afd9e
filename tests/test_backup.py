from __future__ import annotations

import subprocess
from datetime import datetime
from pathlib import Path

import pytest

from src.hrms.hrms.database import backup
from src.hrms.hrms.database.connection import DBConfig

DB_CONFIG = {"host": "db.local", "port": 3307, "user": "hrms", "password": "s3cret", "database": "hrms_db"}
TAKEN_AT = datetime(2024, 3, 4, 18, 30, 5)


def test_command_dumps_hrms_tables_without_password():
    cmd = backup.mysqldump_command(DBConfig.from_mapping(DB_CONFIG), result_file=Path("/tmp/out.sql"))

    assert cmd[0] == "mysqldump"
    assert "--host=db.local" in cmd
    assert "--port=3307" in cmd
    assert "--result-file=/tmp/out.sql" in cmd
    assert cmd[-6:] == ["hrms_db", *backup.HRMS_TABLES]
    assert not any("s3cret" in part for part in cmd)


def test_command_rejects_unknown_tables():
    with pytest.raises(ValueError, match="Unknown tables: sessions"):
        backup.mysqldump_command(
            DBConfig.from_mapping(DB_CONFIG), result_file=Path("out.sql"), tables=["users", "sessions"]
        )


def test_dump_passes_password_through_environment(monkeypatch, tmp_path):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 0, b"", b"")

    monkeypatch.setattr(backup.subprocess, "run", fake_run)

    out_file = backup.dump_database(DB_CONFIG, out_dir=tmp_path / "backups", tables=["payrolls"], taken_at=TAKEN_AT)

    assert out_file == tmp_path / "backups" / "hrms_db_20240304_183005.sql"
    assert len(calls) == 1
    cmd, kwargs = calls[0]
    assert cmd[-2:] == ["hrms_db", "payrolls"]
    assert kwargs["env"]["MYSQL_PWD"] == "s3cret"
    assert kwargs["check"] is True


def test_failed_dump_removes_partial_file(monkeypatch, tmp_path):
    def fake_run(cmd, **kwargs):
        Path(tmp_path / "hrms_db_20240304_183005.sql").write_text("-- partial")
        raise subprocess.CalledProcessError(2, cmd, stderr=b"Access denied for user 'hrms'")

    monkeypatch.setattr(backup.subprocess, "run", fake_run)

    with pytest.raises(RuntimeError, match="Access denied"):
        backup.dump_database(DB_CONFIG, out_dir=tmp_path, taken_at=TAKEN_AT)

    assert list(tmp_path.iterdir()) == []
