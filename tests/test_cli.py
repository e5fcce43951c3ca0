"""Tests for src.cli — argument parsing and the load/dump commands."""

from __future__ import annotations

import argparse
import logging
import sqlite3
from unittest.mock import patch

import pytest

from src.cli import cmd_dump, cmd_load, main
from src.database.resource import FixtureResource
from tests.conftest import FIXTURE_CSV_DIR, FIXTURE_SQL_DIR


def _make_args(**kwargs):
    """Create an argparse.Namespace with given attributes."""
    return argparse.Namespace(**kwargs)


def _load_args(db, **kwargs):
    defaults = dict(
        db=db, config=None, sql=FIXTURE_SQL_DIR, csv=FIXTURE_CSV_DIR,
        log_data=False, replace=False,
    )
    defaults.update(kwargs)
    return _make_args(**defaults)


def _count(db, table):
    conn = sqlite3.connect(db)
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        conn.close()


class TestMain:
    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
        assert "sqlite-fixtures" in capsys.readouterr().out

    def test_load_exit_code(self, tmp_path):
        db = tmp_path / "fixtures.db"
        with pytest.raises(SystemExit) as exc:
            main(["load", str(db), "--sql", str(FIXTURE_SQL_DIR), "--csv", str(FIXTURE_CSV_DIR)])
        assert exc.value.code == 0
        assert _count(db, "PEOPLE") == 2

    def test_dump_missing_db_exit_code(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["dump", str(tmp_path / "missing.db")])
        assert exc.value.code == 1


class TestCmdLoad:
    def test_builds_database(self, tmp_path):
        db = tmp_path / "fixtures.db"
        assert cmd_load(_load_args(db)) == 0
        assert _count(db, "PEOPLE") == 2
        assert _count(db, "PETS") == 3

    def test_refuses_existing_file(self, tmp_path, caplog):
        db = tmp_path / "fixtures.db"
        db.write_text("")
        assert cmd_load(_load_args(db)) == 1
        assert "already exists" in caplog.text

    def test_replace_existing_file(self, tmp_path):
        db = tmp_path / "fixtures.db"
        assert cmd_load(_load_args(db)) == 0
        assert cmd_load(_load_args(db, replace=True)) == 0
        assert _count(db, "PEOPLE") == 2

    def test_failure_returns_1(self, tmp_path, caplog):
        sql_dir = tmp_path / "sql"
        sql_dir.mkdir()
        (sql_dir / "broken.sql").write_text("CREATE TABLE;")
        db = tmp_path / "fixtures.db"
        assert cmd_load(_load_args(db, sql=sql_dir)) == 1
        assert "Failed to build" in caplog.text
        assert not db.exists()

    def test_retry_after_failure_needs_no_replace(self, tmp_path):
        broken = tmp_path / "broken"
        broken.mkdir()
        (broken / "broken.sql").write_text("CREATE TABLE;")
        db = tmp_path / "fixtures.db"
        assert cmd_load(_load_args(db, sql=broken)) == 1
        assert cmd_load(_load_args(db)) == 0
        assert _count(db, "PEOPLE") == 2

    def test_connection_closed_when_table_listing_fails(self, tmp_path):
        with patch.object(
            FixtureResource, "execute_query",
            side_effect=sqlite3.OperationalError("disk I/O error"),
        ), patch.object(
            FixtureResource, "after", autospec=True, side_effect=FixtureResource.after,
        ) as after:
            with pytest.raises(sqlite3.OperationalError):
                cmd_load(_load_args(tmp_path / "fixtures.db"))
        after.assert_called_once()

    def test_uses_config_file(self, tmp_path):
        config = tmp_path / "fixtures.yaml"
        config.write_text(f"sql_path: {FIXTURE_SQL_DIR}\ncsv_path: {FIXTURE_CSV_DIR}\n")
        db = tmp_path / "fixtures.db"
        assert cmd_load(_load_args(db, config=config, sql=None, csv=None)) == 0
        assert _count(db, "PETS") == 3

    def test_log_data(self, tmp_path, caplog):
        with caplog.at_level(logging.INFO):
            assert cmd_load(_load_args(tmp_path / "fixtures.db", log_data=True)) == 0
        assert "Row #1: id = 1, name = Alice" in caplog.text


class TestCmdDump:
    def test_dumps_named_tables(self, tmp_path, caplog):
        db = tmp_path / "fixtures.db"
        cmd_load(_load_args(db))
        caplog.clear()
        with caplog.at_level(logging.INFO):
            assert cmd_dump(_make_args(db=db, tables=["PEOPLE"])) == 0
        assert "Table PEOPLE:" in caplog.text
        assert "Table PETS:" not in caplog.text

    def test_dumps_all_tables_by_default(self, tmp_path, caplog):
        db = tmp_path / "fixtures.db"
        cmd_load(_load_args(db))
        caplog.clear()
        with caplog.at_level(logging.INFO):
            assert cmd_dump(_make_args(db=db, tables=[])) == 0
        assert "Table PEOPLE:" in caplog.text
        assert "Table PETS:" in caplog.text

    def test_missing_database(self, tmp_path, caplog):
        db = tmp_path / "missing.db"
        assert cmd_dump(_make_args(db=db, tables=[])) == 1
        assert not db.exists()

    def test_missing_table(self, tmp_path, caplog):
        db = tmp_path / "fixtures.db"
        cmd_load(_load_args(db))
        assert cmd_dump(_make_args(db=db, tables=["GHOSTS"])) == 1
        assert "Failed to dump" in caplog.text
