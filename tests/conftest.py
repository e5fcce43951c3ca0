"""Shared test fixtures."""

from pathlib import Path

import pytest

# Schema scripts and CSV fixtures used by the plugin's ini options
FIXTURE_DB_DIR = Path(__file__).resolve().parent / "fixtures" / "db"
FIXTURE_SQL_DIR = FIXTURE_DB_DIR / "sql"
FIXTURE_CSV_DIR = FIXTURE_DB_DIR / "csv"

PEOPLE_SQL = "CREATE TABLE PEOPLE (id INT, name VARCHAR(64));\n"
PEOPLE_CSV = "ID,NAME\n1,Alice\n2,Bob\n"


@pytest.fixture
def fixture_dirs(tmp_path):
    """Empty schema and fixture directories under tmp_path."""
    sql_dir = tmp_path / "sql"
    csv_dir = tmp_path / "csv"
    sql_dir.mkdir()
    csv_dir.mkdir()
    return sql_dir, csv_dir


@pytest.fixture
def people_dirs(fixture_dirs):
    """Schema and fixture directories seeding PEOPLE with two rows."""
    sql_dir, csv_dir = fixture_dirs
    (sql_dir / "init.sql").write_text(PEOPLE_SQL)
    (csv_dir / "PEOPLE.csv").write_text(PEOPLE_CSV)
    return sql_dir, csv_dir
