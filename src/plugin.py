"""pytest plugin providing the ``fixture_resource`` fixture.

Enable it from a conftest.py::

    pytest_plugins = ["src.plugin"]

and point it at the fixture directories in pytest.ini / pyproject.toml::

    [tool.pytest.ini_options]
    sqlite_fixtures_sql = "tests/db/sql"
    sqlite_fixtures_csv = "tests/db/csv"

or at a YAML file with ``sqlite_fixtures_config`` (see src.config).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config import Config
from src.database.resource import DEFAULT_CSV_PATH, DEFAULT_SQL_PATH, FixtureResource


def pytest_addoption(parser):
    parser.addini(
        "sqlite_fixtures_config",
        help="YAML file configuring the fixture_resource database",
        default="",
    )
    parser.addini(
        "sqlite_fixtures_sql",
        help="Directory of schema scripts applied before each test",
        default=str(DEFAULT_SQL_PATH),
    )
    parser.addini(
        "sqlite_fixtures_csv",
        help="Directory of CSV fixture files loaded before each test",
        default=str(DEFAULT_CSV_PATH),
    )
    parser.addini(
        "sqlite_fixtures_log_data",
        type="bool",
        help="Log every loaded row after the fixtures are loaded",
        default=False,
    )


def build_resource(config: pytest.Config) -> FixtureResource:
    """Create an unstarted resource from the ini options."""
    root = Path(config.rootpath)
    config_file = config.getini("sqlite_fixtures_config")
    if config_file:
        return Config(root / config_file).create_resource()
    return FixtureResource(
        sql_path=root / config.getini("sqlite_fixtures_sql"),
        csv_path=root / config.getini("sqlite_fixtures_csv"),
        log_loaded_data=config.getini("sqlite_fixtures_log_data"),
    )


@pytest.fixture
def fixture_resource(request):
    """A started FixtureResource, torn down after the test."""
    resource = build_resource(request.config)
    resource.before()
    try:
        yield resource
    finally:
        resource.after()
