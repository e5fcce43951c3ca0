"""FixtureResource: a fresh, seeded SQLite database for each test.

Usage::

    resource = FixtureResource(sql_path="tests/db/sql", csv_path="tests/db/csv")
    resource.before()
    try:
        rows = resource.execute_query("SELECT COUNT(*) FROM people")
    finally:
        resource.after()

or as a context manager (``with FixtureResource(...) as db: ...``), or through
the ``fixture_resource`` pytest fixture in ``src.plugin``.

Each setup phase can be replaced by passing a callable in ``FixtureHooks``.
Phase hooks receive the resource and a cursor that is closed when the phase
ends. Each phase is committed once its hook returns.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from .datasource import NO_CREATE_SUFFIX, DataSource, default_data_source
from .loader import (
    execute_sql_script,
    list_entries,
    load_csv_file,
    log_table_contents,
    table_name_for,
)

logger = logging.getLogger(__name__)

DEFAULT_SQL_PATH = Path("src/test/sqlite/sql")
DEFAULT_CSV_PATH = Path("src/test/sqlite/csv")

PhaseHook = Callable[["FixtureResource", sqlite3.Cursor], None]


@dataclass(frozen=True)
class FixtureHooks:
    """Optional replacements for the setup phases of ``FixtureResource.before``.

    Any hook left as None uses the built-in behaviour.
    """

    data_source: Callable[[], DataSource] | None = None
    init_schema: PhaseHook | None = None
    before_load: PhaseHook | None = None
    load: PhaseHook | None = None
    after_load: PhaseHook | None = None


class FixtureResource:
    def __init__(
        self,
        sql_path: Path | str | None = DEFAULT_SQL_PATH,
        csv_path: Path | str | None = DEFAULT_CSV_PATH,
        log_loaded_data: bool = False,
        hooks: FixtureHooks | None = None,
    ):
        self._sql_path = Path(sql_path) if sql_path is not None else None
        self._csv_path = Path(csv_path) if csv_path is not None else None
        self._log_loaded_data = log_loaded_data
        self.hooks = hooks or FixtureHooks()
        self._data_source: DataSource | None = None
        self._conn: sqlite3.Connection | None = None

    # ── Configuration ───────────────────────────────────────

    def _check_not_started(self, name: str) -> None:
        if self._conn is not None:
            raise RuntimeError(f"Cannot change {name} while the database is open")

    @property
    def sql_path(self) -> Path | None:
        return self._sql_path

    @sql_path.setter
    def sql_path(self, value: Path | str | None) -> None:
        self._check_not_started("sql_path")
        self._sql_path = Path(value) if value is not None else None

    @property
    def csv_path(self) -> Path | None:
        return self._csv_path

    @csv_path.setter
    def csv_path(self, value: Path | str | None) -> None:
        self._check_not_started("csv_path")
        self._csv_path = Path(value) if value is not None else None

    @property
    def log_loaded_data(self) -> bool:
        return self._log_loaded_data

    @log_loaded_data.setter
    def log_loaded_data(self, value: bool) -> None:
        self._check_not_started("log_loaded_data")
        self._log_loaded_data = bool(value)

    @property
    def connection(self) -> sqlite3.Connection | None:
        return self._conn

    @property
    def data_source(self) -> DataSource:
        if self._data_source is None:
            raise RuntimeError("Data source not initialized; call before() first")
        return self._data_source

    def get_url(self, no_create: bool = True) -> str:
        """Return the data source URL.

        With ``no_create`` the URL tells the engine not to create the
        database if it does not exist.
        """
        url = self.data_source.url
        return url + NO_CREATE_SUFFIX if no_create else url

    def get_user(self) -> str:
        return self.data_source.user

    def get_password(self) -> str:
        return self.data_source.password

    # ── Lifecycle ───────────────────────────────────────────

    def before(self) -> None:
        """Open the connection, create the schema and load the fixtures.

        Any exception aborts the remaining phases. The connection is closed
        before the exception propagates.
        """
        if self._conn is not None:
            raise RuntimeError("FixtureResource is already started; call after() first")

        factory = self.hooks.data_source or default_data_source
        self._data_source = factory()
        self._conn = self._data_source.connect()
        logger.debug("Opened %s", self._data_source.url)

        try:
            self._run_phase(self.hooks.init_schema or FixtureResource.default_init_schema)
            if self.hooks.before_load is not None:
                self._run_phase(self.hooks.before_load)
            self._run_phase(self.hooks.load or FixtureResource.default_load)
            self._run_phase(self.hooks.after_load or FixtureResource.default_after_load)
        except Exception:
            self.after()
            raise

    def after(self) -> None:
        """Close the connection. Errors are logged, never raised."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            conn.close()
        except sqlite3.Error:
            logger.exception("Failed to close fixture database connection")

    def _run_phase(self, hook: PhaseHook) -> None:
        cursor = self._conn.cursor()
        try:
            hook(self, cursor)
            self._conn.commit()
        finally:
            cursor.close()

    def __enter__(self) -> FixtureResource:
        self.before()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.after()

    # ── Queries ─────────────────────────────────────────────

    def execute_query(self, query: str, params: Any = ()) -> list[sqlite3.Row]:
        """Run ``query`` and return all result rows.

        Rows are fetched before the cursor is closed, so the result stays
        valid after the call.
        """
        if self._conn is None:
            raise RuntimeError("FixtureResource is not started; call before() first")
        cursor = self._conn.execute(query, params)
        try:
            return cursor.fetchall()
        finally:
            cursor.close()

    # ── Default phases ──────────────────────────────────────

    def default_init_schema(self, cursor: sqlite3.Cursor) -> None:
        for script in list_entries(self.sql_path):
            execute_sql_script(cursor, script)

    def default_load(self, cursor: sqlite3.Cursor) -> None:
        for csv_file in list_entries(self.csv_path):
            load_csv_file(cursor, csv_file)

    def default_after_load(self, cursor: sqlite3.Cursor) -> None:
        if not self.log_loaded_data:
            return
        for csv_file in list_entries(self.csv_path):
            log_table_contents(cursor, table_name_for(csv_file))
