"""CLI entry point for sqlite-fixtures.

Commands:
    sqlite-fixtures load DB [--config FILE] [--sql DIR] [--csv DIR] [--log-data] [--replace]
                                       Build a database file from schema scripts and CSV fixtures
    sqlite-fixtures dump DB [TABLE...] Log the rows of tables in an existing database file
"""

from __future__ import annotations

import argparse
import logging
import os
import sqlite3
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    """Configure logging based on FIXTURES_LOG_LEVEL env var."""
    level = os.environ.get("FIXTURES_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _file_data_source(db_path: Path, no_create: bool = False):
    from src.database.datasource import NO_CREATE_SUFFIX, DataSource

    url = f"sqlite:{db_path}"
    return DataSource(url=url + NO_CREATE_SUFFIX if no_create else url)


def cmd_load(args) -> int:
    """Build a database file from schema scripts and CSV fixtures."""
    from src.config import Config
    from src.database.resource import FixtureHooks, FixtureResource

    db_path = args.db.resolve()
    if db_path.exists():
        if not args.replace:
            logger.error("%s already exists (use --replace to overwrite)", db_path)
            return 1
        db_path.unlink()

    source = _file_data_source(db_path)
    hooks = FixtureHooks(data_source=lambda: source)
    if args.config:
        resource = Config(args.config).create_resource(hooks=hooks)
    else:
        resource = FixtureResource(hooks=hooks)
    if args.sql:
        resource.sql_path = args.sql
    if args.csv:
        resource.csv_path = args.csv
    if args.log_data:
        resource.log_loaded_data = True

    try:
        resource.before()
    except (sqlite3.Error, ValueError, OSError) as e:
        logger.error("Failed to build %s: %s", db_path, e)
        db_path.unlink(missing_ok=True)
        return 1

    try:
        tables = [
            row[0] for row in resource.execute_query(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
        ]
    finally:
        resource.after()
    logger.info("Built %s with %d table(s)", db_path, len(tables))
    return 0


def cmd_dump(args) -> int:
    """Log the rows of tables in an existing database file."""
    from src.database.loader import log_table_contents

    try:
        conn = _file_data_source(args.db, no_create=True).connect()
    except sqlite3.OperationalError as e:
        logger.error("Cannot open %s: %s", args.db, e)
        return 1

    try:
        tables = args.tables or [
            row[0] for row in conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
        ]
        cursor = conn.cursor()
        try:
            for table in tables:
                log_table_contents(cursor, table)
        except sqlite3.Error as e:
            logger.error("Failed to dump %s: %s", args.db, e)
            return 1
        finally:
            cursor.close()
    finally:
        conn.close()
    return 0


_COMMANDS = {
    "load": cmd_load,
    "dump": cmd_dump,
}


def main(argv: list[str] | None = None):
    _setup_logging()

    parser = argparse.ArgumentParser(
        prog="sqlite-fixtures",
        description="Build and inspect SQLite test fixture databases",
    )
    subparsers = parser.add_subparsers(dest="command")

    # load
    load_p = subparsers.add_parser("load", help="Build a database file from scripts and CSV files")
    load_p.add_argument("db", type=Path, help="Database file to create")
    load_p.add_argument("--config", type=Path, help="YAML fixture config file")
    load_p.add_argument("--sql", type=Path, help="Directory of schema scripts")
    load_p.add_argument("--csv", type=Path, help="Directory of CSV fixture files")
    load_p.add_argument("--log-data", action="store_true", help="Log every loaded row")
    load_p.add_argument("--replace", action="store_true", help="Overwrite an existing database file")

    # dump
    dump_p = subparsers.add_parser("dump", help="Log the rows of tables in a database file")
    dump_p.add_argument("db", type=Path, help="Existing database file")
    dump_p.add_argument("tables", nargs="*", help="Tables to dump (default: all)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}")
        sys.exit(1)

    sys.exit(handler(args))


if __name__ == "__main__":
    main()
