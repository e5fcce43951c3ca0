"""Schema script and CSV fixture loading for the embedded database.

A fixture file seeds the table named by its filename without the last
extension (``PEOPLE.csv`` -> ``PEOPLE``). Its first row is a header; the data
rows are inserted positionally, so column order must match the table
definition. Empty fields load as NULL, including a quoted empty field (""),
which the csv module cannot tell apart from an unquoted one. NULL values are
rendered as ``null`` when table contents are logged.
"""

from __future__ import annotations

import csv
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

SCRIPT_EXTENSION = "sql"


def list_entries(directory: Path | str | None) -> list[Path]:
    """Return the entries of ``directory`` sorted by name.

    Missing directories (or paths that are not directories) yield an empty
    list so a resource without fixtures still starts.
    """
    if directory is None:
        return []
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(directory.iterdir(), key=lambda p: p.name)


def table_name_for(path: Path | str) -> str:
    name = Path(path).name
    dot = name.rfind(".")
    return name if dot == -1 else name[:dot]


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def execute_sql_script(cursor: sqlite3.Cursor, script: Path) -> bool:
    """Run a schema script against the cursor's connection.

    Files must be regular files with a ``.sql`` extension (any case);
    anything else is skipped with a warning.

    Returns:
        True if the script was executed, False if it was skipped.
    """
    script = Path(script)
    name = script.name
    if name.endswith("."):
        logger.warning("Script file name ends with '.' - skipping %s", script)
        return False

    dot = name.rfind(".")
    if dot == -1:
        logger.warning("Script file name does not contain '.' - skipping %s", script)
        return False

    if name[dot + 1:].lower() != SCRIPT_EXTENSION:
        logger.warning("Script file name does not end with '%s' - skipping %s",
                       SCRIPT_EXTENSION, script)
        return False

    if not script.is_file():
        logger.warning("Script is not a regular file - skipping %s", script)
        return False

    logger.info("Executing %s", script)
    cursor.executescript(script.read_text(encoding="utf-8"))
    return True


def read_csv(csv_file: Path) -> tuple[list[str], list[list[str | None]]]:
    """Parse a fixture file into its header and data rows.

    Raises:
        ValueError: If a data row has a different number of fields than
            the header.
    """
    with open(csv_file, "r", newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None:
            return [], []
        header = [h.strip() for h in header]

        rows: list[list[str | None]] = []
        for row in reader:
            if not row:
                continue
            if len(row) != len(header):
                raise ValueError(
                    f"{csv_file}:{reader.line_num}: expected {len(header)} fields, "
                    f"got {len(row)}"
                )
            rows.append([value if value != "" else None for value in row])
    return header, rows


def load_csv_file(cursor: sqlite3.Cursor, csv_file: Path | None) -> int:
    """Insert the rows of a fixture file into its table.

    Returns:
        The number of rows inserted.

    Raises:
        ValueError: If ``csv_file`` is None, does not exist, or is not a
            regular file. Nothing is written in that case.
    """
    if csv_file is None:
        raise ValueError("CSV file cannot be None")
    csv_file = Path(csv_file)
    if not csv_file.exists():
        raise ValueError(f"CSV file {csv_file} does not exist")
    if not csv_file.is_file():
        raise ValueError(f"CSV file {csv_file} is not a regular file")

    table = table_name_for(csv_file)
    logger.info("Loading %s", csv_file)

    header, rows = read_csv(csv_file)
    if not rows:
        logger.debug("No data rows in %s", csv_file)
        return 0

    placeholders = ", ".join("?" for _ in header)
    cursor.executemany(
        f"INSERT INTO {quote_identifier(table)} VALUES ({placeholders})", rows
    )
    return len(rows)


def format_row(columns: list[str], row) -> str:
    return ", ".join(
        f"{column} = {'null' if value is None else value}"
        for column, value in zip(columns, row)
    )


def log_table_contents(cursor: sqlite3.Cursor, table: str) -> int:
    """Log every row of ``table`` at INFO, one line per row.

    Returns:
        The number of rows logged.
    """
    cursor.execute(f"SELECT * FROM {quote_identifier(table)}")
    columns = [d[0] for d in cursor.description]
    logger.info("Table %s:", table)
    count = 0
    for count, row in enumerate(cursor, start=1):
        logger.info("\t Row #%d: %s", count, format_row(columns, row))
    return count
