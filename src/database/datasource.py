"""Connection parameters for the embedded SQLite database.

URLs look like ``sqlite:<target>[;SETTING=VALUE...]`` where target is either
``mem:<name>`` (named, shared-cache in-memory database) or a filesystem path.
The only setting understood is ``IFEXISTS=TRUE``, which refuses to create an
on-disk database that does not already exist.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

URL_PREFIX = "sqlite:"
MEMORY_PREFIX = "mem:"
NO_CREATE_SUFFIX = ";IFEXISTS=TRUE"

DEFAULT_URL = "sqlite:mem:embedded-sqlite"
DEFAULT_USER = "SQLITE"
DEFAULT_PASSWORD = "SQLITE"

_KNOWN_SETTINGS = frozenset({"IFEXISTS"})


@dataclass(frozen=True)
class DataSource:
    url: str
    user: str = ""
    password: str = ""

    def parse(self) -> tuple[str, dict[str, str]]:
        """Split the URL into its target and upper-cased settings.

        Raises:
            ValueError: If the URL is not a ``sqlite:`` URL, has no target,
                or carries a malformed or unknown setting.
        """
        if not self.url.startswith(URL_PREFIX):
            raise ValueError(f"Unsupported data source URL: {self.url!r}")

        target, *parts = self.url[len(URL_PREFIX):].split(";")
        if not target or target == MEMORY_PREFIX:
            raise ValueError(f"Data source URL has no target: {self.url!r}")

        settings: dict[str, str] = {}
        for part in parts:
            if not part:
                continue
            key, sep, value = part.partition("=")
            key = key.strip().upper()
            if not sep or key not in _KNOWN_SETTINGS:
                raise ValueError(f"Unknown data source setting {part!r} in {self.url!r}")
            settings[key] = value.strip().upper()
        return target, settings

    def connect(self) -> sqlite3.Connection:
        """Open a new connection to the database this URL names."""
        target, settings = self.parse()
        if_exists = settings.get("IFEXISTS") == "TRUE"

        if target.startswith(MEMORY_PREFIX):
            name = quote(target[len(MEMORY_PREFIX):])
            uri = f"file:{name}?mode=memory&cache=shared"
        else:
            path = Path(target).expanduser().resolve()
            mode = "rw" if if_exists else "rwc"
            uri = f"{path.as_uri()}?mode={mode}"

        conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn


def default_data_source() -> DataSource:
    return DataSource(url=DEFAULT_URL, user=DEFAULT_USER, password=DEFAULT_PASSWORD)
