"""YAML configuration loader for fixture resources.

A config file names the schema and fixture directories and, optionally,
the data source to use:

    sql_path: sql
    csv_path: csv
    log_loaded_data: true
    datasource:
      url: sqlite:mem:embedded-sqlite
      user: SQLITE
      password: SQLITE

Relative paths are resolved against the directory holding the config file.
"""

from dataclasses import replace
from pathlib import Path

import yaml

from src.database.datasource import DataSource
from src.database.resource import (
    DEFAULT_CSV_PATH,
    DEFAULT_SQL_PATH,
    FixtureHooks,
    FixtureResource,
)

_KNOWN_KEYS = frozenset({"sql_path", "csv_path", "log_loaded_data", "datasource"})


class Config:
    """Loads and provides access to a fixture resource config file."""

    def __init__(self, config_file: Path | str):
        self.config_file = Path(config_file)
        if not self.config_file.is_file():
            raise FileNotFoundError(f"Config file not found: {self.config_file}")
        self._data: dict | None = None

    def _load(self) -> dict:
        if self._data is None:
            with open(self.config_file) as f:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in {self.config_file}: {e}") from e
            if data is None:
                raise ValueError(f"Empty config file: {self.config_file}")
            if not isinstance(data, dict):
                raise ValueError(f"Config file must contain a mapping: {self.config_file}")
            unknown = set(data) - _KNOWN_KEYS
            if unknown:
                raise ValueError(f"Unknown keys in {self.config_file}: {sorted(unknown)}")
            self._data = data
        return self._data

    def _resolve(self, value: str | None, default: Path) -> Path:
        if value is None:
            return default
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.config_file.parent / path
        return path

    @property
    def sql_path(self) -> Path:
        return self._resolve(self._load().get("sql_path"), DEFAULT_SQL_PATH)

    @property
    def csv_path(self) -> Path:
        return self._resolve(self._load().get("csv_path"), DEFAULT_CSV_PATH)

    @property
    def log_loaded_data(self) -> bool:
        return bool(self._load().get("log_loaded_data", False))

    def data_source(self) -> DataSource | None:
        """Return the configured data source, or None to use the default."""
        block = self._load().get("datasource")
        if block is None:
            return None
        if not isinstance(block, dict) or "url" not in block:
            raise ValueError(f"'datasource' must be a mapping with a 'url' in {self.config_file}")
        source = DataSource(
            url=str(block["url"]),
            user=str(block.get("user", "")),
            password=str(block.get("password", "")),
        )
        source.parse()
        return source

    def create_resource(self, hooks: FixtureHooks | None = None) -> FixtureResource:
        source = self.data_source()
        hooks = hooks or FixtureHooks()
        if source is not None and hooks.data_source is None:
            hooks = replace(hooks, data_source=lambda: source)
        return FixtureResource(
            sql_path=self.sql_path,
            csv_path=self.csv_path,
            log_loaded_data=self.log_loaded_data,
            hooks=hooks,
        )
