"""Database connection factory for the catalog store.

Only read access is ever needed, so SQLite databases are opened read-only and
Oracle sessions are expected to use a read-only account.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any

from catalog_export.common.errors import ConfigError, StoreConnectionError
from catalog_export.store.queries import Dialect


@dataclass(frozen=True)
class StoreConfig:
    dialect: str
    schema: str | None = None
    dsn: str | None = None
    user: str | None = None
    password: str | None = None
    path: Path | None = None
    record_encoding: str = "utf-8"
    arraysize: int = 500

    @classmethod
    def from_config(cls, database_cfg: dict) -> "StoreConfig":
        path = database_cfg.get("path")
        return cls(
            dialect=database_cfg["dialect"],
            schema=database_cfg.get("schema"),
            dsn=database_cfg.get("dsn"),
            user=database_cfg.get("user"),
            password=database_cfg.get("password"),
            path=Path(path) if path else None,
            record_encoding=database_cfg.get("record_encoding", "utf-8"),
            arraysize=int(database_cfg.get("arraysize", 500)),
        )

    def sql_dialect(self) -> Dialect:
        return Dialect(name=self.dialect, schema=self.schema if self.dialect == "oracle" else None)


def _connect_sqlite(config: StoreConfig) -> tuple[ModuleType, Any]:
    if config.path is None:
        raise ConfigError("database.path is required for SQLite")
    try:
        conn = sqlite3.connect(f"{config.path.resolve().as_uri()}?mode=ro", uri=True)
    except sqlite3.Error as exc:
        raise StoreConnectionError(f"Could not open SQLite catalog {config.path}: {exc}") from exc
    return sqlite3, conn


def _connect_oracle(config: StoreConfig) -> tuple[ModuleType, Any]:
    # Imported here so SQLite runs do not need the Oracle driver installed.
    try:
        import oracledb
    except ImportError as exc:
        raise ConfigError("Oracle support requires oracledb. Install with: pip install '.[oracle]'") from exc

    # Blob columns come back as bytes instead of LOB locators.
    oracledb.defaults.fetch_lobs = False
    try:
        conn = oracledb.connect(user=config.user, password=config.password, dsn=config.dsn)
    except oracledb.Error as exc:
        raise StoreConnectionError(f"Could not connect to {config.dsn}: {exc}") from exc
    return oracledb, conn


def open_connection(config: StoreConfig) -> tuple[ModuleType, Any]:
    """Return the DB-API module and an open connection for ``config``."""
    if config.dialect == "sqlite":
        return _connect_sqlite(config)
    if config.dialect == "oracle":
        return _connect_oracle(config)
    raise ConfigError(f"Unsupported database dialect: {config.dialect}")
