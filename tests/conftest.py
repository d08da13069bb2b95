from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest
import yaml

SCHEMA = """
CREATE TABLE library (library_id INTEGER PRIMARY KEY, library_name TEXT);
CREATE TABLE location (location_id INTEGER PRIMARY KEY, location_code TEXT, suppress_in_opac TEXT);
CREATE TABLE bib_master (
    bib_id INTEGER PRIMARY KEY, library_id INTEGER, create_date TEXT, update_date TEXT, suppress_in_opac TEXT
);
CREATE TABLE bib_mfhd (bib_id INTEGER, mfhd_id INTEGER);
CREATE TABLE mfhd_master (
    mfhd_id INTEGER PRIMARY KEY, location_id INTEGER, create_date TEXT, update_date TEXT, suppress_in_opac TEXT
);
CREATE TABLE bib_record (bib_id INTEGER PRIMARY KEY, record BLOB);
CREATE TABLE mfhd_record (mfhd_id INTEGER PRIMARY KEY, record BLOB);
CREATE TABLE auth_master (auth_id INTEGER PRIMARY KEY, create_date TEXT, update_date TEXT);
CREATE TABLE auth_record (auth_id INTEGER PRIMARY KEY, record BLOB);
CREATE TABLE mfhd_item (mfhd_id INTEGER, item_id INTEGER, item_enum TEXT, chron TEXT, year TEXT);
CREATE TABLE item (
    item_id INTEGER PRIMARY KEY, perm_location INTEGER, temp_location INTEGER, item_type_id INTEGER,
    copy_number INTEGER, create_date TEXT, modify_date TEXT
);
CREATE TABLE item_status (item_id INTEGER, item_status INTEGER, item_status_date TEXT);
CREATE TABLE item_status_type (item_status_type INTEGER PRIMARY KEY, item_status_desc TEXT);
CREATE TABLE item_type (item_type_id INTEGER PRIMARY KEY, item_type_display TEXT);
CREATE TABLE item_barcode (item_id INTEGER, item_barcode TEXT, barcode_status INTEGER);
"""

BIB_7 = b"00042nam  bib-seven\x1e\x1d"
BIB_9 = b"00041nam  bib-nine\x1e\x1d"
BIB_11_BROKEN = b"00044nam  bib-eleven\nbroken\x1d"
MFHD_70 = b"00039nx  mfhd-70\x1e\x1d"
MFHD_71 = b"00039nx  mfhd-71\x1e\x1d"
MFHD_90 = b"00039nx  mfhd-90\x1e\x1d"
MFHD_110 = b"00040nx  mfhd-110\x1e\x1d"
MFHD_120 = b"00040nx  mfhd-120\x1e\x1d"
AUTH_1 = b"00037nz  auth-1\x1e\x1d"
AUTH_2 = b"00037nz  auth-2\x1e\x1d"
AUTH_3_BROKEN = b"00041nz  auth-3\nbroken\x1d"


def build_catalog(path: Path) -> Path:
    conn = sqlite3.connect(path)
    try:
        conn.executescript(SCHEMA)
        conn.executemany("INSERT INTO library VALUES (?, ?)", [(1, "Central"), (2, "Branch")])
        conn.executemany(
            "INSERT INTO location VALUES (?, ?, ?)",
            [(10, "main", "N"), (11, "annex", "N"), (12, "staff", "Y")],
        )
        conn.executemany(
            "INSERT INTO bib_master VALUES (?, ?, ?, ?, ?)",
            [
                (7, 1, "2020-01-10 09:00:00", "2020-06-05 14:30:00", "N"),
                (9, 1, "2020-05-01 00:00:00", "2020-05-15 00:00:00", "N"),
                (11, 2, "2020-03-01 00:00:00", None, "N"),
                (12, 1, "2020-08-01 00:00:00", None, "N"),
            ],
        )
        conn.executemany(
            "INSERT INTO bib_mfhd VALUES (?, ?)",
            [(7, 70), (7, 71), (9, 90), (11, 110), (12, 120)],
        )
        conn.executemany(
            "INSERT INTO mfhd_master VALUES (?, ?, ?, ?, ?)",
            [
                (70, 10, "2020-01-10 09:00:00", None, "N"),
                (71, 11, "2020-05-01 00:00:00", "2020-05-15 00:00:00", "N"),
                (90, 10, "2020-07-01 00:00:00", None, "N"),
                (110, 10, "2020-03-01 00:00:00", None, "N"),
                (120, 12, "2020-08-01 00:00:00", None, "N"),
            ],
        )
        conn.executemany(
            "INSERT INTO bib_record VALUES (?, ?)",
            [(7, BIB_7), (9, BIB_9), (11, BIB_11_BROKEN), (12, b"00040nam  bib-12\x1e\x1d")],
        )
        conn.executemany(
            "INSERT INTO mfhd_record VALUES (?, ?)",
            [(70, MFHD_70), (71, MFHD_71), (90, MFHD_90), (110, MFHD_110), (120, MFHD_120)],
        )
        conn.executemany(
            "INSERT INTO auth_master VALUES (?, ?, ?)",
            [
                (1, "2020-01-01 00:00:00", "2020-08-01 00:00:00"),
                (2, "2019-04-01 00:00:00", None),
                (3, "2020-07-01 00:00:00", None),
            ],
        )
        conn.executemany(
            "INSERT INTO auth_record VALUES (?, ?)",
            [(1, AUTH_1), (2, AUTH_2), (3, AUTH_3_BROKEN)],
        )
        conn.executemany(
            "INSERT INTO mfhd_item VALUES (?, ?, ?, ?, ?)",
            [(70, 700, "v.1", "2019", "2019"), (71, 710, "v.2", None, None), (110, 1100, None, None, None)],
        )
        conn.executemany(
            "INSERT INTO item VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                (700, 10, None, 1, 1, "2020-01-10 09:00:00", None),
                (710, 11, 10, 1, 2, "2020-05-01 00:00:00", None),
                (1100, 10, None, 1, 1, "2020-03-01 00:00:00", None),
            ],
        )
        conn.executemany(
            "INSERT INTO item_status VALUES (?, ?, ?)",
            [
                (700, 1, "2020-01-10 09:00:00"),
                (700, 2, "2020-06-10 11:00:00"),
                (710, 1, "2020-05-01 00:00:00"),
                (1100, 1, "2020-03-01 00:00:00"),
            ],
        )
        conn.executemany("INSERT INTO item_status_type VALUES (?, ?)", [(1, "Not Charged"), (2, "Charged")])
        conn.executemany("INSERT INTO item_type VALUES (?, ?)", [(1, "Book")])
        conn.executemany(
            "INSERT INTO item_barcode VALUES (?, ?, ?)",
            [(700, "3900001", 1), (710, "3900002", 1)],
        )
        conn.commit()
    finally:
        conn.close()
    return path


def write_export_config(config_dir: Path, *, out_dir: Path, db_path: Path, **overrides) -> Path:
    cfg = {
        "org_id": "TEST",
        "output": {"directory": str(out_dir)},
        "database": {"dialect": "sqlite", "path": str(db_path), "arraysize": 2},
        "transfer": {
            "hostname": "ftp.example.test",
            "username": "loader",
            "password": "secret",
            "directories": {"bibs": "in/bibs", "mfhd": "in/mfhd", "auth": "in/auth", "item": "in/item", "log": ""},
        },
        "notification": {"method": "none"},
    }
    cfg.update(overrides)
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / "export.yml"
    path.write_text(yaml.safe_dump(cfg, sort_keys=False), encoding="utf-8")
    return path


class RecordingTransfer:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str, str | None]] = []
        self.fail_on = fail_on or set()

    def send(self, path: Path, mode, destination):
        from catalog_export.common.errors import TransferError

        if path.name in self.fail_on:
            raise TransferError(f"Cannot put {path.name}")
        self.sent.append((path.name, mode.value, destination))


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, subject: str, body: str) -> bool:
        self.messages.append((subject, body))
        return True


@pytest.fixture
def catalog_db(tmp_path: Path) -> Path:
    return build_catalog(tmp_path / "catalog.db")


@pytest.fixture
def export_env(tmp_path: Path, catalog_db: Path) -> dict:
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    config_dir = tmp_path / "config"
    write_export_config(config_dir, out_dir=out_dir, db_path=catalog_db)
    return {"config_dir": config_dir, "out_dir": out_dir, "db_path": catalog_db}


@pytest.fixture
def recording_transfer() -> RecordingTransfer:
    return RecordingTransfer()


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    return RecordingNotifier()
