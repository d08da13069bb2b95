from pathlib import Path

import pytest

from catalog_export.common.errors import LedgerWriteError
from catalog_export.common.models import RunEntry, RunKind
from catalog_export.pipeline.ledger import RunLedger


def test_append_writes_tab_separated_lines(tmp_path: Path):
    ledger = RunLedger(tmp_path / "TEST-run-dates.txt")
    ledger.append(RunEntry(run_date="2020-01-01", kind=RunKind.FULL))
    ledger.append(RunEntry(run_date="2020-02-01", kind=RunKind.INCREMENTAL))

    assert ledger.path.read_text(encoding="utf-8") == "2020-01-01\tfull\n2020-02-01\tincr\n"
    assert ledger.entries() == [
        RunEntry(run_date="2020-01-01", kind=RunKind.FULL),
        RunEntry(run_date="2020-02-01", kind=RunKind.INCREMENTAL),
    ]


def test_latest_scans_from_the_end_and_skips_unreadable_lines(tmp_path: Path):
    path = tmp_path / "dates.txt"
    path.write_text(
        "2019-12-01\tfull\n2020-01-01\tFULL\n\ngarbage line\n2020-02-01\tincremental\n2020-03-01\tincr\n",
        encoding="utf-8",
    )
    ledger = RunLedger(path)

    assert ledger.latest(RunKind.FULL) == RunEntry(run_date="2020-01-01", kind=RunKind.FULL)
    assert ledger.latest(RunKind.INCREMENTAL) == RunEntry(run_date="2020-03-01", kind=RunKind.INCREMENTAL)


def test_missing_ledger_has_no_entries(tmp_path: Path):
    ledger = RunLedger(tmp_path / "absent.txt")
    assert ledger.entries() == []
    assert ledger.latest(RunKind.FULL) is None


def test_long_history_is_never_compacted(tmp_path: Path):
    ledger = RunLedger(tmp_path / "dates.txt")
    ledger.append(RunEntry(run_date="2001-01-01", kind=RunKind.FULL))
    for day in range(1, 29):
        ledger.append(RunEntry(run_date=f"2021-02-{day:02d}", kind=RunKind.INCREMENTAL))

    assert len(ledger.entries()) == 29
    assert ledger.latest(RunKind.FULL).run_date == "2001-01-01"


def test_append_failure_is_a_recoverable_ledger_error(tmp_path: Path):
    ledger = RunLedger(tmp_path)  # a directory cannot be opened for append

    with pytest.raises(LedgerWriteError) as excinfo:
        ledger.append(RunEntry(run_date="2020-01-01", kind=RunKind.FULL))

    assert excinfo.value.fatal is False


def test_append_terminates_a_last_line_missing_its_newline(tmp_path: Path):
    path = tmp_path / "dates.txt"
    path.write_bytes(b"2020-01-01\tfull")
    ledger = RunLedger(path)

    ledger.append(RunEntry(run_date="2020-09-01", kind=RunKind.INCREMENTAL))

    assert path.read_bytes() == b"2020-01-01\tfull\n2020-09-01\tincr\n"
    assert ledger.entries() == [
        RunEntry(run_date="2020-01-01", kind=RunKind.FULL),
        RunEntry(run_date="2020-09-01", kind=RunKind.INCREMENTAL),
    ]


def test_append_to_empty_file_adds_no_blank_line(tmp_path: Path):
    path = tmp_path / "dates.txt"
    path.write_bytes(b"")

    RunLedger(path).append(RunEntry(run_date="2020-09-01", kind=RunKind.FULL))

    assert path.read_bytes() == b"2020-09-01\tfull\n"


def test_non_utf8_bytes_do_not_break_the_scan(tmp_path: Path):
    path = tmp_path / "dates.txt"
    path.write_bytes(b"2020-01-01\tfull\n# op\xe9rateur\n2020-02-01\tincr\n")
    ledger = RunLedger(path)

    assert ledger.latest(RunKind.FULL) == RunEntry(run_date="2020-01-01", kind=RunKind.FULL)
    assert [entry.run_date for entry in ledger.iter_newest_first()] == ["2020-02-01", "2020-01-01"]
