import logging
from datetime import date
from pathlib import Path

import pytest

from catalog_export.common.models import RecordCategory, RunKind
from catalog_export.pipeline.session import ExportSession, OutputPaths, RunOptions


def _session(tmp_path: Path, **options) -> ExportSession:
    run_options = RunOptions(**options)
    return ExportSession(
        run_id="run-unit",
        run_date=date(2020, 9, 1),
        org_id="TEST",
        options=run_options,
        paths=OutputPaths.build(tmp_path, "TEST", run_options.export_type),
        logger=logging.getLogger("catalog_export.test"),
    )


def test_output_names_follow_org_and_export_type(tmp_path: Path):
    paths = OutputPaths.build(tmp_path, "ORG", RunKind.INCREMENTAL)

    assert paths.bibs.name == "ORG-incr-bibs.mrc"
    assert paths.errs.name == "ORG-incr-errs.mrc"
    assert paths.item.name == "ORG-incr-item.txt"
    assert paths.log.name == "ORG-export.log"
    assert paths.ledger.name == "ORG-run-dates.txt"
    assert paths.for_category(RecordCategory.AUTH).name == "ORG-incr-auth.mrc"


def test_any_mode_makes_an_incremental_run():
    assert RunOptions().export_type is RunKind.FULL
    assert RunOptions(mode="2020-01-01").export_type is RunKind.INCREMENTAL


def test_suppressed_phases_open_no_file(tmp_path: Path):
    session = _session(tmp_path, export_items=False, export_authorities=False)

    with session:
        assert session.open_output_names == ["bibs", "errs", "mfhd"]

    assert not session.paths.item.exists()
    assert not session.paths.auth.exists()


def test_writes_go_to_their_category_file(tmp_path: Path):
    session = _session(tmp_path)

    with session:
        session.write_record(RecordCategory.MFHD, b"m\x1d")
        session.write_malformed(b"bad\nrecord\x1d")
        session.write_item_line("1|2|3\n")

    assert session.paths.mfhd.read_bytes() == b"m\x1d"
    assert session.paths.errs.read_bytes() == b"bad\nrecord\x1d"
    assert session.paths.item.read_bytes() == b"1|2|3\n"


def test_closing_is_idempotent(tmp_path: Path):
    session = _session(tmp_path)
    session.open_outputs()

    session.close_output(RecordCategory.BIB)
    session.close_output(RecordCategory.BIB)
    assert "bibs" not in session.open_output_names

    session.close_outputs()
    session.close_outputs()
    assert session.open_output_names == []


def test_open_failure_closes_what_was_opened(tmp_path: Path):
    session = _session(tmp_path)
    session.paths.item.mkdir()

    with pytest.raises(OSError):
        session.open_outputs()

    assert session.open_output_names == []
