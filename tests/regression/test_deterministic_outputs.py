from pathlib import Path

import pytest

from catalog_export.cli import parse_args, run_command


def _run_once(config_dir: Path, out_dir: Path, run_id: str, transfer, notifier) -> None:
    out_dir.mkdir()
    args = parse_args(
        [
            "--config-dir",
            str(config_dir),
            "--out-dir",
            str(out_dir),
            "--run-date",
            "2020-09-01",
            "--run-id",
            run_id,
        ]
    )
    assert run_command(args, transfer=transfer, notifier=notifier) == 0


@pytest.mark.regression
def test_export_files_are_byte_stable_for_same_catalog(tmp_path: Path, export_env, recording_transfer, recording_notifier):
    first = tmp_path / "first"
    second = tmp_path / "second"

    _run_once(export_env["config_dir"], first, "run-a", recording_transfer, recording_notifier)
    _run_once(export_env["config_dir"], second, "run-b", recording_transfer, recording_notifier)

    for name in ("TEST-full-bibs.mrc", "TEST-full-mfhd.mrc", "TEST-full-auth.mrc", "TEST-full-errs.mrc", "TEST-full-item.txt"):
        assert (first / name).read_bytes() == (second / name).read_bytes()
