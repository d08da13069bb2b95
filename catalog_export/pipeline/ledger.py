"""Append-only ledger of completed export runs.

One ``date<TAB>kind`` line per run. Lines are only ever appended; the newest
relevant entry is the last matching line in the file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from catalog_export.common.errors import LedgerWriteError
from catalog_export.common.models import RunEntry, RunKind


def _parse_line(line: str) -> RunEntry | None:
    run_date, _, label = line.rstrip("\r\n").partition("\t")
    kind = RunKind.from_label(label)
    if kind is None:
        return None
    return RunEntry(run_date=run_date.strip(), kind=kind)


class RunLedger:
    def __init__(self, path: Path) -> None:
        self.path = path

    def iter_entries(self) -> Iterator[RunEntry]:
        """Yield parsable entries oldest first, one line at a time."""
        if not self.path.exists():
            return
        # Only the ASCII date and kind are read.
        with self.path.open("r", encoding="utf-8", errors="replace") as f:
            for line in f:
                entry = _parse_line(line)
                if entry is not None:
                    yield entry

    def entries(self) -> list[RunEntry]:
        return list(self.iter_entries())

    def iter_newest_first(self) -> Iterator[RunEntry]:
        return reversed(self.entries())

    def latest(self, kind: RunKind) -> RunEntry | None:
        found = None
        for entry in self.iter_entries():
            if entry.kind is kind:
                found = entry
        return found

    def append(self, entry: RunEntry) -> None:
        try:
            with self.path.open("a+b") as f:
                # Terminate a last line left without its newline, or the entry joins it.
                if f.seek(0, os.SEEK_END) > 0:
                    f.seek(-1, os.SEEK_END)
                    if f.read(1) != b"\n":
                        f.write(b"\n")
                f.write(entry.to_line().encode("utf-8"))
        except OSError as exc:
            raise LedgerWriteError(f"Could not append to {self.path}: {exc}") from exc
