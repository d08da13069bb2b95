"""Per-run export context: options, output handles, counters and cutoff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import TracebackType
from typing import IO

from catalog_export.common.models import ExportCounts, RecordCategory, RunKind

_OUTPUT_BY_CATEGORY = {
    RecordCategory.BIB: "bibs",
    RecordCategory.MFHD: "mfhd",
    RecordCategory.AUTH: "auth",
    RecordCategory.ITEM: "item",
}


@dataclass(frozen=True)
class RunOptions:
    mode: str = ""
    library_id: int | None = None
    export_items: bool = True
    export_authorities: bool = True
    transfer: bool = False

    @property
    def export_type(self) -> RunKind:
        return RunKind.INCREMENTAL if self.mode else RunKind.FULL


@dataclass(frozen=True)
class OutputPaths:
    bibs: Path
    mfhd: Path
    auth: Path
    errs: Path
    item: Path
    log: Path
    ledger: Path
    summary: Path

    @classmethod
    def build(cls, out_dir: Path, org_id: str, export_type: RunKind) -> "OutputPaths":
        prefix = f"{org_id}-{export_type.value}"
        return cls(
            bibs=out_dir / f"{prefix}-bibs.mrc",
            mfhd=out_dir / f"{prefix}-mfhd.mrc",
            auth=out_dir / f"{prefix}-auth.mrc",
            errs=out_dir / f"{prefix}-errs.mrc",
            item=out_dir / f"{prefix}-item.txt",
            log=out_dir / f"{org_id}-export.log",
            ledger=out_dir / f"{org_id}-run-dates.txt",
            summary=out_dir / f"{prefix}-summary.json",
        )

    def for_category(self, category: RecordCategory) -> Path:
        return getattr(self, _OUTPUT_BY_CATEGORY[category])


@dataclass
class ExportSession:
    run_id: str
    run_date: date | None
    org_id: str
    options: RunOptions
    paths: OutputPaths
    logger: logging.Logger
    cutoff: date | None = None
    counts: ExportCounts = field(default_factory=ExportCounts)
    transfer_failures: list[str] = field(default_factory=list)
    _handles: dict[str, IO] = field(default_factory=dict, repr=False)

    @property
    def export_type(self) -> RunKind:
        return self.options.export_type

    def open_outputs(self) -> None:
        names = ["bibs", "mfhd", "errs"]
        if self.options.export_items:
            names.append("item")
        if self.options.export_authorities:
            names.append("auth")
        try:
            for name in names:
                path: Path = getattr(self.paths, name)
                if name == "item":
                    self._handles[name] = path.open("w", encoding="utf-8", newline="\n")
                else:
                    self._handles[name] = path.open("wb")
        except OSError:
            self.close_outputs()
            raise

    def write_record(self, category: RecordCategory, raw: bytes) -> None:
        self._handles[_OUTPUT_BY_CATEGORY[category]].write(raw)

    def write_malformed(self, raw: bytes) -> None:
        self._handles["errs"].write(raw)

    def write_item_line(self, line: str) -> None:
        self._handles["item"].write(line)

    def close_output(self, category: RecordCategory) -> None:
        handle = self._handles.pop(_OUTPUT_BY_CATEGORY[category], None)
        if handle is not None:
            handle.close()

    def close_outputs(self) -> None:
        while self._handles:
            _name, handle = self._handles.popitem()
            handle.close()

    @property
    def open_output_names(self) -> list[str]:
        return sorted(self._handles)

    def __enter__(self) -> "ExportSession":
        self.open_outputs()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close_outputs()
