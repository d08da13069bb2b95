"""Data models used across the export."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class RecordCategory(str, Enum):
    BIB = "bib"
    MFHD = "mfhd"
    AUTH = "auth"
    ITEM = "item"


class RunKind(str, Enum):
    FULL = "full"
    INCREMENTAL = "incr"

    @classmethod
    def from_label(cls, label: str) -> "RunKind | None":
        # Older ledgers may carry labels like "incremental" or "FULL".
        text = label.strip().lower()
        if "full" in text:
            return cls.FULL
        if "incr" in text:
            return cls.INCREMENTAL
        return None


@dataclass(frozen=True)
class RunEntry:
    run_date: str
    kind: RunKind

    def to_line(self) -> str:
        return f"{self.run_date}\t{self.kind.value}\n"


@dataclass(frozen=True)
class CatalogRecord:
    category: RecordCategory
    record_id: int | str
    created: date | None
    updated: date | None
    raw: bytes

    @property
    def is_malformed(self) -> bool:
        return b"\n" in self.raw


@dataclass(frozen=True)
class BibHoldingsRow:
    bib: CatalogRecord
    mfhd: CatalogRecord
    location_id: int | str | None


@dataclass
class ItemRow:
    bib_id: int | str
    mfhd_id: int | str
    item_id: int | str | None
    mfhd_location_code: int | str | None
    perm_location_code: int | str | None
    temp_location_code: int | str | None
    status_code: int | str | None
    enumeration: str | None
    chronology: str | None
    year: str | None
    copy_number: int | str | None
    item_type: str | None
    barcode: str | None
    barcode_status: int | str | None
    # Filled in by the item enricher.
    status_label: str = ""
    perm_location_label: str = ""
    temp_location_label: str = ""
    mfhd_location_label: str = ""

    @property
    def has_item(self) -> bool:
        return self.item_id not in (None, "")


@dataclass
class ExportCounts:
    good: Counter = field(default_factory=Counter)
    bad: Counter = field(default_factory=Counter)

    @property
    def total_bad(self) -> int:
        return sum(self.bad.values())

    def to_dict(self) -> dict[str, int]:
        out = {category.value: self.good[category] for category in RecordCategory}
        out["bad"] = self.total_bad
        return out
