"""Item-level export: label lookups and the pipe-delimited item file."""

from __future__ import annotations

from typing import Iterable, Iterator, Protocol

from catalog_export.common.constants import ITEM_FIELD_DELIMITER, ITEM_FIELDS
from catalog_export.common.models import ExportCounts, ItemRow, RecordCategory
from catalog_export.pipeline.reference import ReferenceLookup


class ItemSink(Protocol):
    def write_item_line(self, line: str) -> None: ...


def _text(value) -> str:
    return "" if value is None else str(value)


def enrich(row: ItemRow, lookup: ReferenceLookup) -> ItemRow:
    row.status_label = lookup.status(row.status_code)
    row.perm_location_label = lookup.location(row.perm_location_code)
    row.temp_location_label = lookup.location(row.temp_location_code)
    row.mfhd_location_label = lookup.location(row.mfhd_location_code)
    return row


def format_item_line(row: ItemRow) -> str:
    return ITEM_FIELD_DELIMITER.join(_text(getattr(row, name)) for name in ITEM_FIELDS) + "\n"


class ItemEnricher:
    def __init__(self, lookup: ReferenceLookup, sink: ItemSink, *, counts: ExportCounts | None = None) -> None:
        self.lookup = lookup
        self.sink = sink
        self.counts = counts if counts is not None else ExportCounts()

    def lines(self, rows: Iterable[ItemRow]) -> Iterator[str]:
        for row in rows:
            # Outer-join rows for holdings without items carry no item id.
            if not row.has_item:
                continue
            yield format_item_line(enrich(row, self.lookup))

    def export(self, rows: Iterable[ItemRow]) -> int:
        written = 0
        for line in self.lines(rows):
            self.sink.write_item_line(line)
            self.counts.good[RecordCategory.ITEM] += 1
            written += 1
        return written
