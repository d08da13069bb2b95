"""Classification and routing of MARC records into output streams.

Each record ends up in exactly one place: its category stream, the error
stream (embedded line break), or nowhere (unchanged since the cutoff).
Classification never aborts the run.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from itertools import groupby
from typing import Iterable, Protocol

from catalog_export.common.errors import MalformedRecordError
from catalog_export.common.logging import log_event
from catalog_export.common.models import BibHoldingsRow, CatalogRecord, ExportCounts, RecordCategory


class Disposition(str, Enum):
    WRITE = "write"
    MALFORMED = "malformed"
    DROP = "drop"


class RecordSink(Protocol):
    def write_record(self, category: RecordCategory, raw: bytes) -> None: ...

    def write_malformed(self, raw: bytes) -> None: ...


def changed_since(record: CatalogRecord, cutoff: date) -> bool:
    return any(stamp is not None and stamp > cutoff for stamp in (record.created, record.updated))


def classify(record: CatalogRecord, cutoff: date | None) -> Disposition:
    if record.is_malformed:
        return Disposition.MALFORMED
    if cutoff is None or changed_since(record, cutoff):
        return Disposition.WRITE
    return Disposition.DROP


class RecordClassifier:
    def __init__(
        self,
        sink: RecordSink,
        *,
        cutoff: date | None,
        counts: ExportCounts | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.sink = sink
        self.cutoff = cutoff
        self.counts = counts if counts is not None else ExportCounts()
        self.logger = logger
        self.ordering_violations = 0

    def route(self, record: CatalogRecord) -> Disposition:
        disposition = classify(record, self.cutoff)
        if disposition is Disposition.MALFORMED:
            self.sink.write_malformed(record.raw)
            self.counts.bad[record.category] += 1
            if self.logger is not None:
                log_event(
                    self.logger,
                    f"{record.category.value} record {record.record_id} contains a line break",
                    level=logging.DEBUG,
                    category=record.category.value,
                    event="RECORD_DIVERTED",
                    status="warning",
                    error_code=MalformedRecordError.error_code,
                )
        elif disposition is Disposition.WRITE:
            self.sink.write_record(record.category, record.raw)
            self.counts.good[record.category] += 1
        return disposition

    def _note_out_of_order(self, bib_id, previous_id) -> None:
        self.ordering_violations += 1
        if self.ordering_violations == 1 and self.logger is not None:
            log_event(
                self.logger,
                f"bib id {bib_id} arrived after {previous_id}; rows are not ordered by bib id",
                level=logging.WARNING,
                category=RecordCategory.BIB.value,
                event="ORDERING_VIOLATION",
                status="warning",
            )

    def route_bib_holdings(self, rows: Iterable[BibHoldingsRow]) -> None:
        """Route joined bib+holdings rows.

        Rows arrive ordered by bib id with one holdings record each. The bib
        record is routed once per group of consecutive rows sharing its id,
        from the group's first row; every holdings record is routed.
        """
        previous_id = None
        for bib_id, group in groupby(rows, key=lambda row: row.bib.record_id):
            if previous_id is not None and bib_id < previous_id:
                self._note_out_of_order(bib_id, previous_id)
            previous_id = bib_id
            first = True
            for row in group:
                if first:
                    self.route(row.bib)
                    first = False
                self.route(row.mfhd)

    def route_authorities(self, records: Iterable[CatalogRecord]) -> None:
        for record in records:
            self.route(record)
