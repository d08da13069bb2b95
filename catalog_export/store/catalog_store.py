"""Streaming access to catalog rows over one DB-API connection."""

from __future__ import annotations

from datetime import date
from types import ModuleType, TracebackType
from typing import Any, Callable, Iterator, TypeVar

from catalog_export.common.errors import QueryError
from catalog_export.common.models import BibHoldingsRow, CatalogRecord, ItemRow, RecordCategory
from catalog_export.common.time_utils import as_date
from catalog_export.store.connection import StoreConfig, open_connection
from catalog_export.store.queries import (
    Query,
    authority_query,
    bib_holdings_query,
    item_query,
    item_status_query,
    library_query,
    location_query,
)

T = TypeVar("T")


class CatalogStore:
    """Read-only view of the catalog.

    Row streams are generators over a server-side cursor; each is consumed
    in ``arraysize`` batches and never held in full. Any driver error,
    whether at execute or at fetch, surfaces as a QueryError.
    """

    def __init__(self, dbapi: ModuleType, connection: Any, config: StoreConfig) -> None:
        self._dbapi = dbapi
        self._conn = connection
        self.config = config
        self.dialect = config.sql_dialect()

    @classmethod
    def connect(cls, config: StoreConfig) -> "CatalogStore":
        dbapi, connection = open_connection(config)
        return cls(dbapi, connection, config)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _stream(self, query: Query, mapper: Callable[[tuple], T]) -> Iterator[T]:
        try:
            cursor = self._conn.cursor()
            cursor.arraysize = self.config.arraysize
            cursor.execute(query.sql, query.params)
        except self._dbapi.Error as exc:
            raise QueryError(f"Query failed: {exc}") from exc
        try:
            while True:
                try:
                    rows = cursor.fetchmany(self.config.arraysize)
                except self._dbapi.Error as exc:
                    raise QueryError(f"Fetch failed: {exc}") from exc
                if not rows:
                    break
                for row in rows:
                    yield mapper(row)
        finally:
            cursor.close()

    def _load_map(self, query: Query) -> dict:
        return dict(self._stream(query, lambda row: (row[0], row[1])))

    def _blob(self, value: Any) -> bytes:
        if value is None:
            return b""
        if hasattr(value, "read"):
            value = value.read()
        if isinstance(value, str):
            return value.encode(self.config.record_encoding)
        return bytes(value)

    def _record(self, category: RecordCategory, record_id, created, updated, blob) -> CatalogRecord:
        return CatalogRecord(
            category=category,
            record_id=record_id,
            created=as_date(created),
            updated=as_date(updated),
            raw=self._blob(blob),
        )

    def libraries(self) -> dict:
        return self._load_map(library_query(self.dialect))

    def locations(self) -> dict:
        return self._load_map(location_query(self.dialect))

    def item_statuses(self) -> dict:
        return self._load_map(item_status_query(self.dialect))

    def bib_holdings_rows(self, cutoff: date | None, library_id: int | None = None) -> Iterator[BibHoldingsRow]:
        def to_row(row: tuple) -> BibHoldingsRow:
            return BibHoldingsRow(
                bib=self._record(RecordCategory.BIB, row[0], row[1], row[2], row[7]),
                mfhd=self._record(RecordCategory.MFHD, row[3], row[4], row[5], row[8]),
                location_id=row[6],
            )

        return self._stream(bib_holdings_query(self.dialect, cutoff, library_id), to_row)

    def item_rows(self, cutoff: date | None, library_id: int | None = None) -> Iterator[ItemRow]:
        def to_row(row: tuple) -> ItemRow:
            return ItemRow(
                bib_id=row[0],
                mfhd_id=row[1],
                item_id=row[2],
                mfhd_location_code=row[3],
                perm_location_code=row[4],
                temp_location_code=row[5],
                status_code=row[6],
                enumeration=row[7],
                chronology=row[8],
                year=row[9],
                copy_number=row[10],
                item_type=row[11],
                barcode=row[12],
                barcode_status=row[13],
            )

        return self._stream(item_query(self.dialect, cutoff, library_id), to_row)

    def authority_records(self, cutoff: date | None) -> Iterator[CatalogRecord]:
        def to_record(row: tuple) -> CatalogRecord:
            return self._record(RecordCategory.AUTH, row[0], row[1], row[2], row[3])

        return self._stream(authority_query(self.dialect, cutoff), to_record)
