"""SQL for the three export queries and the reference-table scans.

Joins are written in ANSI form so the same text runs on Oracle and SQLite;
only record blob retrieval, the latest item status and date binds differ
between dialects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

_ORACLE_BLOB_FUNCTIONS = {
    "bib": "getBibBlob",
    "mfhd": "getMFHDBlob",
    "auth": "getAuthBlob",
}


@dataclass(frozen=True)
class Dialect:
    name: str
    schema: str | None = None

    def table(self, name: str) -> str:
        if self.schema:
            return f"{self.schema}.{name}"
        return name

    def record_blob(self, kind: str, id_expr: str) -> str:
        if self.name == "oracle":
            return f"RTRIM({self.table(_ORACLE_BLOB_FUNCTIONS[kind])}({id_expr}))"
        return f"(SELECT r.record FROM {kind}_record r WHERE r.{kind}_id = {id_expr})"

    def latest_item_status(self, item_expr: str) -> str:
        if self.name == "oracle":
            return f"{self.table('getLatestItemStatus')}({item_expr})"
        return (
            "(SELECT s.item_status FROM item_status s "
            f"WHERE s.item_id = {item_expr} "
            "ORDER BY s.item_status_date DESC LIMIT 1)"
        )

    def bind_date(self, value: date) -> Any:
        if self.name == "oracle":
            return datetime.combine(value, time.min)
        # SQLite stores timestamps as ISO text, which sorts chronologically.
        return value.isoformat()


@dataclass(frozen=True)
class Query:
    sql: str
    params: dict[str, Any]


def _since(dialect: Dialect, cutoff: date) -> Any:
    # "Later than the cutoff" is day-granular: anything from the next day on.
    return dialect.bind_date(cutoff + timedelta(days=1))


def bib_holdings_query(dialect: Dialect, cutoff: date | None, library_id: int | None) -> Query:
    params: dict[str, Any] = {}
    conditions = [
        "bib_master.suppress_in_opac <> 'Y'",
        "mfhd_master.suppress_in_opac <> 'Y'",
        "location.suppress_in_opac <> 'Y'",
    ]
    if cutoff is not None:
        conditions.append(
            "(bib_master.create_date >= :since OR bib_master.update_date >= :since"
            " OR mfhd_master.create_date >= :since OR mfhd_master.update_date >= :since)"
        )
        params["since"] = _since(dialect, cutoff)
    if library_id is not None:
        conditions.append("bib_master.library_id = :library_id")
        params["library_id"] = library_id

    sql = f"""
    SELECT
        bib_master.bib_id,
        bib_master.create_date,
        bib_master.update_date,
        mfhd_master.mfhd_id,
        mfhd_master.create_date,
        mfhd_master.update_date,
        location.location_id,
        {dialect.record_blob("bib", "bib_master.bib_id")},
        {dialect.record_blob("mfhd", "mfhd_master.mfhd_id")}
    FROM {dialect.table("bib_master")} bib_master
        JOIN {dialect.table("bib_mfhd")} bib_mfhd ON bib_mfhd.bib_id = bib_master.bib_id
        JOIN {dialect.table("mfhd_master")} mfhd_master ON mfhd_master.mfhd_id = bib_mfhd.mfhd_id
        JOIN {dialect.table("location")} location ON location.location_id = mfhd_master.location_id
    WHERE {" AND ".join(conditions)}
    ORDER BY bib_master.bib_id, mfhd_master.mfhd_id
    """
    return Query(sql=sql, params=params)


def item_query(dialect: Dialect, cutoff: date | None, library_id: int | None) -> Query:
    params: dict[str, Any] = {}
    conditions = [
        "mfhd_master.suppress_in_opac <> 'Y'",
        "bib_master.suppress_in_opac <> 'Y'",
        "(perm_loc.suppress_in_opac <> 'Y' OR temp_loc.suppress_in_opac <> 'Y'"
        " OR mfhd_loc.suppress_in_opac <> 'Y')",
    ]
    if cutoff is not None:
        conditions.append(
            "(item.create_date >= :since OR item.modify_date >= :since"
            " OR item_status.item_status_date >= :since)"
        )
        params["since"] = _since(dialect, cutoff)
    if library_id is not None:
        conditions.append("bib_master.library_id = :library_id")
        params["library_id"] = library_id

    sql = f"""
    SELECT DISTINCT
        bib_master.bib_id,
        mfhd_master.mfhd_id,
        item.item_id,
        mfhd_master.location_id,
        item.perm_location,
        item.temp_location,
        {dialect.latest_item_status("item.item_id")},
        mfhd_item.item_enum,
        mfhd_item.chron,
        mfhd_item.year,
        item.copy_number,
        item_type.item_type_display,
        item_barcode.item_barcode,
        item_barcode.barcode_status
    FROM {dialect.table("bib_master")} bib_master
        JOIN {dialect.table("bib_mfhd")} bib_mfhd ON bib_mfhd.bib_id = bib_master.bib_id
        JOIN {dialect.table("mfhd_master")} mfhd_master ON mfhd_master.mfhd_id = bib_mfhd.mfhd_id
        LEFT JOIN {dialect.table("mfhd_item")} mfhd_item ON mfhd_item.mfhd_id = mfhd_master.mfhd_id
        LEFT JOIN {dialect.table("item")} item ON item.item_id = mfhd_item.item_id
        LEFT JOIN {dialect.table("item_status")} item_status ON item_status.item_id = mfhd_item.item_id
        LEFT JOIN {dialect.table("item_type")} item_type ON item_type.item_type_id = item.item_type_id
        LEFT JOIN {dialect.table("item_barcode")} item_barcode ON item_barcode.item_id = mfhd_item.item_id
        LEFT JOIN {dialect.table("location")} perm_loc ON perm_loc.location_id = item.perm_location
        LEFT JOIN {dialect.table("location")} temp_loc ON temp_loc.location_id = item.temp_location
        LEFT JOIN {dialect.table("location")} mfhd_loc ON mfhd_loc.location_id = mfhd_master.location_id
    WHERE {" AND ".join(conditions)}
    ORDER BY bib_master.bib_id, mfhd_master.mfhd_id, item.item_id
    """
    return Query(sql=sql, params=params)


def authority_query(dialect: Dialect, cutoff: date | None) -> Query:
    params: dict[str, Any] = {}
    where = ""
    if cutoff is not None:
        where = "WHERE auth_master.create_date >= :since OR auth_master.update_date >= :since"
        params["since"] = _since(dialect, cutoff)

    sql = f"""
    SELECT
        auth_master.auth_id,
        auth_master.create_date,
        auth_master.update_date,
        {dialect.record_blob("auth", "auth_master.auth_id")}
    FROM {dialect.table("auth_master")} auth_master
    {where}
    ORDER BY auth_master.auth_id
    """
    return Query(sql=sql, params=params)


def location_query(dialect: Dialect) -> Query:
    return Query(sql=f"SELECT location_id, location_code FROM {dialect.table('location')}", params={})


def item_status_query(dialect: Dialect) -> Query:
    return Query(
        sql=f"SELECT item_status_type, item_status_desc FROM {dialect.table('item_status_type')}",
        params={},
    )


def library_query(dialect: Dialect) -> Query:
    return Query(sql=f"SELECT library_id, library_name FROM {dialect.table('library')}", params={})
