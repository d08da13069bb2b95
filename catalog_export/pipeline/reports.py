"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from catalog_export.common.fs import write_json
from catalog_export.common.models import RecordCategory
from catalog_export.pipeline.session import ExportSession


def exported_categories(session: ExportSession) -> list[RecordCategory]:
    categories = [RecordCategory.BIB, RecordCategory.MFHD]
    if session.options.export_items:
        categories.append(RecordCategory.ITEM)
    if session.options.export_authorities:
        categories.append(RecordCategory.AUTH)
    return categories


def count_summary(session: ExportSession) -> str:
    parts = [f"{category.value}s={session.counts.good[category]}" for category in exported_categories(session)]
    parts.append(f"bad={session.counts.total_bad}")
    return " ".join(parts)


def write_run_summary(session: ExportSession, *, status: str, error_code: str | None) -> Path:
    counts = session.counts
    payload = {
        "run_id": session.run_id,
        "run_date": session.run_date.isoformat() if session.run_date else None,
        "org_id": session.org_id,
        "export_type": session.export_type.value,
        "cutoff": session.cutoff.isoformat() if session.cutoff else None,
        "library_id": session.options.library_id,
        "status": status,
        "error_code": error_code,
        "counts": {category.value: counts.good[category] for category in exported_categories(session)},
        "bad_counts": {category.value: counts.bad[category] for category in RecordCategory if counts.bad[category]},
        "bad_total": counts.total_bad,
        "transfer_failures": list(session.transfer_failures),
        "files": {category.value: session.paths.for_category(category).name for category in exported_categories(session)},
    }
    write_json(session.paths.summary, payload)
    return session.paths.summary
