"""Cutoff date resolution for incremental exports."""

from __future__ import annotations

import logging
from datetime import date

from catalog_export.common.constants import MODE_LAST_FULL, MODE_LAST_INCREMENTAL
from catalog_export.common.errors import DateResolutionError
from catalog_export.common.logging import log_event
from catalog_export.common.models import RunKind
from catalog_export.common.time_utils import parse_strict_date
from catalog_export.pipeline.ledger import RunLedger


def _marker_kind(mode: str) -> RunKind | None:
    value = mode.strip().lower()
    if value in MODE_LAST_FULL:
        return RunKind.FULL
    if value in MODE_LAST_INCREMENTAL:
        return RunKind.INCREMENTAL
    return None


def resolve_cutoff(
    mode: str | None,
    ledger: RunLedger,
    *,
    run_date: date | None,
    logger: logging.Logger | None = None,
) -> date | None:
    """Turn the ``--incr`` selector into a cutoff date.

    An empty selector means a full export and returns None without reading
    the ledger. A ``by-last-*`` marker takes the newest ledger entry of that
    kind. Anything else must be an explicit ``YYYY-MM-DD`` no later than the
    run date.
    """
    if not mode:
        return None

    kind = _marker_kind(mode)
    if kind is not None:
        entry = ledger.latest(kind)
        if entry is None:
            raise DateResolutionError(f"Can't determine last {kind.value} extract date: no ledger entry")
        cutoff = parse_strict_date(entry.run_date)
        if cutoff is None:
            raise DateResolutionError(
                f"Can't determine last {kind.value} extract date: bad ledger date {entry.run_date!r}"
            )
        if logger is not None:
            log_event(
                logger,
                f"previous {kind.value} extract run on {cutoff.isoformat()}",
                event="CUTOFF_RESOLVED",
                status="ok",
            )
        return cutoff

    cutoff = parse_strict_date(mode)
    if cutoff is None:
        raise DateResolutionError(f"Bad --incr option value: {mode}")
    if run_date is None:
        raise DateResolutionError(f"Run date unknown, cannot validate --incr date {mode}")
    if cutoff > run_date:
        raise DateResolutionError(f"--incr date {mode} is later than the run date {run_date.isoformat()}")
    if logger is not None:
        log_event(
            logger,
            f"incremental record extract using date {cutoff.isoformat()}",
            event="CUTOFF_RESOLVED",
            status="ok",
        )
    return cutoff
