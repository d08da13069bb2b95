"""Phase sequencing, per-phase delivery and the single finalize path."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from catalog_export.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from catalog_export.common.errors import ExportError, LedgerWriteError, ScopeError, TransferError
from catalog_export.common.fs import file_size
from catalog_export.common.logging import close_log_files, flush_logger, log_event
from catalog_export.common.models import RecordCategory, RunEntry
from catalog_export.delivery.notify import Notifier
from catalog_export.delivery.transfer import Transfer, TransferMode
from catalog_export.pipeline.classify import RecordClassifier
from catalog_export.pipeline.dates import resolve_cutoff
from catalog_export.pipeline.items import ItemEnricher
from catalog_export.pipeline.ledger import RunLedger
from catalog_export.pipeline.reference import ReferenceLookup
from catalog_export.pipeline.reports import count_summary, write_run_summary
from catalog_export.pipeline.session import ExportSession
from catalog_export.store.catalog_store import CatalogStore

StoreFactory = Callable[[], CatalogStore]


@dataclass
class RunOutcome:
    fatal: BaseException | None = None
    transfer_failures: int = 0

    @property
    def error_code(self) -> str | None:
        if self.fatal is None:
            return None
        return getattr(self.fatal, "error_code", "UNEXPECTED_ERROR")

    @property
    def status(self) -> str:
        if self.fatal is not None:
            return "aborted"
        if self.transfer_failures:
            return "partial"
        return "success"

    @property
    def exit_code(self) -> int:
        if self.fatal is not None:
            return EXIT_HARD_FAIL
        if self.transfer_failures:
            return EXIT_PARTIAL
        return EXIT_SUCCESS


class Dispatcher:
    """Runs the export phases for one session and always finalizes.

    Phases run in order: bib/holdings, items, authorities. A fatal error in
    any of them skips the rest, but finalize still closes outputs, appends
    the ledger entry, delivers the log and sends the notification.
    """

    def __init__(
        self,
        session: ExportSession,
        *,
        ledger: RunLedger,
        store_factory: StoreFactory,
        transfer: Transfer,
        notifier: Notifier,
        destinations: dict[str, str] | None = None,
    ) -> None:
        self.session = session
        self.ledger = ledger
        self.store_factory = store_factory
        self.transfer = transfer
        self.notifier = notifier
        self.destinations = destinations or {}
        self.logger = session.logger

    def run(self) -> RunOutcome:
        outcome = RunOutcome()
        try:
            with self.session:
                self._run_phases()
        except ExportError as exc:
            outcome.fatal = exc
            log_event(
                self.logger,
                f"ABORT: {exc}",
                level=logging.ERROR,
                run_id=self.session.run_id,
                event="RUN_ABORT",
                status="error",
                error_code=exc.error_code,
            )
        except Exception as exc:
            outcome.fatal = exc
            log_event(
                self.logger,
                f"ABORT: unexpected failure: {exc!r}",
                level=logging.ERROR,
                run_id=self.session.run_id,
                event="RUN_ABORT",
                status="error",
                error_code="UNEXPECTED_ERROR",
            )
        finally:
            self.finalize(outcome)
        return outcome

    def _run_phases(self) -> None:
        session = self.session
        options = session.options
        log_event(
            self.logger,
            f"{session.export_type.value} export started for {session.org_id}",
            run_id=session.run_id,
            event="RUN_START",
            status="ok",
        )
        session.cutoff = resolve_cutoff(options.mode, self.ledger, run_date=session.run_date, logger=self.logger)

        with self.store_factory() as store:
            self._check_scope(store)
            self._export_bib_holdings(store)
            if options.export_items:
                self._export_items(store)
            if options.export_authorities:
                self._export_authorities(store)

    def _check_scope(self, store: CatalogStore) -> None:
        library_id = self.session.options.library_id
        if library_id is None:
            return
        libraries = store.libraries()
        if library_id not in libraries:
            valid = ", ".join(f"{key}={libraries[key]}" for key in sorted(libraries))
            log_event(self.logger, f"valid library ids: {valid}", event="SCOPE_INVALID", status="error")
            raise ScopeError(f"{library_id!r} is an invalid library id")
        log_event(
            self.logger,
            f"exporting records for library {library_id} - {libraries[library_id]}",
            event="SCOPE_RESOLVED",
            status="ok",
        )

    def _phase_start(self, phase: str) -> None:
        log_event(self.logger, "phase start", run_id=self.session.run_id, phase=phase, event="PHASE_START", status="ok")

    def _phase_end(self, phase: str, category: RecordCategory) -> None:
        log_event(
            self.logger,
            "phase end",
            run_id=self.session.run_id,
            phase=phase,
            category=category.value,
            event="PHASE_END",
            status="ok",
            rows_out=self.session.counts.good[category],
        )

    def _export_bib_holdings(self, store: CatalogStore) -> None:
        session = self.session
        self._phase_start("bibs-mfhd")
        classifier = RecordClassifier(session, cutoff=session.cutoff, counts=session.counts, logger=self.logger)
        classifier.route_bib_holdings(store.bib_holdings_rows(session.cutoff, session.options.library_id))
        session.close_output(RecordCategory.BIB)
        session.close_output(RecordCategory.MFHD)
        self._phase_end("bibs-mfhd", RecordCategory.BIB)
        self._phase_end("bibs-mfhd", RecordCategory.MFHD)
        self._deliver(session.paths.bibs, TransferMode.BINARY, "bibs")
        self._deliver(session.paths.mfhd, TransferMode.BINARY, "mfhd")

    def _export_items(self, store: CatalogStore) -> None:
        session = self.session
        self._phase_start("items")
        lookup = ReferenceLookup.load(store)
        enricher = ItemEnricher(lookup, session, counts=session.counts)
        enricher.export(store.item_rows(session.cutoff, session.options.library_id))
        session.close_output(RecordCategory.ITEM)
        self._phase_end("items", RecordCategory.ITEM)
        self._deliver(session.paths.item, TransferMode.TEXT, "item")

    def _export_authorities(self, store: CatalogStore) -> None:
        session = self.session
        self._phase_start("authorities")
        classifier = RecordClassifier(session, cutoff=session.cutoff, counts=session.counts, logger=self.logger)
        classifier.route_authorities(store.authority_records(session.cutoff))
        session.close_output(RecordCategory.AUTH)
        self._phase_end("authorities", RecordCategory.AUTH)
        self._deliver(session.paths.auth, TransferMode.BINARY, "auth")

    def _deliver(self, path: Path, mode: TransferMode, destination_key: str) -> bool:
        if not self.session.options.transfer:
            return False
        if file_size(path) == 0:
            log_event(self.logger, f"{path.name} is empty, not transferred", event="TRANSFER_SKIPPED", status="ok", path=str(path))
            return False
        destination = self.destinations.get(destination_key) or None
        try:
            self.transfer.send(path, mode, destination)
        except TransferError as exc:
            self.session.transfer_failures.append(path.name)
            log_event(
                self.logger,
                str(exc),
                level=logging.WARNING,
                event="TRANSFER_FAILED",
                status="error",
                error_code=exc.error_code,
                path=str(path),
            )
            return False
        log_event(
            self.logger,
            f"transferred {path.name} to {destination or '.'}",
            event="TRANSFER_DONE",
            status="ok",
            path=str(path),
        )
        return True

    def _record_run(self) -> None:
        session = self.session
        try:
            if session.run_date is None:
                raise LedgerWriteError(f"Run date unknown, no entry added to {self.ledger.path.name}")
            entry = RunEntry(run_date=session.run_date.isoformat(), kind=session.export_type)
            self.ledger.append(entry)
        except LedgerWriteError as exc:
            log_event(
                self.logger,
                str(exc),
                level=logging.WARNING,
                event="LEDGER_WRITE_FAILED",
                status="error",
                error_code=exc.error_code,
                path=str(self.ledger.path),
            )
            return
        log_event(
            self.logger,
            f"ledger entry {entry.run_date} {entry.kind.value} appended",
            event="LEDGER_APPENDED",
            status="ok",
            path=str(self.ledger.path),
        )

    def finalize(self, outcome: RunOutcome) -> None:
        session = self.session
        session.close_outputs()
        self._record_run()

        outcome.transfer_failures = len(session.transfer_failures)
        log_event(
            self.logger,
            count_summary(session),
            run_id=session.run_id,
            event="RUN_COUNTS",
            status=outcome.status,
        )
        try:
            write_run_summary(session, status=outcome.status, error_code=outcome.error_code)
        except OSError as exc:
            log_event(
                self.logger,
                f"could not write run summary: {exc}",
                level=logging.WARNING,
                event="SUMMARY_WRITE_FAILED",
                status="error",
                path=str(session.paths.summary),
            )
        log_event(
            self.logger,
            f"{session.export_type.value} export finished: {outcome.status}",
            run_id=session.run_id,
            event="RUN_END",
            status=outcome.status,
            error_code=outcome.error_code,
        )

        flush_logger(self.logger)
        self._deliver(session.paths.log, TransferMode.TEXT, "log")
        outcome.transfer_failures = len(session.transfer_failures)
        close_log_files(self.logger)

        body = session.paths.log.read_text(encoding="utf-8") if file_size(session.paths.log) else ""
        if body:
            subject = f"Log: catalog-export {session.org_id} {session.export_type.value} ({outcome.status})"
            self.notifier.notify(subject, body)
