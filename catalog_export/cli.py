"""CLI entrypoint for the catalog record export.

Default is a full export of bibliographic, holdings, authority and item data
with no transfer. ``--incr`` switches to an incremental export of records
created or updated after a cutoff date.
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

from catalog_export.common.config_loader import load_export_config
from catalog_export.common.constants import EXIT_HARD_FAIL
from catalog_export.common.errors import ConfigError
from catalog_export.common.fs import require_writable_dir
from catalog_export.common.logging import build_logger
from catalog_export.common.time_utils import generate_run_id, parse_run_date
from catalog_export.delivery.notify import Notifier, build_notifier
from catalog_export.delivery.transfer import FtpSettings, FtpTransfer, Transfer
from catalog_export.pipeline.dispatch import Dispatcher, StoreFactory
from catalog_export.pipeline.ledger import RunLedger
from catalog_export.pipeline.session import ExportSession, OutputPaths, RunOptions
from catalog_export.store.catalog_store import CatalogStore
from catalog_export.store.connection import StoreConfig

INCR_HELP = "incremental export since: by-last-full (lastfull), by-last-incremental (lastincr) or YYYY-MM-DD"


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--incr", default="", metavar="MODE", help=INCR_HELP)
    parser.add_argument("--library", type=int, default=None, help="export records for this library id only")
    parser.add_argument("--noauth", action="store_true", help="do not export authority records")
    parser.add_argument("--noitem", "--noitems", dest="noitem", action="store_true", help="do not export item data")
    parser.add_argument("--ftp", action="store_true", help="transfer the files after they are generated")
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--out-dir", default=None, help="overrides output.directory from the config")
    parser.add_argument("--run-date", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> RunOptions:
    return RunOptions(
        mode=(args.incr or "").strip(),
        library_id=args.library,
        export_items=not args.noitem,
        export_authorities=not args.noauth,
        transfer=args.ftp,
    )


def _resolve_run_date(value: str | None) -> date:
    try:
        return date.fromisoformat(parse_run_date(value))
    except ValueError as exc:
        raise ConfigError(f"Bad --run-date value: {value}") from exc


def run_command(
    args: argparse.Namespace,
    *,
    store_factory: StoreFactory | None = None,
    transfer: Transfer | None = None,
    notifier: Notifier | None = None,
) -> int:
    run_id = args.run_id or generate_run_id()
    run_date = _resolve_run_date(args.run_date)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    cfg = load_export_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)

    out_dir = require_writable_dir(Path(args.out_dir or cfg["output"]["directory"]))
    options = build_options(args)
    org_id = str(cfg["org_id"])
    paths = OutputPaths.build(out_dir, org_id, options.export_type)

    if store_factory is None:
        store_config = StoreConfig.from_config(cfg["database"])

        def store_factory() -> CatalogStore:
            return CatalogStore.connect(store_config)

    ftp_settings = FtpSettings.from_config(cfg["transfer"])
    logger = build_logger(run_id, paths.log, level=args.log_level)
    session = ExportSession(
        run_id=run_id,
        run_date=run_date,
        org_id=org_id,
        options=options,
        paths=paths,
        logger=logger,
    )
    dispatcher = Dispatcher(
        session,
        ledger=RunLedger(paths.ledger),
        store_factory=store_factory,
        transfer=transfer or FtpTransfer(ftp_settings),
        notifier=notifier or build_notifier(cfg["notification"]),
        destinations=ftp_settings.directories,
    )
    return dispatcher.run().exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except ConfigError as exc:
        print(f"ABORT: {exc}", file=sys.stderr)
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
