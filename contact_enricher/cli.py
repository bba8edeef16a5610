"""Command line entry points for the scan and reconciliation jobs."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from .config import ConfigurationError, EnricherSettings, build_settings, load_configuration
from .crm import AuthError, CRMAuthSession, CRMDirectory, CRMUpdater
from .inbox import MaildirMailbox, parse_checkpoint_date
from .orchestrator import ReconciliationWorkflow, ScanJob, reconcile_pending
from .report import export_outcomes, summarise_outcomes
from .storage import StoreError, WorkbookContactStore


def _checkpoint(value: str) -> date:
    try:
        parsed = parse_checkpoint_date(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    if parsed is None:
        raise argparse.ArgumentTypeError("a date in yyyy/m/d form is required")
    return parsed


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Mine phone numbers from correspondence and write them to Bullhorn contacts",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    def add_config(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--config",
            required=True,
            help="Path to the configuration file (YAML or JSON)",
        )

    init = subcommands.add_parser("init-store", help="Create an empty staging workbook")
    add_config(init)
    init.add_argument("--since", type=_checkpoint, required=True, help="First day to scan (yyyy/m/d)")

    scan = subcommands.add_parser("scan", help="Scan mail since the last check and stage new contacts")
    add_config(scan)
    scan.add_argument("--maildir", type=Path, help="Maildir to scan (overrides the configuration)")
    scan.add_argument("--since", type=_checkpoint, help="Scan from this day instead of the stored checkpoint")

    reconcile = subcommands.add_parser("reconcile", help="Write staged phone numbers to CRM records")
    add_config(reconcile)
    reconcile.add_argument("--report", type=Path, help="Optional CSV/XLSX report of the outcomes")
    reconcile.add_argument(
        "--mode",
        choices=["sequential", "concurrent"],
        default="sequential",
        help="Whether to reconcile contacts sequentially or concurrently",
    )
    reconcile.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Maximum number of workers to use in concurrent mode",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _load_settings(config_path: str) -> EnricherSettings:
    path = Path(config_path)
    return build_settings(load_configuration(path), base_dir=path.resolve().parent)


def run_init(args: argparse.Namespace, settings: EnricherSettings) -> int:
    store = WorkbookContactStore(settings.store)
    if store.path.exists():
        logging.warning("Staging workbook %s already exists - leaving it untouched", store.path)
        return 0
    store.initialise(last_checked=args.since, stop_lists=settings.stop_lists)
    return 0


def run_scan(args: argparse.Namespace, settings: EnricherSettings) -> int:
    maildir = args.maildir or settings.maildir
    if maildir is None:
        raise ConfigurationError("No maildir configured; pass --maildir or set 'maildir' in the configuration")
    if not Path(maildir).is_dir():
        raise ConfigurationError(f"Maildir '{maildir}' does not exist")

    job = ScanJob(MaildirMailbox(maildir), WorkbookContactStore(settings.store), stop_lists=settings.stop_lists)
    summary = job.run(since=args.since)
    logging.info("Staged %s new contacts from %s messages", summary.staged_count, summary.messages_seen)
    return 0


def run_reconcile(args: argparse.Namespace, settings: EnricherSettings) -> int:
    if settings.crm is None:
        raise ConfigurationError("Reconciliation requires a 'crm' section in the configuration")

    auth = CRMAuthSession(settings.crm)
    workflow = ReconciliationWorkflow(
        CRMDirectory(settings.crm),
        CRMUpdater(settings.crm),
        concurrent=args.mode == "concurrent",
        max_workers=args.max_workers,
    )
    outcomes = reconcile_pending(WorkbookContactStore(settings.store), auth, workflow)
    logging.info("Reconciliation summary: %s", summarise_outcomes(outcomes))
    if args.report:
        export_outcomes(outcomes, args.report)
        logging.info("Report written to %s", args.report.resolve())
    return 0


_COMMANDS = {
    "init-store": run_init,
    "scan": run_scan,
    "reconcile": run_reconcile,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        settings = _load_settings(args.config)
        return _COMMANDS[args.command](args, settings)
    except (ConfigurationError, StoreError) as exc:
        logging.error("%s", exc)
        return 1
    except AuthError as exc:
        logging.error("Could not authenticate against the CRM: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
