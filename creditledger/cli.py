"""
Command line entry points.

Usage:
    python -m creditledger.cli init-db
    python -m creditledger.cli reconcile --repair
    python -m creditledger.cli serve --port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

import uvicorn

from creditledger.core.config import Settings, get_settings
from creditledger.core.container import ApplicationContainer
from creditledger.core.logging import configure_logging
from creditledger.modules.ledger import LedgerError, ReconciliationReport

logger = logging.getLogger(__name__)


def _format_report(report: ReconciliationReport) -> str:
    state = "ok" if report.consistent else f"skew {report.skew:+d}"
    if report.repaired:
        state = f"repaired ({state})"
    return (
        f"{report.account_id}: stored={report.stored_balance} ledger={report.ledger_balance} "
        f"transactions={report.transaction_count} {state}"
    )


async def init_db(settings: Settings) -> None:
    container = ApplicationContainer.from_settings(settings)
    try:
        await container.database.create_all()
    finally:
        await container.shutdown()
    print(f"database ready: {settings.database_url}")


async def reconcile(settings: Settings, account_id: Optional[str] = None, repair: bool = False) -> int:
    """Print one line per account; returns the number of accounts still skewed."""
    container = ApplicationContainer.from_settings(settings)
    try:
        await container.startup()
        service = container.reconciliation_service()
        if account_id is not None:
            reports = [await service.check(account_id)]
        else:
            reports = await service.check_all()

        if repair:
            reports = [
                report if report.consistent else await service.repair(report.account_id)
                for report in reports
            ]
    finally:
        await container.shutdown()

    for report in reports:
        print(_format_report(report))
    return sum(1 for report in reports if not report.consistent and not report.repaired)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="creditledger", description="Credit ledger administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the ledger tables")

    reconcile_parser = subparsers.add_parser("reconcile", help="Compare stored balances with the transaction log")
    reconcile_parser.add_argument("--account", dest="account_id", help="Check a single account")
    reconcile_parser.add_argument("--repair", action="store_true", help="Rewrite skewed balances from the log")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=None, help="Bind address (defaults to settings)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (defaults to settings)")
    return parser


def main(argv: Optional[Sequence[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    configure_logging(settings.logging, debug=settings.debug)

    if args.command == "init-db":
        asyncio.run(init_db(settings))
        return 0

    if args.command == "reconcile":
        try:
            skewed = asyncio.run(reconcile(settings, args.account_id, args.repair))
        except LedgerError as exc:
            logger.error("Reconciliation failed: %s", exc)
            return 2
        return 1 if skewed else 0

    uvicorn.run(
        "creditledger.main:app",
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
        reload=settings.server.reload,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
