"""
coinvault.__main__ — Operator CLI for ``python -m coinvault``
=============================================================

Commands::

    python -m coinvault init-db     # create all tables (dev / tests)
    python -m coinvault reconcile   # report balance vs. ledger drift

Production schemas are managed by Alembic (``alembic upgrade head``).
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from coinvault.database.engine import create_db_engine, init_db
from coinvault.services.reconciliation_service import reconcile_balances

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("coinvault")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="coinvault")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create all tables if they don't exist")
    sub.add_parser("reconcile", help="Compare balances with the coin ledger")
    args = parser.parse_args(argv)

    load_dotenv()
    try:
        engine = create_db_engine()
    except RuntimeError as exc:
        logger.critical("%s", exc)
        return 1

    if args.command == "init-db":
        init_db(engine)
        logger.info("Database tables ready")
        return 0

    report = reconcile_balances(engine)
    return 0 if report["drifted"] == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
