#!/usr/bin/env python3
"""
Generate invoices for a billing period and refresh overdue statuses.
Meant for a monthly cron job; safe to re-run for the same period.

Usage:
  python scripts/run_billing.py                 # current month
  python scripts/run_billing.py --period 2024-03
  python scripts/run_billing.py --sweep-only
  # Requires DATABASE_URL and SECRET_KEY in .env (or export)
"""
import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(_root, ".env"))

# Add project root to path
sys.path.insert(0, _root)

from schoolfees.core.exceptions import FeeError
from schoolfees.core.logging import setup_logging
from schoolfees.database import close_db, session_scope
from schoolfees.services.invoice_service import InvoiceService
from schoolfees.services.payment_service import PaymentService
from schoolfees.utils.periods import period_of
from schoolfees.utils.time import get_utc_today


async def run(period: str, sweep_only: bool) -> int:
    async with session_scope() as db:
        if not sweep_only:
            result = await InvoiceService.generate(db, period)
            print(f"{period}: created {len(result.created)}, skipped {len(result.skipped)}")
        checked, updated = await PaymentService.refresh_overdue(db)
        print(f"Overdue sweep: checked {checked}, updated {updated}")
    await close_db()
    return 0


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--period", default=period_of(get_utc_today()), help="YYYY-MM")
    parser.add_argument("--sweep-only", action="store_true", help="only refresh overdue statuses")
    args = parser.parse_args()

    setup_logging()
    try:
        sys.exit(asyncio.run(run(args.period, args.sweep_only)))
    except FeeError as exc:
        print(f"ERROR: {exc.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
