#!/usr/bin/env python3
"""
Check commission balances and ledger rows against each other.

Exits with status 1 when a mismatch is found.
"""

import asyncio
import sys

from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from trustledger.config.database import build_session_maker
from trustledger.config.logging import setup_logging
from trustledger.config.settings import settings
from trustledger.services.reconciliation_service import ReconciliationService


async def reconcile() -> bool:
    """Run the invariant checks once."""
    engine = create_async_engine(
        settings.database_url,
        echo=False,
        poolclass=NullPool,
    )
    session_maker = build_session_maker(engine)

    try:
        async with session_maker() as session:
            report = await ReconciliationService(session).check_invariants()
    finally:
        await engine.dispose()

    logger.info(
        f"Pending: balances={report['pending_balance_total']} "
        f"rows={report['pending_rows_total']}; "
        f"paid: balances={report['paid_balance_total']} "
        f"rows={report['paid_rows_total']} "
        f"payouts={report['payouts_total']}"
    )
    return report["ok"]


if __name__ == "__main__":
    setup_logging()
    sys.exit(0 if asyncio.run(reconcile()) else 1)
