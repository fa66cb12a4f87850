"""
Apply every payout still pending in the database.

This script:
1. Finds users with pending_payouts rows in status "pending"
2. Re-applies each payout through the ledger (idempotent by round)
3. Prints what was applied and what is still stuck
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from casinoapi.config import settings  # noqa: E402
from casinoapi.database.session import get_db_context  # noqa: E402
from casinoapi.logging_config import setup_logging  # noqa: E402
from casinoapi.repositories.pending_payout_repository import PendingPayoutRepository  # noqa: E402
from casinoapi.services.payout_service import PayoutService  # noqa: E402


def reconcile_all() -> int:
    """Returns the number of payouts still pending afterwards."""
    stuck = 0
    with get_db_context() as db:
        user_ids = PendingPayoutRepository(db).users_with_pending()
        print(f"\n📊 Users with pending payouts: {len(user_ids)}")

        service = PayoutService(db, settings)
        for user_id in user_ids:
            result = service.reconcile(user_id)
            stuck += result.still_pending
            print(
                f"  • {user_id}: applied {result.applied}, "
                f"still pending {result.still_pending}, balance {result.balance}"
            )

    if stuck:
        print(f"\n⚠️  {stuck} payouts could not be applied")
    else:
        print("\n✅ No pending payouts left")
    return stuck


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    sys.exit(1 if reconcile_all() else 0)
