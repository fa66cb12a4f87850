"""CSV export of a user's most recent ledger transactions."""

import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from casinoapi.config import Settings
from casinoapi.config import settings as default_settings
from casinoapi.services.ledger_service import LedgerService
from casinoapi.utils.timezone_utils import compact_date, isoformat_utc, utc_now

logger = logging.getLogger(__name__)

HEADERS = [
    "Timestamp",
    "Transaction ID",
    "Type",
    "Amount",
    "Running Balance",
    "Description",
    "Game ID",
]


@dataclass
class TransactionExport:
    filename: str
    content: str
    row_count: int


_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def export_filename(user_identifier: str, on: Optional[datetime] = None) -> str:
    # Content-Disposition is latin-1 and quoted; keep the name to plain ASCII.
    safe = _UNSAFE_FILENAME_CHARS.sub("", user_identifier).strip(".") or "user"
    return f"transactions-{safe}-{compact_date(on or utc_now())}.csv"


class ExportService:
    def __init__(self, db: Session, settings: Settings = default_settings):
        self.settings = settings
        self.ledger = LedgerService(db, settings)

    def export_transactions(
        self, user_id: str, user_identifier: Optional[str] = None
    ) -> TransactionExport:
        """Newest first, capped at EXPORT_TRANSACTION_LIMIT rows."""
        transactions = self.ledger.history(user_id, self.settings.EXPORT_TRANSACTION_LIMIT)

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(HEADERS)
        for t in transactions:
            writer.writerow(
                [
                    isoformat_utc(t.created_at),
                    t.id,
                    t.type.value,
                    t.amount,
                    t.balance_after,
                    t.description,
                    t.game_id or "",
                ]
            )

        filename = export_filename(user_identifier or user_id)
        logger.info(f"Exported {len(transactions)} transactions for user {user_id}")
        return TransactionExport(
            filename=filename, content=buffer.getvalue(), row_count=len(transactions)
        )
