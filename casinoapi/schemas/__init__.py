from .common import BaseResponse, Error, ErrorCode
from .ledger import AccountResponse, BalanceResponse, TransactionEntry
from .games import HistoryEntry, RoundView, RoundVerification

__all__ = [
    "BaseResponse",
    "Error",
    "ErrorCode",
    "AccountResponse",
    "BalanceResponse",
    "TransactionEntry",
    "HistoryEntry",
    "RoundView",
    "RoundVerification",
]
