"""
Wallet API - balance, transaction log and export for the signed-in user.

- GET  /wallet:              account view with the recent transactions
- GET  /wallet/balance:      current balance
- GET  /wallet/transactions: paged transaction log, newest first
- POST /wallet/reset:        back to the initial deposit
- GET  /wallet/export:       CSV of the most recent transactions
- GET  /wallet/integrity:    replay the log and check the balance chain
- POST /wallet/reconcile:    apply any payouts still pending
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from casinoapi.core.auth_middleware import Identity, get_current_identity
from casinoapi.deps import get_export_service, get_ledger_service, get_payout_service
from casinoapi.schemas.ledger import (
    AccountResponse,
    BalanceResponse,
    IntegrityCheckResponse,
    ReconcileResponse,
    TransactionListResponse,
)
from casinoapi.services.export_service import ExportService
from casinoapi.services.ledger_service import LedgerService
from casinoapi.services.payout_service import PayoutService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("", response_model=AccountResponse)
def get_account(
    identity: Identity = Depends(get_current_identity),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    """Account view. The first call for a user opens the account."""
    return ledger_service.get_account(identity.user_id)


@router.get("/balance", response_model=BalanceResponse)
def get_balance(
    identity: Identity = Depends(get_current_identity),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> BalanceResponse:
    return BalanceResponse(balance=ledger_service.get_balance(identity.user_id))


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    limit: int = Query(50, ge=1, le=200, description="Page size"),
    offset: int = Query(0, ge=0, description="Offset"),
    identity: Identity = Depends(get_current_identity),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    return ledger_service.list_transactions(identity.user_id, limit=limit, offset=offset)


@router.post("/reset", response_model=AccountResponse)
def reset_account(
    identity: Identity = Depends(get_current_identity),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    """Restore the initial balance. Open rounds are voided."""
    ledger_service.reset(identity.user_id)
    return ledger_service.get_account(identity.user_id)


@router.get("/export")
def export_transactions(
    identity: Identity = Depends(get_current_identity),
    export_service: ExportService = Depends(get_export_service),
) -> Response:
    export = export_service.export_transactions(identity.user_id, identity.export_name)
    return Response(
        content=export.content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/integrity", response_model=IntegrityCheckResponse)
def verify_integrity(
    identity: Identity = Depends(get_current_identity),
    ledger_service: LedgerService = Depends(get_ledger_service),
) -> IntegrityCheckResponse:
    return ledger_service.verify_integrity(identity.user_id)


@router.post("/reconcile", response_model=ReconcileResponse)
def reconcile_payouts(
    identity: Identity = Depends(get_current_identity),
    payout_service: PayoutService = Depends(get_payout_service),
) -> ReconcileResponse:
    return payout_service.reconcile(identity.user_id)
