"""Transactions router (scoped edit/delete) and the transfers router."""

from fastapi import APIRouter

from fintrack.api.transactions import handlers
from fintrack.schemas import (
    ScopeDecisionOut,
    TransactionDeleteResult,
    TransactionOut,
    TransferOut,
)

router = APIRouter(prefix="/transactions", tags=["transactions"])
transfers_router = APIRouter(prefix="/transfers", tags=["transactions"])

router.add_api_route(
    "",
    handlers.create_transaction,
    methods=["POST"],
    response_model=list[TransactionOut],
    status_code=201,
)

router.add_api_route(
    "",
    handlers.list_transactions,
    methods=["GET"],
    response_model=list[TransactionOut],
)

router.add_api_route(
    "/{txn_id}",
    handlers.get_transaction,
    methods=["GET"],
    response_model=TransactionOut,
)

router.add_api_route(
    "/{txn_id}/scope-preview",
    handlers.preview_scope,
    methods=["GET"],
    response_model=ScopeDecisionOut,
)

router.add_api_route(
    "/{txn_id}",
    handlers.update_transaction,
    methods=["PATCH"],
    response_model=list[TransactionOut],
)

router.add_api_route(
    "/{txn_id}",
    handlers.delete_transaction,
    methods=["DELETE"],
    response_model=TransactionDeleteResult,
)

transfers_router.add_api_route(
    "",
    handlers.create_transfer,
    methods=["POST"],
    response_model=TransferOut,
    status_code=201,
)
