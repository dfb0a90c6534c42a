from fastapi import APIRouter

from fintrack.api.fixed_transactions import handlers
from fintrack.schemas import (
    FixedTransactionCreated,
    FixedTransactionOut,
    RenewResult,
    TransactionDeleteResult,
    TransactionOut,
)

router = APIRouter(prefix="/fixed-transactions", tags=["fixed-transactions"])

router.add_api_route(
    "",
    handlers.create_fixed_transaction,
    methods=["POST"],
    response_model=FixedTransactionCreated,
    status_code=201,
)

router.add_api_route(
    "",
    handlers.list_fixed_transactions,
    methods=["GET"],
    response_model=list[FixedTransactionOut],
)

router.add_api_route(
    "/renew",
    handlers.renew_fixed_transactions,
    methods=["POST"],
    response_model=RenewResult,
)

router.add_api_route(
    "/{principal_id}",
    handlers.get_fixed_transaction,
    methods=["GET"],
    response_model=FixedTransactionOut,
)

router.add_api_route(
    "/{principal_id}",
    handlers.update_fixed_transaction,
    methods=["PATCH"],
    response_model=list[TransactionOut],
)

router.add_api_route(
    "/{principal_id}",
    handlers.delete_fixed_transaction,
    methods=["DELETE"],
    response_model=TransactionDeleteResult,
)

router.add_api_route(
    "/{principal_id}/generate",
    handlers.generate_occurrences,
    methods=["POST"],
    response_model=list[TransactionOut],
    status_code=201,
)
