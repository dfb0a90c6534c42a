"""Accounts router, credit card cycle endpoints included."""

from fastapi import APIRouter

from fintrack.api.accounts import handlers
from fintrack.schemas import (
    AccountOut,
    BillPaymentReversal,
    CreditCycleOut,
    TransferOut,
)

router = APIRouter(prefix="/accounts", tags=["accounts"])

router.add_api_route(
    "",
    handlers.create_account,
    methods=["POST"],
    response_model=AccountOut,
    status_code=201,
)

router.add_api_route(
    "",
    handlers.list_accounts,
    methods=["GET"],
    response_model=list[AccountOut],
)

router.add_api_route(
    "/{account_id}",
    handlers.get_account,
    methods=["GET"],
    response_model=AccountOut,
)

router.add_api_route(
    "/{account_id}",
    handlers.update_account,
    methods=["PATCH"],
    response_model=AccountOut,
)

router.add_api_route(
    "/{account_id}",
    handlers.delete_account,
    methods=["DELETE"],
    status_code=204,
)

router.add_api_route(
    "/{account_id}/recalculate",
    handlers.recalculate_balance,
    methods=["POST"],
    response_model=AccountOut,
)

router.add_api_route(
    "/{account_id}/credit-cycle",
    handlers.get_credit_cycle,
    methods=["GET"],
    response_model=CreditCycleOut,
)

router.add_api_route(
    "/{account_id}/bill-payments",
    handlers.pay_bill,
    methods=["POST"],
    response_model=TransferOut,
    status_code=201,
)

router.add_api_route(
    "/{account_id}/bill-payments",
    handlers.reverse_bill_payments,
    methods=["DELETE"],
    response_model=BillPaymentReversal,
)
