"""Period closures router."""

from fastapi import APIRouter

from fintrack.api.period_closures import handlers
from fintrack.schemas import PeriodClosureOut

router = APIRouter(prefix="/period-closures", tags=["period-closures"])

router.add_api_route(
    "",
    handlers.close_period,
    methods=["POST"],
    response_model=PeriodClosureOut,
    status_code=201,
)

router.add_api_route(
    "",
    handlers.list_period_closures,
    methods=["GET"],
    response_model=list[PeriodClosureOut],
)

router.add_api_route(
    "/{closure_id}/unlock",
    handlers.unlock_period,
    methods=["POST"],
    response_model=PeriodClosureOut,
)

router.add_api_route(
    "/{closure_id}/lock",
    handlers.lock_period,
    methods=["POST"],
    response_model=PeriodClosureOut,
)

router.add_api_route(
    "/{closure_id}",
    handlers.delete_period_closure,
    methods=["DELETE"],
    status_code=204,
)
