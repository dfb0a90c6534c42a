"""Router aggregation: each feature module owns one ``APIRouter``."""

from fastapi import FastAPI

from . import accounts, categories, fixed_transactions, period_closures, transactions


def register_routers(app: FastAPI) -> None:
    """Attach all API routes to the FastAPI application."""

    app.include_router(accounts.router, prefix="/api")
    app.include_router(categories.router, prefix="/api")
    app.include_router(transactions.router, prefix="/api")
    app.include_router(transactions.transfers_router, prefix="/api")
    app.include_router(fixed_transactions.router, prefix="/api")
    app.include_router(period_closures.router, prefix="/api")
