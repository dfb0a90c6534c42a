"""
Services package

Business logic: scope resolution, recurrence expansion, credit cycles and the
services that persist their decisions.
"""

from .credit_card_service import CreditCardService
from .fixed_transaction_service import FixedTransactionService
from .period_lock import PeriodLockService
from .series_service import TransactionSeriesService
from .transaction_repository import TransactionRepository
from .transaction_service import AccountBalanceService

__all__ = [
    "AccountBalanceService",
    "CreditCardService",
    "FixedTransactionService",
    "PeriodLockService",
    "TransactionRepository",
    "TransactionSeriesService",
]
