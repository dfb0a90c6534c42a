"""
Amount sign normalization

Amounts are stored as signed integer cents: expenses negative, incomes
positive. Transfer legs carry whatever sign their leg direction implies.
"""

from __future__ import annotations

from fintrack.models import TransactionType


def signed_amount(txn_type: TransactionType | str, amount: int) -> int:
    """
    Return ``amount`` with the sign implied by ``txn_type``

    Example:
        >>> signed_amount(TransactionType.EXPENSE, 5000)
        -5000
        >>> signed_amount(TransactionType.INCOME, -5000)
        5000
    """
    if not isinstance(txn_type, TransactionType):
        txn_type = TransactionType(txn_type)
    magnitude = abs(int(amount))
    if txn_type == TransactionType.EXPENSE:
        return -magnitude
    if txn_type == TransactionType.INCOME:
        return magnitude
    return int(amount)
