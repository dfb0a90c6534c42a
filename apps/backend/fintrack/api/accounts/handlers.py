"""Account handlers: plain CRUD plus the credit card cycle endpoints."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fintrack import models
from fintrack.api.errors import http_errors
from fintrack.core.clock import Clock
from fintrack.core.database import get_db
from fintrack.core.deps import get_clock, get_current_user
from fintrack.schemas import (
    MONTH_PATTERN,
    AccountCreate,
    AccountUpdate,
    BillPaymentCreate,
    BillPaymentReversal,
    CreditCycleOut,
    TransactionOut,
    TransferOut,
)
from fintrack.services import AccountBalanceService, CreditCardService
from fintrack.services.transaction_service import load_account


def _get_account(db: Session, user: models.User, account_id: str) -> models.Account:
    with http_errors():
        return load_account(db, user.id, account_id)


def _ensure_unique_name(db: Session, user: models.User, name: str, exclude_id: str | None = None) -> None:
    q = db.query(models.Account).filter(models.Account.user_id == user.id, models.Account.name == name)
    if exclude_id is not None:
        q = q.filter(models.Account.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=409, detail="Account with same name already exists for user")


def create_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Account:
    _ensure_unique_name(db, user, payload.name)
    account = models.Account(
        user_id=user.id,
        name=payload.name,
        type=payload.type,
        initial_balance=payload.initial_balance,
        balance=payload.initial_balance,
        limit_amount=payload.limit_amount,
        closing_date=payload.closing_date,
        due_date=payload.due_date,
        color=payload.color,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Account with same name already exists for user")
    db.refresh(account)
    return account


def list_accounts(
    account_type: models.AccountType | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[models.Account]:
    q = db.query(models.Account).filter(models.Account.user_id == user.id)
    if account_type is not None:
        q = q.filter(models.Account.type == account_type)
    return q.order_by(models.Account.name, models.Account.id).all()


def get_account(
    account_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Account:
    return _get_account(db, user, account_id)


def update_account(
    account_id: str,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Account:
    acc = _get_account(db, user, account_id)
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        return acc
    if updates.get("name") and updates["name"] != acc.name:
        _ensure_unique_name(db, user, updates["name"], exclude_id=acc.id)
    if acc.type != models.AccountType.CREDIT:
        for key in ("limit_amount", "closing_date", "due_date"):
            if updates.get(key) is not None:
                raise HTTPException(status_code=400, detail=f"{key} is only allowed for credit accounts")

    for key, value in updates.items():
        setattr(acc, key, value)
    if "initial_balance" in updates:
        AccountBalanceService(db).recalculate(acc.id)
    db.commit()
    db.refresh(acc)
    return acc


def delete_account(
    account_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    acc = _get_account(db, user, account_id)
    in_use = (
        db.query(models.Transaction.id)
        .filter(
            (models.Transaction.account_id == acc.id) | (models.Transaction.to_account_id == acc.id)
        )
        .first()
    )
    if in_use:
        raise HTTPException(status_code=400, detail="Account has transactions; delete them first")
    db.delete(acc)
    db.commit()
    return Response(status_code=204)


def recalculate_balance(
    account_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Account:
    acc = _get_account(db, user, account_id)
    AccountBalanceService(db).recalculate(acc.id)
    db.commit()
    db.refresh(acc)
    return acc


def get_credit_cycle(
    account_id: str,
    month: str = Query(..., pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> CreditCycleOut:
    with http_errors():
        summary = CreditCardService(db, user.id, clock).cycle_summary(account_id, month)
    cycle, bill = summary.cycle, summary.bill
    return CreditCycleOut(
        account_id=summary.account.id,
        reference_month=cycle.reference_month,
        closing_date=cycle.closing_date,
        due_date=cycle.due_date,
        is_closed=cycle.is_closed,
        is_paid=cycle.is_paid,
        amount_due=cycle.amount_due,
        paid_amount=cycle.paid_amount,
        current_bill_amount=bill.current_bill_amount,
        next_bill_amount=bill.next_bill_amount,
        total_balance=bill.total_balance,
        available_limit=bill.available_limit,
        payments=[TransactionOut.model_validate(p) for p in bill.payments],
    )


def pay_bill(
    account_id: str,
    payload: BillPaymentCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> TransferOut:
    with http_errors():
        outgoing, incoming = CreditCardService(db, user.id, clock).pay_bill(account_id, payload)
    return TransferOut(
        outgoing=TransactionOut.model_validate(outgoing),
        incoming=TransactionOut.model_validate(incoming),
    )


def reverse_bill_payments(
    account_id: str,
    month: str = Query(..., pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
) -> BillPaymentReversal:
    with http_errors():
        removed = CreditCardService(db, user.id, clock).reverse_payments(account_id, month)
    return BillPaymentReversal(removed_ids=removed)
