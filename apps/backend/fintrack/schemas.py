from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from .core.config import settings
from .models import (
    AccountType,
    CategoryType,
    ClosureType,
    TransactionStatus,
    TransactionType,
)

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
MAX_AMOUNT = settings.MAX_TRANSACTION_AMOUNT


# --- Accounts ----------------------------------------------------------------


class AccountBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    limit_amount: Optional[int] = Field(default=None, ge=0, le=MAX_AMOUNT)
    closing_date: Optional[int] = Field(default=None, ge=1, le=31)
    due_date: Optional[int] = Field(default=None, ge=1, le=31)
    color: str = Field(default="#6B7280", pattern=COLOR_PATTERN)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("color")
    @classmethod
    def _upper_color(cls, v: str) -> str:
        return v.upper()


class AccountCreate(AccountBase):
    initial_balance: int = Field(default=0, ge=-MAX_AMOUNT, le=MAX_AMOUNT)

    @model_validator(mode="after")
    def _credit_only_fields(self):
        if self.type == AccountType.CREDIT:
            if self.closing_date is None:
                self.closing_date = settings.DEFAULT_CLOSING_DAY
            if self.due_date is None:
                self.due_date = settings.DEFAULT_DUE_DAY
        else:
            self.limit_amount = None
            self.closing_date = None
            self.due_date = None
        return self


class AccountUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    initial_balance: Optional[int] = Field(default=None, ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    limit_amount: Optional[int] = Field(default=None, ge=0, le=MAX_AMOUNT)
    closing_date: Optional[int] = Field(default=None, ge=1, le=31)
    due_date: Optional[int] = Field(default=None, ge=1, le=31)
    color: Optional[str] = Field(default=None, pattern=COLOR_PATTERN)

    @field_validator("color")
    @classmethod
    def _upper_color(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: AccountType
    initial_balance: int
    balance: int
    limit_amount: Optional[int] = None
    closing_date: Optional[int] = None
    due_date: Optional[int] = None
    color: str


# --- Categories --------------------------------------------------------------


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType
    color: str = Field(default="#6B7280", pattern=COLOR_PATTERN)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: CategoryType
    color: str


# --- Transactions ------------------------------------------------------------


class TransactionCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    # Cents; the sign is derived from ``type``
    amount: int = Field(..., ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    date: dt.date
    type: TransactionType
    status: TransactionStatus = TransactionStatus.COMPLETED
    account_id: str
    category_id: Optional[str] = None
    invoice_month: Optional[str] = Field(default=None, pattern=MONTH_PATTERN)
    installments: Optional[int] = Field(default=None, ge=1, le=settings.MAX_INSTALLMENTS)

    @field_validator("type")
    @classmethod
    def _no_transfer(cls, v: TransactionType) -> TransactionType:
        if v == TransactionType.TRANSFER:
            raise ValueError("use /transfers to create transfers")
        return v

    @field_validator("amount")
    @classmethod
    def _non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("amount must not be zero")
        return v


class TransactionUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[int] = Field(default=None, ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    date: Optional[dt.date] = None
    type: Optional[TransactionType] = None
    status: Optional[TransactionStatus] = None
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    invoice_month: Optional[str] = Field(default=None, pattern=MONTH_PATTERN)

    @field_validator("amount")
    @classmethod
    def _non_zero(cls, v: Optional[int]) -> Optional[int]:
        if v == 0:
            raise ValueError("amount must not be zero")
        return v

    @model_validator(mode="after")
    def _required_fields_not_null(self):
        # category_id / invoice_month may be cleared explicitly; the rest may not
        for name in ("description", "amount", "date", "type", "status", "account_id"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def to_patch(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str
    amount: int
    date: dt.date
    type: TransactionType
    status: TransactionStatus
    account_id: str
    category_id: Optional[str] = None
    parent_transaction_id: Optional[str] = None
    installments: Optional[int] = None
    current_installment: Optional[int] = None
    is_fixed: bool
    to_account_id: Optional[str] = None
    linked_transaction_id: Optional[str] = None
    invoice_month: Optional[str] = None
    invoice_month_overridden: bool = False


class ScopeDecisionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ids_to_mutate: list[str]
    ids_to_delete_outright: list[str]
    ids_to_detach: list[str]


class TransactionDeleteResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    deleted_ids: list[str]
    detached_ids: list[str]


class TransferCreate(BaseModel):
    from_account_id: str
    to_account_id: str
    amount: int = Field(..., gt=0, le=MAX_AMOUNT)
    date: dt.date
    status: TransactionStatus = TransactionStatus.COMPLETED
    outgoing_description: Optional[str] = Field(default=None, max_length=200)
    incoming_description: Optional[str] = Field(default=None, max_length=200)


class TransferOut(BaseModel):
    outgoing: TransactionOut
    incoming: TransactionOut


# --- Fixed transactions ------------------------------------------------------


class FixedTransactionCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: int = Field(..., ge=-MAX_AMOUNT, le=MAX_AMOUNT)
    # First occurrence; its day-of-month is kept for every later month
    date: dt.date
    type: TransactionType
    account_id: str
    category_id: Optional[str] = None

    @field_validator("type")
    @classmethod
    def _income_or_expense(cls, v: TransactionType) -> TransactionType:
        if v == TransactionType.TRANSFER:
            raise ValueError("fixed transactions must be income or expense")
        return v


class FixedTransactionUpdate(TransactionUpdate):
    @field_validator("type")
    @classmethod
    def _income_or_expense(cls, v: Optional[TransactionType]) -> Optional[TransactionType]:
        if v == TransactionType.TRANSFER:
            raise ValueError("fixed transactions must be income or expense")
        return v


class FixedTransactionOut(BaseModel):
    principal: TransactionOut
    pending_count: int
    completed_count: int
    last_generated_date: Optional[dt.date] = None

    @computed_field  # type: ignore[misc]
    @property
    def day_of_month(self) -> int:
        return self.principal.date.day


class FixedTransactionCreated(BaseModel):
    principal: TransactionOut
    children: list[TransactionOut]


class RenewResult(BaseModel):
    created: dict[str, int]

    @computed_field  # type: ignore[misc]
    @property
    def total_created(self) -> int:
        return sum(self.created.values())


# --- Credit cards ------------------------------------------------------------


class BillPaymentCreate(BaseModel):
    from_account_id: str
    amount: int = Field(..., gt=0, le=MAX_AMOUNT)
    date: dt.date
    reference_month: str = Field(..., pattern=MONTH_PATTERN)
    description: Optional[str] = Field(default=None, max_length=200)


class BillPaymentReversal(BaseModel):
    removed_ids: list[str]


class CreditCycleOut(BaseModel):
    account_id: str
    reference_month: str
    closing_date: dt.date
    due_date: dt.date
    is_closed: bool
    is_paid: bool
    amount_due: int
    paid_amount: int
    current_bill_amount: int
    next_bill_amount: int
    total_balance: int
    available_limit: Optional[int] = None
    payments: list[TransactionOut]


# --- Period closures ---------------------------------------------------------


class PeriodClosureCreate(BaseModel):
    period_start: dt.date
    period_end: dt.date
    closure_type: ClosureType = ClosureType.MONTHLY
    notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _ordered_range(self) -> "PeriodClosureCreate":
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class PeriodClosureOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    period_start: dt.date
    period_end: dt.date
    closure_type: ClosureType
    is_locked: bool
    closed_at: dt.datetime
    unlocked_at: Optional[dt.datetime] = None
    notes: Optional[str] = None
