from __future__ import annotations

import uuid
import datetime as dt
from datetime import datetime
from zoneinfo import ZoneInfo
from enum import Enum

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .core.config import settings
from .core.database import Base


try:
    LOCAL_ZONE = ZoneInfo(getattr(settings, "TIMEZONE", "America/Sao_Paulo"))
except Exception:
    LOCAL_ZONE = ZoneInfo("America/Sao_Paulo")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class User(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    accounts: Mapped[list["Account"]] = relationship(back_populates="user")


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    MEAL_VOUCHER = "meal_voucher"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    BOTH = "both"


class Account(Base, TimestampMixin):
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_account_user_name"),
        CheckConstraint("closing_date IS NULL OR (closing_date BETWEEN 1 AND 31)", name="ck_account_closing_day"),
        CheckConstraint("due_date IS NULL OR (due_date BETWEEN 1 AND 31)", name="ck_account_due_day"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[AccountType] = mapped_column(SAEnum(AccountType, name="account_type"), nullable=False)
    # Integer cents
    initial_balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    limit_amount: Mapped[int | None] = mapped_column(BigInteger)
    # Day-of-month, credit accounts only
    closing_date: Mapped[int | None] = mapped_column(Integer)
    due_date: Mapped[int | None] = mapped_column(Integer)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6B7280")

    user: Mapped[User] = relationship(back_populates="accounts")


class Category(Base, TimestampMixin):
    __table_args__ = (UniqueConstraint("user_id", "name", "type", name="uq_category_user_name_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[CategoryType] = mapped_column(SAEnum(CategoryType, name="category_type"), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6B7280")


class Transaction(Base, TimestampMixin):
    __table_args__ = (
        UniqueConstraint("parent_transaction_id", "date", name="uq_transaction_parent_date"),
        Index("ix_transaction_user_date", "user_id", "date"),
        Index("ix_transaction_account_status", "account_id", "status"),
        CheckConstraint(
            "installments IS NULL OR (current_installment BETWEEN 1 AND installments)",
            name="ck_transaction_installment_range",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    # Signed integer cents: expense < 0, income > 0
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    type: Mapped[TransactionType] = mapped_column(SAEnum(TransactionType, name="txn_type"), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(TransactionStatus, name="txn_status"),
        nullable=False,
        default=TransactionStatus.PENDING,
    )
    account_id: Mapped[str] = mapped_column(ForeignKey("account.id"), nullable=False)
    category_id: Mapped[str | None] = mapped_column(ForeignKey("category.id", ondelete="SET NULL"))
    parent_transaction_id: Mapped[str | None] = mapped_column(
        ForeignKey("transaction.id", ondelete="SET NULL"),
        index=True,
    )
    installments: Mapped[int | None] = mapped_column(Integer)
    current_installment: Mapped[int | None] = mapped_column(Integer)
    is_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    to_account_id: Mapped[str | None] = mapped_column(ForeignKey("account.id"))
    linked_transaction_id: Mapped[str | None] = mapped_column(
        ForeignKey("transaction.id", ondelete="SET NULL"),
    )
    # Credit card invoice month (YYYY-MM); only stored when set explicitly
    invoice_month: Mapped[str | None] = mapped_column(String(7))
    invoice_month_overridden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def is_transfer_like(self) -> bool:
        return (
            self.type == TransactionType.TRANSFER
            or self.to_account_id is not None
            or self.linked_transaction_id is not None
        )

    @property
    def is_installment(self) -> bool:
        return bool(self.installments and self.installments > 1)

    @property
    def principal_id(self) -> str:
        return self.parent_transaction_id or self.id


class ClosureType(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class PeriodClosure(Base, TimestampMixin):
    """A closed accounting period: transactions dated inside it are frozen while locked."""

    __tablename__ = "period_closure"
    __table_args__ = (
        UniqueConstraint("user_id", "period_start", "period_end", name="uq_period_closure_range"),
        CheckConstraint("period_end >= period_start", name="ck_period_closure_range"),
        Index("ix_period_closure_user_locked", "user_id", "is_locked"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    period_start: Mapped[dt.date] = mapped_column(Date, nullable=False)
    period_end: Mapped[dt.date] = mapped_column(Date, nullable=False)
    closure_type: Mapped[ClosureType] = mapped_column(
        SAEnum(ClosureType, name="closure_type"),
        nullable=False,
        default=ClosureType.MONTHLY,
    )
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    closed_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    unlocked_at: Mapped[datetime | None] = mapped_column(DateTime)
    notes: Mapped[str | None] = mapped_column(String(500))
