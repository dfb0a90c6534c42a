"""Decide which rows of a recurring or installment series an edit/delete touches.

Nothing here talks to the database: callers hand in the target row and its
siblings (every other row sharing the same principal) and get back a
``ScopeDecision`` listing ids to update, delete or detach.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol
import datetime as dt

from fintrack.models import TransactionStatus, TransactionType


class ScopeAction(str, Enum):
    EDIT = "edit"
    DELETE = "delete"


class EditScope(str, Enum):
    CURRENT = "current"
    CURRENT_AND_REMAINING = "current-and-remaining"
    ALL = "all"


class SeriesRow(Protocol):
    id: str
    date: dt.date
    type: TransactionType
    status: TransactionStatus
    is_fixed: bool
    parent_transaction_id: str | None
    installments: int | None
    current_installment: int | None
    to_account_id: str | None
    linked_transaction_id: str | None


@dataclass(frozen=True)
class ScopeDecision:
    ids_to_mutate: tuple[str, ...] = ()
    ids_to_delete_outright: tuple[str, ...] = ()
    ids_to_detach: tuple[str, ...] = ()

    @property
    def affected_ids(self) -> tuple[str, ...]:
        return self.ids_to_mutate + self.ids_to_delete_outright + self.ids_to_detach


def is_transfer_like(row: SeriesRow) -> bool:
    return (
        row.type == TransactionType.TRANSFER
        or row.to_account_id is not None
        or row.linked_transaction_id is not None
    )


def is_installment(row: SeriesRow) -> bool:
    return bool(row.installments and row.installments > 1)


def principal_id_of(row: SeriesRow) -> str:
    return row.parent_transaction_id or row.id


def is_fixed_principal(row: SeriesRow) -> bool:
    return bool(row.is_fixed) and row.parent_transaction_id is None


def needs_siblings(target: SeriesRow) -> bool:
    """Whether scope resolution for ``target`` depends on other rows at all.

    Standalone rows (no parent, not fixed, not an installment) and transfer legs
    always resolve to the target alone, so callers can skip the sibling lookup.
    """
    if is_transfer_like(target):
        return False
    return bool(target.parent_transaction_id or target.is_fixed or is_installment(target))


def _order_key(row: SeriesRow) -> tuple[dt.date, str]:
    return row.date, str(row.id)


def _is_remaining(row: SeriesRow, target: SeriesRow) -> bool:
    if is_installment(target) and row.current_installment is not None and target.current_installment is not None:
        return row.current_installment >= target.current_installment
    return _order_key(row) >= _order_key(target)


def select_rows(target: SeriesRow, siblings: Iterable[SeriesRow], scope: EditScope | str) -> list[SeriesRow]:
    """Rows covered by ``scope``, target included, ordered by (date, id)."""
    scope = EditScope(scope)
    if scope == EditScope.CURRENT or not needs_siblings(target):
        return [target]

    others = [row for row in siblings if row.id != target.id and not is_transfer_like(row)]
    if scope == EditScope.CURRENT_AND_REMAINING:
        others = [
            row
            for row in others
            if row.status == TransactionStatus.PENDING and _is_remaining(row, target)
        ]

    # Sibling lists may come from several queries (principal + children)
    unique: dict[str, SeriesRow] = {target.id: target}
    for row in others:
        unique.setdefault(row.id, row)
    return sorted(unique.values(), key=_order_key)


def resolve_scope(
    action: ScopeAction | str,
    target: SeriesRow,
    siblings: Iterable[SeriesRow],
    scope: EditScope | str,
) -> ScopeDecision:
    """Resolve an edit/delete on ``target`` into concrete row ids.

    - ``current``: the target only.
    - ``current-and-remaining``: the target plus pending siblings at or after it
      (installments compare ``current_installment`` instead of dates).
    - ``all``: the target plus every sibling, completed ones included.

    Deleting under any scope but ``all`` never removes a completed principal:
    it is detached (``is_fixed`` cleared) so it stays in the history. Deleting a
    fixed principal under any scope also deletes every pending child, whatever
    its date; only completed children outlive their definition.
    """
    action = ScopeAction(action)
    scope = EditScope(scope)
    siblings = list(siblings)
    rows = select_rows(target, siblings, scope)
    ids = tuple(row.id for row in rows)

    if action == ScopeAction.EDIT:
        return ScopeDecision(ids_to_mutate=ids)

    if scope == EditScope.ALL or not needs_siblings(target):
        return ScopeDecision(ids_to_delete_outright=ids)

    if is_fixed_principal(target):
        unique = {row.id: row for row in rows}
        for row in siblings:
            if (
                row.parent_transaction_id == target.id
                and row.status == TransactionStatus.PENDING
                and not is_transfer_like(row)
            ):
                unique.setdefault(row.id, row)
        rows = sorted(unique.values(), key=_order_key)

    principal_id = principal_id_of(target)
    to_delete: list[str] = []
    to_detach: list[str] = []
    for row in rows:
        if row.id == principal_id and row.status == TransactionStatus.COMPLETED:
            to_detach.append(row.id)
        else:
            to_delete.append(row.id)
    return ScopeDecision(ids_to_delete_outright=tuple(to_delete), ids_to_detach=tuple(to_detach))
