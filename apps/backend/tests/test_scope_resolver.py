"""
Scope resolution for edits/deletes across fixed and installment series
"""

from datetime import date
from types import SimpleNamespace

import pytest

from fintrack.models import TransactionStatus, TransactionType
from fintrack.services.scope_resolver import (
    EditScope,
    ScopeAction,
    needs_siblings,
    resolve_scope,
    select_rows,
)

PENDING = TransactionStatus.PENDING
COMPLETED = TransactionStatus.COMPLETED


def _row(id, when, status=PENDING, parent="p", **kw):
    defaults = dict(
        type=TransactionType.EXPENSE,
        is_fixed=False,
        installments=None,
        current_installment=None,
        to_account_id=None,
        linked_transaction_id=None,
    )
    defaults.update(kw)
    return SimpleNamespace(id=id, date=when, status=status, parent_transaction_id=parent, **defaults)


@pytest.fixture
def fixed_series():
    """Principal 'p' (completed) with children Feb..Jun; Feb/Mar completed."""
    principal = _row("p", date(2024, 1, 5), COMPLETED, parent=None, is_fixed=True)
    children = [
        _row("c2", date(2024, 2, 5), COMPLETED),
        _row("c3", date(2024, 3, 5), COMPLETED),
        _row("c4", date(2024, 4, 5)),
        _row("c5", date(2024, 5, 5)),
        _row("c6", date(2024, 6, 5)),
    ]
    return principal, children


class TestCurrentScope:
    def test_always_singleton(self, fixed_series):
        principal, children = fixed_series
        for target in [principal, *children]:
            siblings = [r for r in [principal, *children] if r is not target]
            decision = resolve_scope(ScopeAction.EDIT, target, siblings, EditScope.CURRENT)
            assert decision.ids_to_mutate == (target.id,)
            assert decision.ids_to_delete_outright == ()
            assert decision.ids_to_detach == ()

    def test_delete_pending_child_only(self, fixed_series):
        principal, children = fixed_series
        target = children[3]
        decision = resolve_scope("delete", target, [principal, *children], "current")
        assert decision.ids_to_delete_outright == ("c5",)
        assert decision.ids_to_detach == ()


class TestCurrentAndRemaining:
    def test_never_includes_completed_siblings(self, fixed_series):
        principal, children = fixed_series
        decision = resolve_scope(ScopeAction.EDIT, children[0], [principal, *children[1:]], EditScope.CURRENT_AND_REMAINING)
        # target c2 is completed itself, but c3 (completed) is skipped
        assert decision.ids_to_mutate == ("c2", "c4", "c5", "c6")

    def test_excludes_earlier_pending_siblings(self):
        principal = _row("p", date(2024, 1, 10), PENDING, parent=None, is_fixed=True)
        children = [_row(f"c{m}", date(2024, m, 10)) for m in range(2, 6)]
        target = children[1]  # March
        siblings = [principal] + [c for c in children if c is not target]
        decision = resolve_scope(ScopeAction.EDIT, target, siblings, EditScope.CURRENT_AND_REMAINING)
        assert decision.ids_to_mutate == ("c3", "c4", "c5")

    def test_same_date_tie_break_by_id(self):
        target = _row("b", date(2024, 4, 1))
        siblings = [_row("a", date(2024, 4, 1)), _row("c", date(2024, 4, 1))]
        rows = select_rows(target, siblings, EditScope.CURRENT_AND_REMAINING)
        assert [r.id for r in rows] == ["b", "c"]

    def test_installments_compare_installment_number(self):
        rows = [
            _row("i1", date(2024, 1, 20), COMPLETED, parent="i1", installments=4, current_installment=1),
            _row("i2", date(2024, 2, 20), PENDING, parent="i1", installments=4, current_installment=2),
            _row("i3", date(2024, 3, 20), PENDING, parent="i1", installments=4, current_installment=3),
            _row("i4", date(2024, 4, 20), PENDING, parent="i1", installments=4, current_installment=4),
        ]
        decision = resolve_scope(ScopeAction.EDIT, rows[1], [rows[0], rows[2], rows[3]], EditScope.CURRENT_AND_REMAINING)
        assert decision.ids_to_mutate == ("i2", "i3", "i4")

    def test_delete_completed_principal_is_detached(self, fixed_series):
        principal, children = fixed_series
        decision = resolve_scope(ScopeAction.DELETE, principal, children, EditScope.CURRENT_AND_REMAINING)
        assert decision.ids_to_detach == ("p",)
        assert decision.ids_to_delete_outright == ("c4", "c5", "c6")

    def test_delete_pending_principal_is_deleted(self):
        principal = _row("p", date(2024, 1, 5), PENDING, parent=None, is_fixed=True)
        children = [_row("c2", date(2024, 2, 5)), _row("c3", date(2024, 3, 5), COMPLETED)]
        decision = resolve_scope(ScopeAction.DELETE, principal, children, EditScope.CURRENT_AND_REMAINING)
        assert decision.ids_to_delete_outright == ("p", "c2")
        assert decision.ids_to_detach == ()

    def test_delete_current_completed_principal_is_detached(self, fixed_series):
        principal, children = fixed_series
        decision = resolve_scope(ScopeAction.DELETE, principal, children, EditScope.CURRENT)
        assert decision.ids_to_detach == ("p",)
        # pending children go with their definition, completed ones stay
        assert decision.ids_to_delete_outright == ("c4", "c5", "c6")


class TestPrincipalDelete:
    def test_current_scope_takes_pending_children_along(self):
        principal = _row("p", date(2024, 1, 5), PENDING, parent=None, is_fixed=True)
        children = [_row("c2", date(2024, 2, 5)), _row("c3", date(2024, 3, 5), COMPLETED), _row("c4", date(2024, 4, 5))]
        decision = resolve_scope(ScopeAction.DELETE, principal, children, EditScope.CURRENT)
        assert decision.ids_to_delete_outright == ("p", "c2", "c4")
        assert decision.ids_to_detach == ()

    def test_children_dated_before_the_principal_are_included(self):
        # principal moved to June after the series was generated
        principal = _row("p", date(2024, 6, 10), PENDING, parent=None, is_fixed=True)
        children = [_row(f"c{m}", date(2024, m, 10)) for m in range(2, 9) if m != 6]
        decision = resolve_scope(ScopeAction.DELETE, principal, children, EditScope.CURRENT_AND_REMAINING)
        assert decision.ids_to_delete_outright == ("c2", "c3", "c4", "c5", "p", "c7", "c8")

    def test_edit_current_on_principal_stays_singleton(self):
        principal = _row("p", date(2024, 1, 5), PENDING, parent=None, is_fixed=True)
        decision = resolve_scope(ScopeAction.EDIT, principal, [_row("c2", date(2024, 2, 5))], EditScope.CURRENT)
        assert decision.ids_to_mutate == ("p",)


class TestAllScope:
    def test_returns_every_row(self, fixed_series):
        principal, children = fixed_series
        target = children[2]
        siblings = [principal] + [c for c in children if c is not target]
        decision = resolve_scope(ScopeAction.EDIT, target, siblings, EditScope.ALL)
        assert set(decision.ids_to_mutate) == {"p", "c2", "c3", "c4", "c5", "c6"}
        assert decision.ids_to_mutate[0] == "p"

    def test_delete_all_removes_completed_principal(self, fixed_series):
        principal, children = fixed_series
        decision = resolve_scope(ScopeAction.DELETE, principal, children, EditScope.ALL)
        assert decision.ids_to_detach == ()
        assert set(decision.ids_to_delete_outright) == {"p", "c2", "c3", "c4", "c5", "c6"}

    def test_duplicate_siblings_collapse(self, fixed_series):
        principal, children = fixed_series
        decision = resolve_scope(ScopeAction.EDIT, principal, children + children, EditScope.ALL)
        assert len(decision.ids_to_mutate) == 6


class TestStandaloneRows:
    def test_standalone_row_ignores_siblings(self):
        target = _row("solo", date(2024, 3, 1), COMPLETED, parent=None)
        assert not needs_siblings(target)
        decision = resolve_scope(ScopeAction.DELETE, target, [_row("x", date(2024, 4, 1))], EditScope.ALL)
        assert decision.ids_to_delete_outright == ("solo",)

    def test_standalone_completed_row_is_deleted_not_detached(self):
        target = _row("solo", date(2024, 3, 1), COMPLETED, parent=None)
        decision = resolve_scope(ScopeAction.DELETE, target, [], EditScope.CURRENT)
        assert decision.ids_to_delete_outright == ("solo",)
        assert decision.ids_to_detach == ()

    def test_transfer_leg_is_current_only(self):
        target = _row("leg", date(2024, 3, 1), parent="p", to_account_id="acc-2")
        assert not needs_siblings(target)
        decision = resolve_scope(ScopeAction.EDIT, target, [_row("c", date(2024, 4, 1))], EditScope.ALL)
        assert decision.ids_to_mutate == ("leg",)

    def test_orphan_child_without_siblings(self):
        # parent row no longer exists: nothing else to touch
        target = _row("orphan", date(2024, 3, 1), parent="gone")
        decision = resolve_scope(ScopeAction.DELETE, target, [], EditScope.ALL)
        assert decision.ids_to_delete_outright == ("orphan",)

    def test_unknown_scope_rejected(self, fixed_series):
        principal, children = fixed_series
        with pytest.raises(ValueError):
            resolve_scope(ScopeAction.EDIT, principal, children, "future")
