import pytest

from conftest import make_bill, make_group
from tripsplit.schemas import Group, Settlement
from tripsplit.services.settlement_ledger import (
    SettlementLedger,
    apply_paid_settlements,
    effective_balances,
    is_paid,
    paid_indices_for,
    partition_settlements,
    reconcile_paid_settlements,
)
from tripsplit.store import GroupStore, StoreError


class RecordingStore(GroupStore):
    def __init__(self, fail=False):
        self.fail = fail
        self.saved: list[Group] = []

    def save(self, group):
        if self.fail:
            raise StoreError("backend unavailable")
        self.saved.append(group)
        return True

    def list_groups(self):
        return list({g.id: g for g in self.saved}.values())

    def get(self, group_id):
        return next((g for g in reversed(self.saved) if g.id == group_id), None)

    def delete(self, group_id):
        return False


@pytest.fixture
def three_way_group():
    return make_group(["a", "b", "c"], [make_bill("1", 90.0, "a", {"a": 1, "b": 1, "c": 1})])


def test_paid_settlement_leaves_pending_partition(three_way_group):
    ledger = SettlementLedger(three_way_group)
    assert len(ledger.settlements) == 2
    first, second = ledger.settlements

    pending, paid = partition_settlements(ledger.settlements, {0})
    assert pending == [(1, second)]
    assert paid == [(0, first)]

    effective = apply_paid_settlements(ledger.balances, ledger.settlements, {0})
    assert effective[first.from_member] == pytest.approx(0.0)
    assert effective[second.from_member] == pytest.approx(-30.0)
    assert effective["a"] == pytest.approx(30.0)


def test_apply_ignores_out_of_range_and_keeps_input():
    balances = {"a": 10.0, "b": -10.0}
    settlements = [Settlement(from_member="b", to_member="a", amount=10.0)]
    out = apply_paid_settlements(balances, settlements, {0, 5})
    assert out == {"a": 0.0, "b": 0.0}
    assert balances == {"a": 10.0, "b": -10.0}


def test_is_paid():
    assert is_paid(2, {0, 2})
    assert not is_paid(1, {0, 2})


def test_toggle_persists_and_flips(three_way_group):
    store = RecordingStore()
    ledger = SettlementLedger(three_way_group, store=store)
    assert ledger.toggle(1) is True
    assert ledger.paid_indices == {1}
    assert store.saved[-1].paid_settlements == [ledger.settlements[1]]

    assert ledger.toggle(1) is False
    assert ledger.paid_indices == set()
    assert store.saved[-1].paid_settlements == []


def test_toggle_out_of_range(three_way_group):
    with pytest.raises(IndexError):
        SettlementLedger(three_way_group).toggle(2)


def test_failed_save_keeps_in_memory_state(three_way_group):
    store = RecordingStore(fail=True)
    ledger = SettlementLedger(three_way_group, store=store)
    with pytest.raises(StoreError):
        ledger.toggle(0)
    assert ledger.is_paid(0)

    store.fail = False
    ledger.save()
    assert store.saved[-1].paid_settlements == [ledger.settlements[0]]


def test_paid_state_follows_identity_not_position(three_way_group):
    ledger = SettlementLedger(three_way_group)
    paid_key = ledger.settlements[1]
    group = ledger.group.model_copy(update={"paid_settlements": [paid_key]})

    # A new bill by a fourth member pushes a larger settlement to the front of the plan.
    group = group.model_copy(update={
        "members": group.members + make_group(["d"]).members,
        "bills": group.bills + [make_bill("2", 200.0, "d", {"d": 1, "e": 1})],
    })
    relocated = SettlementLedger(group)
    assert relocated.settlements[0] != paid_key
    assert paid_key in relocated.settlements
    assert relocated.paid_indices == {relocated.settlements.index(paid_key)}


def test_paid_indices_for_skips_unknown_keys():
    settlements = [Settlement(from_member="b", to_member="a", amount=5.0)]
    stale = Settlement(from_member="b", to_member="a", amount=7.5)
    assert paid_indices_for(settlements, [stale, settlements[0]]) == {0}


def test_reconcile_drops_stale_keys(three_way_group):
    ledger = SettlementLedger(three_way_group)
    stale = Settlement(from_member="c", to_member="a", amount=99.0)
    group = three_way_group.model_copy(update={"paid_settlements": [ledger.settlements[0], stale]})
    assert reconcile_paid_settlements(group).paid_settlements == [ledger.settlements[0]]


def test_effective_balances_of_fully_paid_plan(three_way_group):
    ledger = SettlementLedger(three_way_group)
    ledger.toggle(0)
    ledger.toggle(1)
    assert ledger.pending == []
    assert all(v == pytest.approx(0.0) for v in ledger.effective_balances().values())


def test_effective_balances_from_group(three_way_group):
    effective = effective_balances(three_way_group, {1})
    assert effective["a"] == pytest.approx(30.0)
    assert sorted(round(v, 2) for k, v in effective.items() if k != "a") == [-30.0, 0.0]
