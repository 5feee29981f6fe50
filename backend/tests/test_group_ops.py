import pytest

from conftest import make_bill, make_group
from tripsplit.schemas import BillCreate, BillUpdate
from tripsplit.services import group_ops
from tripsplit.services.group_ops import GroupError
from tripsplit.services.settlement_ledger import SettlementLedger


def test_create_group_trims_name():
    group = group_ops.create_group("  Ladakh  ")
    assert group.name == "Ladakh"
    assert group.members == [] and group.bills == []


def test_create_group_requires_name():
    with pytest.raises(GroupError):
        group_ops.create_group("   ")


def test_add_member_rejects_duplicates():
    group = group_ops.add_member(make_group([]), "Asha")
    with pytest.raises(GroupError):
        group_ops.add_member(group, "asha")


def test_remove_member_drops_their_bills():
    group = make_group(["a", "b", "c"], [
        make_bill("1", 30.0, "a", {"a": 1, "b": 1}),
        make_bill("2", 20.0, "b", {"b": 1, "c": 0}),
        make_bill("3", 10.0, "b", {"a": 1, "b": 1}),
    ])
    updated = group_ops.remove_member(group, "c")
    assert [m.id for m in updated.members] == ["a", "b"]
    assert [b.id for b in updated.bills] == ["1", "3"]
    assert len(group.bills) == 3


def test_remove_unknown_member():
    with pytest.raises(GroupError):
        group_ops.remove_member(make_group(["a"]), "zz")


def test_equal_split_marks_excluded_with_zero():
    members = make_group(["a", "b", "c"]).members
    assert group_ops.equal_split(members, ["a", "c"]) == {"a": 1.0, "b": 0.0, "c": 1.0}
    assert group_ops.equal_split(members) == {"a": 1.0, "b": 1.0, "c": 1.0}


def test_add_bill_with_participants():
    group, bill = group_ops.add_bill(make_group(["a", "b"]), BillCreate(
        description=" Dinner ", amount=40.0, paid_by="a", participant_ids=["b"],
    ))
    assert bill.description == "Dinner"
    assert bill.split_ratio == {"a": 0.0, "b": 1.0}
    assert group.bills == [bill]


@pytest.mark.parametrize("changes, message", [
    ({"amount": 0.0}, "Amount must be positive"),
    ({"description": "  "}, "Description is required"),
    ({"paid_by": "zz"}, "Payer must be a group member"),
    ({"category": "Rent"}, "Invalid category"),
    ({"split_ratio": {"a": 0, "b": 0}}, "At least one member"),
    ({"split_ratio": {"a": 2, "b": -1}}, "cannot be negative"),
    ({"split_ratio": {"a": 1, "zz": 1}}, "must be group members"),
])
def test_add_bill_validation(changes, message):
    data = {"description": "Taxi", "amount": 12.0, "paid_by": "a", "split_ratio": {"a": 1, "b": 1}}
    data.update(changes)
    with pytest.raises(GroupError, match=message):
        group_ops.add_bill(make_group(["a", "b"]), BillCreate(**data))


def test_update_bill_changes_only_given_fields():
    group = make_group(["a", "b"], [make_bill("1", 30.0, "a", {"a": 1, "b": 1}, category="Shopping")])
    group, bill = group_ops.update_bill(group, "1", BillUpdate(amount=45.0))
    assert bill.amount == 45.0
    assert bill.category == "Shopping"
    assert [b.id for b in group.bills] == ["1"]


def test_update_unknown_bill():
    with pytest.raises(GroupError):
        group_ops.update_bill(make_group(["a"]), "nope", BillUpdate(amount=1.0))


def test_bill_change_drops_stale_paid_state():
    group = make_group(["a", "b"], [make_bill("1", 30.0, "a", {"a": 1, "b": 1})])
    ledger = SettlementLedger(group)
    ledger.toggle(0)
    group = ledger.save()
    assert len(group.paid_settlements) == 1

    group = group_ops.delete_bill(group, "1")
    assert group.paid_settlements == []


def test_unrelated_bill_change_keeps_paid_state():
    group = make_group(["a", "b", "c", "d"], [make_bill("1", 30.0, "a", {"a": 1, "b": 1})])
    ledger = SettlementLedger(group)
    ledger.toggle(0)
    group = ledger.save()

    group, _ = group_ops.add_bill(group, BillCreate(
        description="Snacks", amount=80.0, paid_by="c", participant_ids=["c", "d"],
    ))
    assert len(group.paid_settlements) == 1
    assert SettlementLedger(group).paid_indices == {1}


def test_validate_group_checks_every_bill():
    group = make_group(["a", "b"], [
        make_bill("1", 30.0, "a", {"a": 1, "b": 1}),
        make_bill("2", 30.0, "a", {"a": 2, "b": -1}),
    ])
    with pytest.raises(GroupError, match="Bill 2: Split weights cannot be negative"):
        group_ops.validate_group(group)
    group_ops.validate_group(group.model_copy(update={"bills": group.bills[:1]}))


def test_validate_group_rejects_duplicate_ids():
    group = make_group(["a", "a"])
    with pytest.raises(GroupError, match="Member ids"):
        group_ops.validate_group(group)
