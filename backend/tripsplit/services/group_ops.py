"""Group editing: members and bills.

Every function returns a new Group and leaves its input untouched. Bill
changes reconcile stored paid settlements against the new plan.
"""
import uuid
from typing import Optional

from tripsplit.schemas import (
    BILL_CATEGORIES, Bill, BillCreate, BillUpdate, Group, Member,
)
from tripsplit.services.settlement_ledger import reconcile_paid_settlements


class GroupError(ValueError):
    """Rejected edit: unknown ids or a bill that fails validation."""


def new_id() -> str:
    return uuid.uuid4().hex


def equal_split(members: list[Member], included: Optional[list[str]] = None) -> dict[str, float]:
    """Weight 1 for every included member, 0 for the rest. All members when `included` is None."""
    chosen = set(included) if included is not None else {m.id for m in members}
    return {m.id: 1.0 if m.id in chosen else 0.0 for m in members}


def create_group(name: str) -> Group:
    name = name.strip()
    if not name:
        raise GroupError("Group name is required")
    return Group(id=new_id(), name=name)


def rename_group(group: Group, name: str) -> Group:
    name = name.strip()
    if not name:
        raise GroupError("Group name is required")
    return group.model_copy(update={"name": name})


def add_member(group: Group, name: str) -> Group:
    name = name.strip()
    if not name:
        raise GroupError("Member name is required")
    if any(m.name.lower() == name.lower() for m in group.members):
        raise GroupError(f"{name} is already in {group.name}")
    member = Member(id=new_id(), name=name)
    return group.model_copy(update={"members": [*group.members, member]})


def remove_member(group: Group, member_id: str) -> Group:
    """Remove a member together with every bill they paid for or appear in."""
    if member_id not in group.member_ids():
        raise GroupError("Member not in this group")
    bills = [
        b for b in group.bills
        if b.paid_by != member_id and member_id not in b.split_ratio
    ]
    updated = group.model_copy(update={
        "members": [m for m in group.members if m.id != member_id],
        "bills": bills,
    })
    return reconcile_paid_settlements(updated)


def validate_bill(group: Group, bill: Bill) -> None:
    members = group.member_ids()
    if not bill.description.strip():
        raise GroupError("Description is required")
    if not bill.amount > 0:
        raise GroupError("Amount must be positive")
    if bill.category not in BILL_CATEGORIES:
        raise GroupError(f"Invalid category. Must be one of: {', '.join(BILL_CATEGORIES)}")
    if bill.paid_by not in members:
        raise GroupError("Payer must be a group member")
    unknown = set(bill.split_ratio) - members
    if unknown:
        raise GroupError("All split members must be group members")
    if any(w < 0 for w in bill.split_ratio.values()):
        raise GroupError("Split weights cannot be negative")
    if sum(bill.split_ratio.values()) <= 0:
        raise GroupError("At least one member must share the bill")


def validate_group(group: Group) -> None:
    """Checks a whole document, e.g. an import, the way single edits are checked."""
    if not group.name.strip():
        raise GroupError("Group name is required")
    if len(group.member_ids()) != len(group.members):
        raise GroupError("Member ids must be unique")
    if len({b.id for b in group.bills}) != len(group.bills):
        raise GroupError("Bill ids must be unique")
    for bill in group.bills:
        try:
            validate_bill(group, bill)
        except GroupError as exc:
            raise GroupError(f"Bill {bill.id}: {exc}") from exc


def _split_from(group: Group, split_ratio: Optional[dict[str, float]],
                participant_ids: Optional[list[str]]) -> dict[str, float]:
    if split_ratio is not None:
        return dict(split_ratio)
    if participant_ids is not None and not set(participant_ids) <= group.member_ids():
        raise GroupError("All split members must be group members")
    return equal_split(group.members, participant_ids)


def add_bill(group: Group, data: BillCreate) -> tuple[Group, Bill]:
    bill = Bill(
        id=new_id(),
        description=data.description.strip(),
        amount=data.amount,
        category=data.category,
        paid_by=data.paid_by,
        split_ratio=_split_from(group, data.split_ratio, data.participant_ids),
    )
    validate_bill(group, bill)
    updated = group.model_copy(update={"bills": [*group.bills, bill]})
    return reconcile_paid_settlements(updated), bill


def get_bill(group: Group, bill_id: str) -> Bill:
    bill = next((b for b in group.bills if b.id == bill_id), None)
    if bill is None:
        raise GroupError("Bill not found")
    return bill


def update_bill(group: Group, bill_id: str, data: BillUpdate) -> tuple[Group, Bill]:
    old = get_bill(group, bill_id)
    changes = data.model_dump(exclude_unset=True, exclude={"participant_ids"})
    if "description" in changes:
        changes["description"] = changes["description"].strip()
    if data.split_ratio is None and data.participant_ids is not None:
        changes["split_ratio"] = _split_from(group, None, data.participant_ids)
    changes = {k: v for k, v in changes.items() if v is not None}
    bill = old.model_copy(update=changes)
    validate_bill(group, bill)
    updated = group.model_copy(update={
        "bills": [bill if b.id == bill_id else b for b in group.bills],
    })
    return reconcile_paid_settlements(updated), bill


def delete_bill(group: Group, bill_id: str) -> Group:
    get_bill(group, bill_id)
    updated = group.model_copy(update={"bills": [b for b in group.bills if b.id != bill_id]})
    return reconcile_paid_settlements(updated)
