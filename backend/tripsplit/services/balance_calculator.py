"""Net balance per member from a group's bills."""
from tripsplit.schemas import Balances, Group


def active_member_ids(group: Group) -> list[str]:
    """Members that take part in at least one bill, as payer or with a non-zero weight.

    Ordered by first appearance so the settlement plan built from the balances is stable.
    """
    active: dict[str, None] = {}
    for bill in group.bills:
        if bill.paid_by:
            active[bill.paid_by] = None
        for mid, weight in bill.split_ratio.items():
            if weight > 0:
                active[mid] = None
    return list(active)


def compute_balances(group: Group) -> Balances:
    """
    Returns member_id -> net balance (positive = is owed money, negative = owes money).

    Each bill debits its participants by weight / total weight of the amount and
    credits the payer the full amount, so the payer may be left out of their own
    split. Members that appear in no bill get 0. Values are not rounded.
    """
    balances: Balances = {mid: 0.0 for mid in active_member_ids(group)}
    for m in group.members:
        balances.setdefault(m.id, 0.0)

    for bill in group.bills:
        total_weight = sum(bill.split_ratio.values())
        if total_weight <= 0 or bill.amount <= 0:
            continue
        for mid, weight in bill.split_ratio.items():
            if weight > 0:
                balances[mid] -= (weight / total_weight) * bill.amount
        if bill.paid_by:
            balances[bill.paid_by] += bill.amount

    return balances
