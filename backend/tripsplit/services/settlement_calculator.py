"""Minimize number of transfers so everyone is settled (who owes whom)."""
from tripsplit.schemas import Balances, Settlement

# One cent; absorbs float remainders from weighted splits.
EPSILON = 0.01


def compute_settlements(balances: Balances) -> list[Settlement]:
    """
    balances: member_id -> net balance (positive = is owed money, negative = owes money).
    Returns a greedy list of transfers to settle up, largest debtor against largest
    creditor first. Deterministic for a given mapping.
    """
    debtors = []  # [member_id, amount_owed]
    creditors = []
    for mid, bal in balances.items():
        if bal < -EPSILON:
            debtors.append([mid, round(-bal, 2)])
        elif bal > EPSILON:
            creditors.append([mid, round(bal, 2)])
    debtors.sort(key=lambda x: -x[1])
    creditors.sort(key=lambda x: -x[1])

    out: list[Settlement] = []
    i, j = 0, 0
    while i < len(debtors) and j < len(creditors):
        du, d_amount = debtors[i]
        cu, c_amount = creditors[j]
        transfer = min(d_amount, c_amount)
        out.append(Settlement(from_member=du, to_member=cu, amount=round(transfer, 2)))
        debtors[i][1] = round(d_amount - transfer, 2)
        creditors[j][1] = round(c_amount - transfer, 2)
        if debtors[i][1] <= EPSILON:
            i += 1
        if creditors[j][1] <= EPSILON:
            j += 1
    return out


def total_to_settle(settlements: list[Settlement]) -> float:
    return round(sum(s.amount for s in settlements), 2)
