"""Paid-state tracking over the current settlement plan.

Paid settlements are stored on the group by identity (from, to, amount) rather
than by position, because the plan is recomputed from scratch on every read and
a bill change can reorder it. Positions are derived from the stored identities
against whatever plan is current.
"""
import logging
from typing import Iterable, Optional

from tripsplit.schemas import Balances, Group, Settlement
from tripsplit.services.balance_calculator import compute_balances
from tripsplit.services.settlement_calculator import compute_settlements
from tripsplit.store import GroupStore

logger = logging.getLogger(__name__)

IndexedSettlement = tuple[int, Settlement]


def apply_paid_settlements(
    balances: Balances,
    settlements: list[Settlement],
    paid_indices: Iterable[int],
) -> Balances:
    """Balances as if every paid settlement had been transferred. Input is not modified."""
    out = dict(balances)
    for idx in sorted(set(paid_indices)):
        if not 0 <= idx < len(settlements):
            continue
        s = settlements[idx]
        out[s.from_member] = out.get(s.from_member, 0.0) + s.amount
        out[s.to_member] = out.get(s.to_member, 0.0) - s.amount
    return out


def effective_balances(group: Group, paid_indices: Iterable[int]) -> Balances:
    """Recompute the group's plan and apply the paid entries of it to its balances."""
    balances = compute_balances(group)
    return apply_paid_settlements(balances, compute_settlements(balances), paid_indices)


def is_paid(index: int, paid_indices: set[int]) -> bool:
    return index in paid_indices


def partition_settlements(
    settlements: list[Settlement], paid_indices: set[int]
) -> tuple[list[IndexedSettlement], list[IndexedSettlement]]:
    """Split the plan into (pending, paid), keeping each settlement's index."""
    pending: list[IndexedSettlement] = []
    paid: list[IndexedSettlement] = []
    for idx, s in enumerate(settlements):
        (paid if is_paid(idx, paid_indices) else pending).append((idx, s))
    return pending, paid


def paid_indices_for(settlements: list[Settlement], paid_keys: Iterable[Settlement]) -> set[int]:
    keys = set(paid_keys)
    return {idx for idx, s in enumerate(settlements) if s in keys}


def reconcile_paid_settlements(group: Group) -> Group:
    """Drop stored paid identities that the freshly computed plan no longer contains."""
    current = set(compute_settlements(compute_balances(group)))
    kept = [s for s in group.paid_settlements if s in current]
    if len(kept) != len(group.paid_settlements):
        logger.info(
            "Group %s: dropped %d stale paid settlement(s)",
            group.id, len(group.paid_settlements) - len(kept),
        )
    return group.model_copy(update={"paid_settlements": kept})


class SettlementLedger:
    """The current plan of one group plus which of its entries are paid.

    The plan is computed once at construction. `toggle` writes through the
    injected store; if that write fails the in-memory state is kept and the
    store's error propagates so the caller can retry with `save` or revert
    with another `toggle`.
    """

    def __init__(self, group: Group, store: Optional[GroupStore] = None):
        self.group = group
        self._store = store
        self.balances = compute_balances(group)
        self.settlements = compute_settlements(self.balances)
        self._paid: set[Settlement] = set(group.paid_settlements) & set(self.settlements)

    @property
    def paid_indices(self) -> set[int]:
        return paid_indices_for(self.settlements, self._paid)

    def is_paid(self, index: int) -> bool:
        return is_paid(index, self.paid_indices)

    @property
    def pending(self) -> list[IndexedSettlement]:
        return partition_settlements(self.settlements, self.paid_indices)[0]

    @property
    def paid(self) -> list[IndexedSettlement]:
        return partition_settlements(self.settlements, self.paid_indices)[1]

    def effective_balances(self) -> Balances:
        return apply_paid_settlements(self.balances, self.settlements, self.paid_indices)

    def toggle(self, index: int) -> bool:
        """Flip paid state of settlement `index` and persist. Returns the new state."""
        if not 0 <= index < len(self.settlements):
            raise IndexError(f"No settlement at index {index} (plan has {len(self.settlements)})")
        key = self.settlements[index]
        if key in self._paid:
            self._paid.discard(key)
        else:
            self._paid.add(key)
        now_paid = key in self._paid
        logger.info(
            "Group %s: settlement %d (%s -> %s, %.2f) marked %s",
            self.group.id, index, key.from_member, key.to_member, key.amount,
            "paid" if now_paid else "pending",
        )
        self.save()
        return now_paid

    def save(self) -> Group:
        """Write the group with the current paid set back to the store, if one was given."""
        self.group = self.group.model_copy(
            update={"paid_settlements": [s for s in self.settlements if s in self._paid]}
        )
        if self._store is not None:
            self._store.save(self.group)
        return self.group
