"""Settlements: who owes whom, paid-state toggling, summary, statistics."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from tripsplit.routers.common import load_group
from tripsplit.schemas import Overview, SettlementEntry, SettlementSummary, Stats
from tripsplit.services.reports import settlement_summary_text
from tripsplit.services.settlement_ledger import SettlementLedger
from tripsplit.services.stats import compute_overview, compute_stats
from tripsplit.store import GroupStore, StoreError, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settlements", tags=["settlements"])


def _settlement_summary(ledger: SettlementLedger) -> SettlementSummary:
    group = ledger.group
    paid = ledger.paid_indices
    return SettlementSummary(
        group_id=group.id,
        members=group.members,
        balances={mid: round(bal, 2) for mid, bal in ledger.balances.items()},
        effective_balances={mid: round(bal, 2) for mid, bal in ledger.effective_balances().items()},
        settlements=[
            SettlementEntry(
                index=idx,
                from_member=s.from_member,
                from_name=group.member_name(s.from_member),
                to_member=s.to_member,
                to_name=group.member_name(s.to_member),
                amount=s.amount,
                paid=idx in paid,
            )
            for idx, s in enumerate(ledger.settlements)
        ],
        pending_count=len(ledger.settlements) - len(paid),
        paid_count=len(paid),
    )


@router.get("/group/{group_id}", response_model=SettlementSummary)
def get_settlements(group_id: str, store: GroupStore = Depends(get_store)):
    ledger = SettlementLedger(load_group(store, group_id))
    return _settlement_summary(ledger)


@router.post("/group/{group_id}/toggle/{index}", response_model=SettlementSummary)
def toggle_settlement(group_id: str, index: int, store: GroupStore = Depends(get_store)):
    ledger = SettlementLedger(load_group(store, group_id), store=store)
    try:
        ledger.toggle(index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except StoreError as exc:
        logger.warning("Paid state for group %s not saved: %s", group_id, exc)
        raise HTTPException(status_code=503, detail=str(exc))
    return _settlement_summary(ledger)


@router.get("/group/{group_id}/summary", response_class=PlainTextResponse)
def get_settlement_summary(group_id: str, store: GroupStore = Depends(get_store)):
    ledger = SettlementLedger(load_group(store, group_id))
    return settlement_summary_text(ledger)


@router.get("/dashboard/{group_id}", response_model=Stats)
def get_dashboard(group_id: str, store: GroupStore = Depends(get_store)):
    return compute_stats(load_group(store, group_id))


@router.get("/overview", response_model=Overview)
def get_overview(store: GroupStore = Depends(get_store)):
    try:
        groups = store.list_groups()
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return compute_overview(groups)
