"""Bills of a group: create, list, get, update, delete, export."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from tripsplit.routers.common import load_group, save_group
from tripsplit.schemas import Bill, BillCreate, BillUpdate
from tripsplit.services import group_ops
from tripsplit.services.group_ops import GroupError
from tripsplit.services.reports import bills_csv
from tripsplit.store import GroupStore, get_store

router = APIRouter(prefix="/groups/{group_id}/bills", tags=["bills"])


@router.post("", response_model=Bill)
def create_bill(group_id: str, data: BillCreate, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    if not group.members:
        raise HTTPException(status_code=400, detail="Add members to the group before adding bills")
    try:
        group, bill = group_ops.add_bill(group, data)
    except GroupError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    save_group(store, group)
    return bill


@router.get("", response_model=list[Bill])
def list_bills(
    group_id: str,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    paid_by: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    store: GroupStore = Depends(get_store),
):
    bills = load_group(store, group_id).bills
    if search:
        bills = [b for b in bills if search.lower() in b.description.lower()]
    if category:
        bills = [b for b in bills if b.category == category]
    if paid_by:
        bills = [b for b in bills if b.paid_by == paid_by]
    bills = sorted(bills, key=lambda b: b.created_at, reverse=True)
    return bills[offset:offset + limit]


@router.get("/export")
def export_bills(group_id: str, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    return StreamingResponse(
        iter([bills_csv(group)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=bills-{group_id}.csv"},
    )


@router.get("/{bill_id}", response_model=Bill)
def get_bill(group_id: str, bill_id: str, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    try:
        return group_ops.get_bill(group, bill_id)
    except GroupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.patch("/{bill_id}", response_model=Bill)
def update_bill(group_id: str, bill_id: str, data: BillUpdate, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    try:
        group_ops.get_bill(group, bill_id)
    except GroupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    try:
        group, bill = group_ops.update_bill(group, bill_id, data)
    except GroupError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    save_group(store, group)
    return bill


@router.delete("/{bill_id}", status_code=204)
def delete_bill(group_id: str, bill_id: str, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    try:
        group = group_ops.delete_bill(group, bill_id)
    except GroupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    save_group(store, group)
