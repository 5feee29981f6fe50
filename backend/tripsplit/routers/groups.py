"""Groups: create, list, get, rename, delete, import/export, add/remove members."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tripsplit.routers.common import load_group, save_group
from tripsplit.schemas import Group, GroupCreate, GroupSummary, GroupUpdate, MemberCreate
from tripsplit.services import group_ops
from tripsplit.services.group_ops import GroupError
from tripsplit.services.settlement_ledger import reconcile_paid_settlements
from tripsplit.store import GroupStore, StoreError, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


def _group_summary(group: Group) -> GroupSummary:
    return GroupSummary(
        id=group.id,
        name=group.name,
        member_count=len(group.members),
        bill_count=len(group.bills),
        total_expenses=round(sum(b.amount for b in group.bills), 2),
        created_at=group.created_at,
    )


@router.get("", response_model=list[GroupSummary])
def list_groups(store: GroupStore = Depends(get_store)):
    try:
        groups = store.list_groups()
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return [_group_summary(g) for g in groups]


@router.post("", response_model=Group)
def create_group(data: GroupCreate, store: GroupStore = Depends(get_store)):
    try:
        group = group_ops.create_group(data.name)
    except GroupError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("Created group %s (%s)", group.id, group.name)
    return save_group(store, group)


@router.post("/import", response_model=Group)
def import_group(payload: dict, store: GroupStore = Depends(get_store)):
    try:
        group = Group.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid group document: {exc.error_count()} error(s)")
    try:
        group_ops.validate_group(group)
    except GroupError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        existing = store.get(group.id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if existing is not None:
        raise HTTPException(status_code=400, detail="A group with this id already exists")
    return save_group(store, reconcile_paid_settlements(group))


@router.get("/{group_id}", response_model=Group)
def get_group(group_id: str, store: GroupStore = Depends(get_store)):
    return load_group(store, group_id)


@router.get("/{group_id}/export")
def export_group(group_id: str, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    return JSONResponse(
        content=group.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f"attachment; filename=tripsplit-{group_id}.json"},
    )


@router.patch("/{group_id}", response_model=Group)
def update_group(group_id: str, data: GroupUpdate, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    if data.name is not None:
        try:
            group = group_ops.rename_group(group, data.name)
        except GroupError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    return save_group(store, group)


@router.delete("/{group_id}", status_code=204)
def delete_group(group_id: str, store: GroupStore = Depends(get_store)):
    try:
        deleted = store.delete(group_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not deleted:
        raise HTTPException(status_code=404, detail="Group not found")


@router.post("/{group_id}/members", response_model=Group)
def add_group_member(group_id: str, data: MemberCreate, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    try:
        group = group_ops.add_member(group, data.name)
    except GroupError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return save_group(store, group)


@router.delete("/{group_id}/members/{member_id}", response_model=Group)
def remove_group_member(group_id: str, member_id: str, store: GroupStore = Depends(get_store)):
    group = load_group(store, group_id)
    try:
        group = group_ops.remove_member(group, member_id)
    except GroupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return save_group(store, group)
