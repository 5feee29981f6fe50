"""Helpers shared by the routers."""
from fastapi import HTTPException

from tripsplit.schemas import Group
from tripsplit.store import GroupStore, StoreError


def load_group(store: GroupStore, group_id: str) -> Group:
    try:
        group = store.get(group_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


def save_group(store: GroupStore, group: Group) -> Group:
    try:
        store.save(group)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return group
