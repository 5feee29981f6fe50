"""Group persistence: one JSON document per group."""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tripsplit.database import SessionLocal
from tripsplit.models import GroupDocument
from tripsplit.schemas import Group

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A read or write against the backing store failed."""


def serialize_group(group: Group) -> str:
    return group.model_dump_json(by_alias=True)


def deserialize_group(document: str) -> Group:
    return Group.model_validate_json(document)


class GroupStore(ABC):
    """Interface the ledger and the API write groups through."""

    @abstractmethod
    def list_groups(self) -> list[Group]:
        ...

    @abstractmethod
    def get(self, group_id: str) -> Optional[Group]:
        ...

    @abstractmethod
    def save(self, group: Group) -> bool:
        """Persist `group`. Returns False when the write was skipped as unchanged."""

    @abstractmethod
    def delete(self, group_id: str) -> bool:
        ...


class SqlGroupStore(GroupStore):
    """SQLAlchemy-backed store.

    Keeps the last document it wrote for each group and skips a save whose
    serialized form is identical. The snapshot is only recorded after a
    successful commit. Writes hold a lock from the snapshot check to the
    snapshot update, so the snapshot always matches the last committed
    document of this store.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory
        self._last_saved: dict[str, str] = {}
        self._write_lock = threading.Lock()

    def list_groups(self) -> list[Group]:
        try:
            with self._session_factory() as db:
                rows = db.query(GroupDocument).order_by(GroupDocument.created_at).all()
                return [deserialize_group(r.document) for r in rows]
        except SQLAlchemyError as exc:
            logger.error("Error loading groups: %s", exc)
            raise StoreError("Failed to load groups") from exc

    def get(self, group_id: str) -> Optional[Group]:
        try:
            with self._session_factory() as db:
                row = db.get(GroupDocument, group_id)
                return deserialize_group(row.document) if row else None
        except SQLAlchemyError as exc:
            logger.error("Error loading group %s: %s", group_id, exc)
            raise StoreError(f"Failed to load group {group_id}") from exc

    def save(self, group: Group) -> bool:
        document = serialize_group(group)
        with self._write_lock:
            if self._last_saved.get(group.id) == document:
                logger.debug("Group %s unchanged, skipping save", group.id)
                return False
            try:
                with self._session_factory() as db:
                    row = db.get(GroupDocument, group.id)
                    if row is None:
                        db.add(GroupDocument(id=group.id, name=group.name, document=document))
                    else:
                        row.name = group.name
                        row.document = document
                    db.commit()
            except SQLAlchemyError as exc:
                self._last_saved.pop(group.id, None)
                logger.error("Error saving group %s: %s", group.id, exc)
                raise StoreError(f"Failed to save group {group.id}") from exc
            self._last_saved[group.id] = document
            return True

    def delete(self, group_id: str) -> bool:
        with self._write_lock:
            self._last_saved.pop(group_id, None)
            try:
                with self._session_factory() as db:
                    row = db.get(GroupDocument, group_id)
                    if row is None:
                        return False
                    db.delete(row)
                    db.commit()
                    return True
            except SQLAlchemyError as exc:
                logger.error("Error deleting group %s: %s", group_id, exc)
                raise StoreError(f"Failed to delete group {group_id}") from exc


_default_store: Optional[SqlGroupStore] = None


def get_store() -> GroupStore:
    global _default_store
    if _default_store is None:
        _default_store = SqlGroupStore()
    return _default_store
