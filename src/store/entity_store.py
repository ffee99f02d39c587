# src/store/entity_store.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Protocol, Set, Tuple

from src.business_objects import ENTITY_TYPES, ID_FIELDS, EntityKind

logger = logging.getLogger(__name__)

# Foreign-key fields whose values claim an id in another collection.
REFERENCE_FIELDS = (("vehicle_id", EntityKind.VEHICLE), ("driver_id", EntityKind.DRIVER))


def entity_id(kind: EntityKind, entity: Any) -> str:
    """Read the identifier of `entity` using the id field registered for `kind`."""
    return getattr(entity, ID_FIELDS[kind])


def _check_type(kind: EntityKind, entity: Any) -> None:
    expected = ENTITY_TYPES[kind]
    if not isinstance(entity, expected):
        raise TypeError(
            f"Store kind '{kind.value}' holds {expected.__name__}, got {type(entity).__name__}."
        )


# ──────────────────────────────────────────────────────────────────────────────
# Read-only surface shared by the live store, snapshots and transactions
# ──────────────────────────────────────────────────────────────────────────────

class StoreView(Protocol):
    """
    Read-only surface validation rules and reports need.
    Keep implementations side-effect free.
    """

    def get(self, kind: EntityKind, id_: str) -> Optional[Any]:
        ...

    def list(self, kind: EntityKind) -> List[Any]:
        ...

    def contains(self, kind: EntityKind, id_: str) -> bool:
        ...

    def count(self, kind: EntityKind) -> int:
        ...


class StoreSnapshot:
    """
    Frozen copy of every collection, taken under the store lock.
    Entities are immutable, so copying the per-kind dicts is enough.
    """

    def __init__(self, collections: Mapping[EntityKind, Dict[str, Any]]) -> None:
        self._collections = {
            kind: MappingProxyType(dict(rows)) for kind, rows in collections.items()
        }

    def get(self, kind: EntityKind, id_: str) -> Optional[Any]:
        return self._collections[kind].get(id_)

    def list(self, kind: EntityKind) -> List[Any]:
        return list(self._collections[kind].values())

    def contains(self, kind: EntityKind, id_: str) -> bool:
        return id_ in self._collections[kind]

    def count(self, kind: EntityKind) -> int:
        return len(self._collections[kind])


class EntityStore:
    """
    Authoritative in-memory collections keyed by identifier.

    A pure keyed container: no validation happens here. Insertion order is kept
    per kind (display only; nothing depends on it for correctness). Replacing an
    entity keeps its original position.

    Writers should go through `transaction()` so multi-entity changes land as one
    unit under `lock`.

    The store also remembers every id it has seen, whether as a key or as a
    vehicle_id/driver_id reference. Deleting an entity does not forget its id,
    so `is_taken` keeps a removed id (and its orphaned history) from being
    handed to a new entity.
    """

    def __init__(self) -> None:
        self._collections: Dict[EntityKind, Dict[str, Any]] = {kind: {} for kind in EntityKind}
        self._seen: Dict[EntityKind, Set[str]] = {kind: set() for kind in EntityKind}
        self.lock = threading.RLock()

    # ------------------------ keyed container ------------------------ #

    def get(self, kind: EntityKind, id_: str) -> Optional[Any]:
        return self._collections[kind].get(id_)

    def put(self, kind: EntityKind, entity: Any) -> None:
        _check_type(kind, entity)
        with self.lock:
            self._collections[kind][entity_id(kind, entity)] = entity
            self._remember(kind, entity)

    def delete(self, kind: EntityKind, id_: str) -> None:
        with self.lock:
            self._collections[kind].pop(id_, None)

    def list(self, kind: EntityKind) -> List[Any]:
        with self.lock:
            return list(self._collections[kind].values())

    def contains(self, kind: EntityKind, id_: str) -> bool:
        return id_ in self._collections[kind]

    def count(self, kind: EntityKind) -> int:
        return len(self._collections[kind])

    # ------------------------ id bookkeeping ------------------------ #

    def is_taken(self, kind: EntityKind, id_: str) -> bool:
        """True if `id_` was ever stored or referenced for `kind`, deleted or not."""
        return id_ in self._seen[kind]

    def seen_ids(self, kind: EntityKind) -> FrozenSet[str]:
        with self.lock:
            return frozenset(self._seen[kind])

    def _remember(self, kind: EntityKind, entity: Any) -> None:
        self._seen[kind].add(entity_id(kind, entity))
        for field_name, ref_kind in REFERENCE_FIELDS:
            ref = getattr(entity, field_name, None)
            if ref and ref_kind != kind:
                self._seen[ref_kind].add(ref)

    # ------------------------ consistency helpers ------------------------ #

    def snapshot(self) -> StoreSnapshot:
        """Consistent read-only copy; never observes a half-applied transaction."""
        with self.lock:
            return StoreSnapshot(self._collections)

    @contextmanager
    def transaction(self) -> Iterator["Transaction"]:
        """
        Hold the lock, stage writes, and apply them together on a clean exit.
        Any exception discards the staged writes and propagates.
        """
        with self.lock:
            tx = Transaction(self)
            yield tx
            tx._commit()


class Transaction:
    """
    Staged writes over an EntityStore.

    Reads see the staged state (writes first, then the underlying store), so a
    command handler can validate against what it is about to produce.
    """

    _DELETED = object()

    def __init__(self, store: EntityStore) -> None:
        self._store = store
        self._staged: Dict[Tuple[EntityKind, str], Any] = {}

    # ------------------------ StoreView ------------------------ #

    def get(self, kind: EntityKind, id_: str) -> Optional[Any]:
        staged = self._staged.get((kind, id_), None)
        if staged is self._DELETED:
            return None
        if staged is not None:
            return staged
        return self._store.get(kind, id_)

    def list(self, kind: EntityKind) -> List[Any]:
        rows: Dict[str, Any] = {entity_id(kind, e): e for e in self._store.list(kind)}
        for (k, id_), value in self._staged.items():
            if k != kind:
                continue
            if value is self._DELETED:
                rows.pop(id_, None)
            else:
                rows[id_] = value
        return list(rows.values())

    def contains(self, kind: EntityKind, id_: str) -> bool:
        return self.get(kind, id_) is not None

    def count(self, kind: EntityKind) -> int:
        return len(self.list(kind))

    def is_taken(self, kind: EntityKind, id_: str) -> bool:
        return (kind, id_) in self._staged or self._store.is_taken(kind, id_)

    # ------------------------ staged writes ------------------------ #

    def put(self, kind: EntityKind, entity: Any) -> None:
        _check_type(kind, entity)
        self._staged[(kind, entity_id(kind, entity))] = entity

    def delete(self, kind: EntityKind, id_: str) -> None:
        self._staged[(kind, id_)] = self._DELETED

    @property
    def pending(self) -> int:
        return len(self._staged)

    def _commit(self) -> None:
        for (kind, id_), value in self._staged.items():
            if value is self._DELETED:
                self._store.delete(kind, id_)
            else:
                self._store.put(kind, value)
        if self._staged:
            logger.debug("Committed %d staged write(s)", len(self._staged))
        self._staged.clear()
