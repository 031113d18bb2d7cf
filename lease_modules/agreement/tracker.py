"""
Sub-collection tracking for variable-length lease children.

Responsibility
--------------
``SubCollectionTracker`` holds the ordered rows of one child collection
(parking allocations, agreement services) together with the identities of
persisted rows removed during the current edit session, so that a single
``*_attributes`` array can tell the remote store what to create, update
and destroy.

Invariants enforced
-------------------
* ``remove_at`` always shrinks ``items`` by exactly one.
* An identity enters ``removed`` iff the removed row had one; rows added
  locally and never saved simply vanish.
* ``add`` never carries an identity (the remote store assigns it).
* The tracker has no minimum size; form-level policies live in the
  session.

Failure modes
-------------
* Index outside ``[0, len)``  -> ``SubCollectionIndexError``; tracker
  unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any, Generic, Protocol, TypeVar

from lease_kernel.domain.values import ExternalId
from lease_kernel.exceptions import SubCollectionIndexError
from lease_kernel.logging_config import get_logger

logger = get_logger("modules.agreement.tracker")


class TrackedItem(Protocol):
    """A frozen dataclass row with an optional remote identity."""

    identity: ExternalId | None

    def to_attributes(self) -> dict[str, Any]: ...


T = TypeVar("T", bound=TrackedItem)


@dataclass(frozen=True)
class SubCollectionTracker(Generic[T]):
    """
    Ordered child rows plus the identities deleted this session.

    Immutable: every operation returns a new tracker.
    """

    name: str
    items: tuple[T, ...] = ()
    removed: tuple[ExternalId, ...] = ()

    @classmethod
    def seeded(cls, name: str, items: Iterable[T]) -> SubCollectionTracker[T]:
        """Tracker loaded from persisted rows; nothing removed yet."""
        return cls(name=name, items=tuple(items), removed=())

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __getitem__(self, index: int) -> T:
        return self._item_at(index)

    def add(self, item: T) -> SubCollectionTracker[T]:
        """Append a new, not-yet-persisted row."""
        if item.identity is not None:
            item = replace(item, identity=None)
        logger.debug("tracker_item_added", extra={
            "collection": self.name,
            "length": len(self.items) + 1,
        })
        return replace(self, items=self.items + (item,))

    def update_at(self, index: int, patch: Mapping[str, Any]) -> SubCollectionTracker[T]:
        """Shallow-merge ``patch`` into the row at ``index``; identity is kept."""
        item = self._item_at(index)
        changes = {key: value for key, value in patch.items() if key != "identity"}
        updated = replace(item, **changes)
        items = self.items[:index] + (updated,) + self.items[index + 1:]
        logger.debug("tracker_item_updated", extra={
            "collection": self.name,
            "index": index,
            "fields": sorted(changes),
        })
        return replace(self, items=items)

    def remove_at(self, index: int) -> SubCollectionTracker[T]:
        """
        Drop the row at ``index``.

        A persisted row's identity moves to ``removed`` so the next update
        can destroy it remotely.
        """
        item = self._item_at(index)
        removed = self.removed
        if item.identity is not None and item.identity not in removed:
            removed = removed + (item.identity,)
        items = self.items[:index] + self.items[index + 1:]
        logger.info("tracker_item_removed", extra={
            "collection": self.name,
            "index": index,
            "identity": item.identity,
            "pending_deletions": len(removed),
        })
        return replace(self, items=items, removed=removed)

    def to_wire_payload(self, include_identities: bool = True) -> list[dict[str, Any]]:
        """
        Render rows followed by destroy markers.

        With ``include_identities=False`` (create mode) no ``id`` and no
        ``_destroy`` entries are emitted.
        """
        payload: list[dict[str, Any]] = []
        for item in self.items:
            attributes = item.to_attributes()
            if include_identities and item.identity is not None:
                attributes = {"id": item.identity, **attributes}
            payload.append(attributes)
        if include_identities:
            payload.extend({"id": identity, "_destroy": True} for identity in self.removed)
        return payload

    def _item_at(self, index: int) -> T:
        if not 0 <= index < len(self.items):
            raise SubCollectionIndexError(index, len(self.items))
        return self.items[index]
