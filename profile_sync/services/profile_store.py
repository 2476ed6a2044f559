"""
Single owner of the profile read model.

All changes arrive as ``ProfileUpdate`` messages and are merged field by
field into the current snapshot, so completions that touch different
slices never overwrite each other.
"""

import threading
from typing import Callable, List, Optional, Union

from profile_sync.models.profile import ProfileData, ProfileUpdate
from profile_sync.utils.logger import get_logger

logger = get_logger(__name__)

UpdateSource = Union[ProfileUpdate, Callable[[ProfileData], ProfileUpdate]]


class ProfileStore:
    """Thread-safe holder of one ``ProfileData`` snapshot."""

    def __init__(self, initial: Optional[ProfileData] = None):
        self._lock = threading.Lock()
        self._profile = initial if initial is not None else ProfileData()

    def snapshot(self) -> ProfileData:
        """Deep copy of the current profile."""
        with self._lock:
            return self._profile.model_copy(deep=True)

    def replace(self, profile: ProfileData) -> ProfileData:
        """Install a freshly loaded profile."""
        with self._lock:
            self._profile = profile.model_copy(deep=True)
            return self._profile.model_copy(deep=True)

    def apply(self, update: UpdateSource) -> ProfileData:
        """
        Merge a partial update into the current snapshot.

        Args:
            update: A ``ProfileUpdate``, or a function building one from the
                current snapshot; the function runs under the store lock so
                read-modify-write sequences stay atomic

        Returns:
            Copy of the merged profile
        """
        with self._lock:
            if callable(update):
                update = update(self._profile.model_copy(deep=True))
            changes = {name: getattr(update, name) for name in update.model_fields_set}
            if changes:
                self._profile = self._profile.model_copy(update=changes, deep=True)
                logger.debug(f"Profile merged: {sorted(changes)}")
            return self._profile.model_copy(deep=True)


def remove_by_id(items: List, item_id: str) -> List:
    return [item for item in items if item.id != item_id]


def apply_optimistically(
    store: ProfileStore,
    forward: UpdateSource,
    compensate: Callable[[ProfileData], ProfileUpdate],
    remote: Callable[[], bool],
) -> bool:
    """
    Apply a local change before the server confirms it.

    Args:
        store: Profile store
        forward: Optimistic update
        compensate: Builds the rollback update from the snapshot current at
            failure time
        remote: Server call; returns True on success

    Returns:
        Outcome of the remote call
    """
    store.apply(forward)
    ok = remote()
    if not ok:
        logger.warning("Remote change failed, rolling back optimistic update")
        store.apply(compensate)
    return ok


def remove_optimistically(
    store: ProfileStore,
    field: str,
    item_id: str,
    remote: Callable[[], bool],
) -> bool:
    """
    Remove a collection member locally, restoring it at its index on failure.

    Args:
        store: Profile store
        field: ``ProfileData`` list field, e.g. ``education``
        item_id: Identity of the member to remove
        remote: Server call; returns True on success
    """
    current = getattr(store.snapshot(), field)
    index = next((i for i, item in enumerate(current) if item.id == item_id), -1)
    removed = current[index] if index >= 0 else None

    def forward(profile: ProfileData) -> ProfileUpdate:
        return ProfileUpdate(**{field: remove_by_id(getattr(profile, field), item_id)})

    def compensate(profile: ProfileData) -> ProfileUpdate:
        items = list(getattr(profile, field))
        if removed is not None and all(item.id != item_id for item in items):
            items.insert(min(index, len(items)), removed)
        return ProfileUpdate(**{field: items})

    return apply_optimistically(store, forward, compensate, remote)
