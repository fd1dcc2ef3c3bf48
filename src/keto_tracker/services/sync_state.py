"""
Persisted synchronization flags.

The cloud-sync opt-in and the per-user migration markers live in the local
store so they survive restarts. SyncState is constructed per store and
passed to the services that need it.
"""

import logging

from keto_tracker.infrastructure.local_store import keys
from keto_tracker.infrastructure.local_store.store import LocalStore, get_json, set_json

logger = logging.getLogger(__name__)


class SyncState:
    """Cloud sync flag and migration markers over a local store."""

    def __init__(self, local: LocalStore) -> None:
        self.local = local

    async def is_cloud_sync_enabled(self) -> bool:
        return await get_json(self.local, keys.USE_CLOUD_SYNC) is True

    async def set_cloud_sync_enabled(self, enabled: bool) -> None:
        await set_json(self.local, keys.USE_CLOUD_SYNC, enabled)

    async def is_migration_completed(self, user_id: str) -> bool:
        return await get_json(self.local, keys.migration_marker(user_id)) is True

    async def mark_migration_completed(self, user_id: str) -> None:
        """
        Record that user_id's local data reached the cloud.

        The marker is never cleared.
        """
        await set_json(self.local, keys.migration_marker(user_id), True)
        logger.info(f"Marked local data as migrated for user {user_id}")
