"""
Sync policy: decides whether storage operations go to the cloud.

Cloud storage is used only while a user is signed in and has opted into
cloud sync. Turning sync on starts a background migration of local data.
"""

import asyncio
import logging
from typing import Callable

from keto_tracker.infrastructure.identity import AuthEvent, AuthEventType, IdentityProvider
from keto_tracker.services.migration import MigrationEngine, MigrationReport
from keto_tracker.services.sync_state import SyncState

logger = logging.getLogger(__name__)


class SyncPolicy:
    """
    Routing decision plus the cloud sync switch.

    The background migration started by set_cloud_sync is kept as
    migration_task so callers can await or cancel it.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        state: SyncState,
        migration: MigrationEngine,
    ) -> None:
        self.identity = identity
        self.state = state
        self.migration = migration
        self.migration_task: asyncio.Task[MigrationReport] | None = None

    async def should_use_cloud(self) -> bool:
        """True iff a user is signed in and cloud sync is enabled. Never raises."""
        try:
            if not self.identity.current_user():
                return False
            return await self.state.is_cloud_sync_enabled()
        except Exception as e:
            logger.debug(f"Cloud sync state unavailable, using local storage: {e}")
            return False

    async def set_cloud_sync(self, enabled: bool) -> None:
        """
        Persist the cloud sync opt-in.

        Switching from disabled to enabled schedules a migration pass in the
        background; its outcome never reaches the caller.

        Raises:
            LocalStoreError: If the flag itself cannot be persisted.
        """
        try:
            was_enabled = await self.state.is_cloud_sync_enabled()
        except Exception as e:
            logger.warning(f"Could not read previous cloud sync flag: {e}")
            was_enabled = False

        await self.state.set_cloud_sync_enabled(enabled)
        logger.info(f"Cloud sync {'enabled' if enabled else 'disabled'}")

        if enabled and not was_enabled:
            self.schedule_migration()

    def schedule_migration(self) -> asyncio.Task[MigrationReport]:
        """Start a migration pass as a background task (requires a running loop)."""
        task = asyncio.create_task(self.migration.migrate_local_data_to_cloud())
        task.add_done_callback(_log_migration_outcome)
        self.migration_task = task
        return task

    async def wait_for_migration(self) -> MigrationReport | None:
        """Await the most recent background migration, if any."""
        if self.migration_task is None:
            return None
        return await self.migration_task

    def cancel_migration(self) -> bool:
        """Cancel the background migration; False if none was running."""
        if self.migration_task is None or self.migration_task.done():
            return False
        return self.migration_task.cancel()

    def attach(self) -> Callable[[], None]:
        """
        Follow the identity provider's sign-in and sign-out events.

        Returns:
            Callable that detaches the policy again.
        """
        return self.identity.subscribe(self._on_auth_event)

    async def _on_auth_event(self, event: AuthEvent) -> None:
        if event.type is AuthEventType.SIGNED_IN:
            already_enabled = await self.should_use_cloud()
            await self.set_cloud_sync(True)
            if already_enabled:
                # marker is per user, so a different account still needs its pass
                self.schedule_migration()
        else:
            await self.set_cloud_sync(False)


def _log_migration_outcome(task: asyncio.Task[MigrationReport]) -> None:
    if task.cancelled():
        logger.info("Background migration cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background migration crashed: {exc}")
        return
    report = task.result()
    logger.info(f"Background migration finished: {report.status.value}")
