"""
Migration of pre-existing local data into the cloud.

Runs once per user: copies the local profile and every local metric to the
remote store, then sets a persisted completion marker. Writes are
idempotent overwrites keyed by user and date, so an interrupted or partial
pass is safe to repeat.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError

from keto_tracker.domain.metrics import DailyMetric, UserProfile
from keto_tracker.infrastructure.identity import IdentityProvider
from keto_tracker.infrastructure.local_store import keys
from keto_tracker.infrastructure.local_store.store import LocalStore, get_json
from keto_tracker.infrastructure.remote_store.base import RemoteStore, call_remote
from keto_tracker.services.sync_state import SyncState
from keto_tracker.utils.exceptions import MigrationPartialFailure, StorageError

logger = logging.getLogger(__name__)


class MigrationStatus(str, Enum):
    """Outcome of a migration pass."""

    SKIPPED_NO_USER = "skipped_no_user"
    ALREADY_MIGRATED = "already_migrated"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class MigrationReport:
    """What a migration pass did."""

    status: MigrationStatus
    user_id: str | None = None
    profile_migrated: bool = False
    migrated_count: int = 0
    failed_documents: list[str] = field(default_factory=list)
    error: str | None = None


class MigrationEngine:
    """
    One-time transfer of local data to the remote store.

    Concurrent calls for the same user share a single in-flight pass.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteStore,
        identity: IdentityProvider,
        state: SyncState,
        remote_timeout: float = 10.0,
    ) -> None:
        """
        Initialize migration engine.

        Args:
            local: Local key/value store holding the data to migrate.
            remote: Remote document store receiving it.
            identity: Source of the current user id.
            state: Persisted sync flags (migration markers).
            remote_timeout: Deadline in seconds for each remote call.
        """
        self.local = local
        self.remote = remote
        self.identity = identity
        self.state = state
        self.remote_timeout = remote_timeout
        self._inflight: dict[str, asyncio.Task[MigrationReport]] = {}

    async def migrate_local_data_to_cloud(self) -> MigrationReport:
        """
        Migrate the current user's local data to the cloud if not done yet.

        Never raises; failures are logged and reflected in the report. Only
        the caller that started a pass can cancel it; callers that joined it
        then get a report with status CANCELLED.

        Returns:
            Report of the pass (or of the in-flight pass it joined).
        """
        user_id = self.identity.current_user()
        if not user_id:
            logger.info("No user signed in, skipping migration")
            return MigrationReport(MigrationStatus.SKIPPED_NO_USER)

        task = self._inflight.get(user_id)
        if task is None:
            task = asyncio.create_task(self._run(user_id))
            self._inflight[user_id] = task
            return await task

        logger.debug(f"Joining in-flight migration for user {user_id}")
        try:
            # cancelling a joiner must not stop the pass it joined
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            logger.warning(f"Joined migration for user {user_id} was cancelled")
            return MigrationReport(
                MigrationStatus.CANCELLED, user_id=user_id, error="migration cancelled"
            )

    async def trigger_data_migration(self) -> MigrationReport:
        """Run a migration pass on demand (manual sync)."""
        return await self.migrate_local_data_to_cloud()

    async def _run(self, user_id: str) -> MigrationReport:
        report = MigrationReport(MigrationStatus.COMPLETED, user_id=user_id)
        try:
            if await self.state.is_migration_completed(user_id):
                logger.info(f"Data already migrated to cloud for user {user_id}")
                report.status = MigrationStatus.ALREADY_MIGRATED
                return report

            logger.info(f"Starting migration of local data to cloud for user {user_id}")
            failed: list[str] = []

            await self._migrate_profile(user_id, report, failed)
            await self._migrate_metrics(user_id, report, failed)

            if failed:
                raise MigrationPartialFailure(failed)

            await self.state.mark_migration_completed(user_id)
            logger.info(
                f"Migration complete: profile={report.profile_migrated}, "
                f"metrics={report.migrated_count}"
            )
            return report

        except MigrationPartialFailure as e:
            logger.warning(f"Partial migration for user {user_id}, will retry later: {e}")
            report.status = MigrationStatus.PARTIAL
            report.failed_documents = e.failed_documents
            return report

        except Exception as e:
            logger.error(f"Error migrating data to cloud for user {user_id}: {e}")
            report.status = MigrationStatus.FAILED
            report.error = str(e)
            return report

        finally:
            self._inflight.pop(user_id, None)

    async def _migrate_profile(
        self, user_id: str, report: MigrationReport, failed: list[str]
    ) -> None:
        document = await get_json(self.local, keys.USER_PROFILE)
        if not document:
            return

        try:
            profile = UserProfile.model_validate(document)
        except ValidationError as e:
            logger.warning(f"Skipping unreadable local profile: {e}")
            return

        try:
            await call_remote(
                self.remote.put_profile(user_id, profile.to_document()), self.remote_timeout
            )
            report.profile_migrated = True
            logger.info("Profile migrated to cloud")
        except StorageError as e:
            logger.error(f"Failed to migrate profile: {e}")
            failed.append("profile")

    async def _migrate_metrics(
        self, user_id: str, report: MigrationReport, failed: list[str]
    ) -> None:
        entries = await get_json(self.local, keys.DAILY_METRICS)
        if not entries:
            return

        for entry in entries:
            try:
                metric = DailyMetric.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Skipping unreadable local metric {entry!r}: {e}")
                continue
            if metric.date is None:
                logger.warning(f"Skipping local metric without a date: {entry!r}")
                continue

            try:
                await call_remote(
                    self.remote.put_metric(user_id, metric.to_document()), self.remote_timeout
                )
                report.migrated_count += 1
            except StorageError as e:
                logger.error(f"Failed to migrate metric {metric.date}: {e}")
                failed.append(metric.date.isoformat())

        logger.info(f"Migrated {report.migrated_count} of {len(entries)} metrics to cloud")
