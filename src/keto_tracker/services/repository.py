"""
Metric repository: the read/write facade over local and cloud storage.

Reads prefer the cloud and fall back to the local cache. Writes go to the
cloud first when sync is on, with the local store as cache and as fallback.
This is the only code that mutates the local metric list or the remote
metric collection.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable

from pydantic import ValidationError

from keto_tracker.domain.metrics import DailyMetric, UserProfile, sort_metrics_desc
from keto_tracker.domain.results import ReadAction, ResultKind, StoreResult, decide_read
from keto_tracker.infrastructure.identity import IdentityProvider
from keto_tracker.infrastructure.local_store import keys
from keto_tracker.infrastructure.local_store.store import LocalStore, get_json, set_json
from keto_tracker.infrastructure.remote_store.base import RemoteStore, call_remote
from keto_tracker.services.migration import MigrationEngine, MigrationStatus
from keto_tracker.services.sync_policy import SyncPolicy
from keto_tracker.services.sync_state import SyncState
from keto_tracker.utils.exceptions import (
    LocalStoreError,
    NotFoundError,
    PersistenceError,
    QuotaExceededError,
    StorageError,
    TransientRemoteError,
)
from keto_tracker.utils.parameters import TrackerConfig
from keto_tracker.utils.timezone_utils import today_in

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = "Storage quota exceeded. Please clear some stored data or sign in for cloud sync."


def _parse_metrics(entries: list[dict[str, Any]], source: str) -> list[DailyMetric]:
    metrics: list[DailyMetric] = []
    for entry in entries:
        try:
            metric = DailyMetric.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable {source} metric {entry!r}: {e}")
            continue
        if metric.date is None:
            logger.warning(f"Ignoring {source} metric without a date: {entry!r}")
            continue
        metrics.append(metric)
    return metrics


class MetricRepository:
    """
    Storage facade for metrics and the user profile.

    Read operations never raise; they degrade to cached, local or default
    data. Write operations raise only when every available target failed.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteStore,
        identity: IdentityProvider,
        state: SyncState,
        policy: SyncPolicy,
        migration: MigrationEngine,
        config: TrackerConfig | None = None,
        remote_timeout: float = 10.0,
        clock: Callable[[], date] | None = None,
    ) -> None:
        """
        Initialize the repository.

        Args:
            local: Local key/value store.
            remote: Remote document store.
            identity: Source of the current user id.
            state: Persisted sync flags.
            policy: Decides whether the cloud is used.
            migration: Engine run inline when the cloud looks unmigrated.
            config: Domain defaults (timezone, target ratio).
            remote_timeout: Deadline in seconds for each remote call.
            clock: Returns the current calendar day; defaults to today in
                the configured timezone.
        """
        self.local = local
        self.remote = remote
        self.identity = identity
        self.state = state
        self.policy = policy
        self.migration = migration
        self.config = config or TrackerConfig()
        self.remote_timeout = remote_timeout
        self._clock = clock or (lambda: today_in(self.config.timezone))

    def today(self) -> date:
        return self._clock()

    def _require_user(self) -> str:
        user_id = self.identity.current_user()
        if not user_id:
            raise TransientRemoteError("No signed-in user for cloud operation")
        return user_id

    # Tagged store reads

    async def _read_local_metrics(self) -> StoreResult:
        try:
            entries = await get_json(self.local, keys.DAILY_METRICS)
        except LocalStoreError as e:
            return StoreResult.error(str(e))
        metrics = _parse_metrics(entries or [], "local")
        return StoreResult.hit(metrics) if metrics else StoreResult.empty()

    async def _read_remote_metrics(self, user_id: str) -> StoreResult:
        try:
            documents = await call_remote(self.remote.list_metrics(user_id), self.remote_timeout)
        except StorageError as e:
            return StoreResult.error(str(e))
        metrics = sort_metrics_desc(_parse_metrics(documents, "cloud"))
        return StoreResult.hit(metrics) if metrics else StoreResult.empty()

    async def _read_remote_profile(self, user_id: str) -> StoreResult:
        try:
            document = await call_remote(self.remote.get_profile(user_id), self.remote_timeout)
            return StoreResult.hit(UserProfile.model_validate(document))
        except NotFoundError:
            return StoreResult.empty()
        except (StorageError, ValidationError) as e:
            return StoreResult.error(str(e))

    async def _migration_completed(self, user_id: str) -> bool:
        try:
            return await self.state.is_migration_completed(user_id)
        except LocalStoreError as e:
            # unreadable marker counts as set
            logger.warning(f"Could not read migration marker: {e}")
            return True

    # Local writes

    async def _write_local(self, key: str, value: Any, what: str) -> None:
        """Write to the local store, mapping failures to caller-facing errors."""
        try:
            await set_json(self.local, key, value)
        except QuotaExceededError as e:
            logger.error(f"Failed to save {what} to local storage: {e}")
            raise QuotaExceededError(QUOTA_MESSAGE) from e
        except LocalStoreError as e:
            logger.error(f"Failed to save {what} to local storage: {e}")
            raise PersistenceError(f"Failed to save {what}: {e}") from e

    async def _cache_local(self, key: str, value: Any, what: str) -> None:
        try:
            await set_json(self.local, key, value)
        except LocalStoreError as e:
            logger.warning(f"Failed to cache {what} locally (cloud copy is current): {e}")

    async def _dual_write(self, remote_write: Callable[[str], Any], key: str, value: Any, what: str) -> None:
        """
        Cloud-first write with local cache and local fallback.

        Args:
            remote_write: Given the user id, returns the remote call to await.
            key: Local store key.
            value: JSON-compatible local value.
            what: Description for log messages.
        """
        if await self.policy.should_use_cloud():
            try:
                user_id = self._require_user()
                await call_remote(remote_write(user_id), self.remote_timeout)
                logger.info(f"Saved {what} to cloud")
            except StorageError as e:
                logger.warning(f"Failed to save {what} to cloud, falling back to local: {e}")
                await self._write_local(key, value, what)
                logger.info(f"Saved {what} to local storage (cloud unavailable)")
                return
            await self._cache_local(key, value, what)
        else:
            await self._write_local(key, value, what)
            logger.info(f"Saved {what} to local storage (cloud sync not enabled)")

    # Metrics

    async def get_daily_metrics(self) -> list[DailyMetric]:
        """
        Load all metrics, newest first.

        Returns:
            The cloud collection when sync is on and it has data, otherwise
            the local list. Never raises.
        """
        local = StoreResult.empty()
        try:
            local = await self._read_local_metrics()
            if local.kind is ResultKind.ERROR:
                logger.warning(f"Local metrics unreadable: {local.reason}")

            if not await self.policy.should_use_cloud():
                return list(local.data) if local.is_hit else []

            user_id = self._require_user()
            remote = await self._read_remote_metrics(user_id)
            migrated = remote.kind is ResultKind.EMPTY and await self._migration_completed(user_id)
            action = decide_read(remote.kind, local.kind, migrated)

            if action is ReadAction.USE_REMOTE:
                await self._cache_metrics(remote.data)
                return list(remote.data)

            if action is ReadAction.MIGRATE_THEN_REREAD:
                logger.info("Cloud is empty but local data exists - migrating")
                report = await self.migration.migrate_local_data_to_cloud()
                if report.status not in (MigrationStatus.COMPLETED, MigrationStatus.ALREADY_MIGRATED):
                    logger.warning(f"Migration {report.status.value}, using local data")
                    return list(local.data)
                reread = await self._read_remote_metrics(user_id)
                if reread.is_hit:
                    await self._cache_metrics(reread.data)
                    return list(reread.data)
                logger.warning(f"Cloud still empty after migration ({reread.kind.value}), using local data")
                return list(local.data)

            if action is ReadAction.USE_LOCAL:
                logger.warning(f"Failed to load metrics from cloud, using local cache: {remote.reason}")
                return list(local.data) if local.is_hit else []

            return []

        except Exception as e:
            logger.error(f"Error loading metrics: {e}")
            return list(local.data) if local.is_hit else []

    async def _cache_metrics(self, metrics: list[DailyMetric]) -> None:
        await self._cache_local(keys.DAILY_METRICS, [m.to_document() for m in metrics], "metrics")

    async def save_daily_metric(self, metric: DailyMetric) -> list[DailyMetric]:
        """
        Save a day's metric, replacing any existing entry for that date.

        Args:
            metric: Metric to save; its date defaults to today.

        Returns:
            The full updated list, newest first. An empty list for a
            non-empty input means persistence silently failed.

        Raises:
            QuotaExceededError: If local storage is full and the cloud was
                unavailable or disabled.
            PersistenceError: If every storage target failed otherwise.
        """
        metric_date = metric.date or self.today()
        metric = metric.model_copy(update={"date": metric_date})

        local = await self._read_local_metrics()
        if local.kind is ResultKind.ERROR:
            logger.warning(f"Local metrics unreadable, starting a new list: {local.reason}")
        existing: list[DailyMetric] = local.data if local.is_hit else []

        updated = sort_metrics_desc([m for m in existing if m.date != metric_date] + [metric])
        document = metric.to_document()

        await self._dual_write(
            lambda user_id: self.remote.put_metric(user_id, document),
            keys.DAILY_METRICS,
            [m.to_document() for m in updated],
            f"metric for {metric_date.isoformat()}",
        )
        return updated

    async def get_recent_metrics(self, days: int = 7) -> list[DailyMetric]:
        """Metrics from the last `days` days, oldest first."""
        cutoff = self.today() - timedelta(days=days)
        metrics = await self.get_daily_metrics()
        return sorted(
            (m for m in metrics if m.date is not None and m.date >= cutoff),
            key=lambda m: m.date or date.min,
        )

    async def get_today_metric(self) -> DailyMetric | None:
        """Today's metric, if logged."""
        today = self.today()
        for metric in await self.get_daily_metrics():
            if metric.date == today:
                return metric
        return None

    # Profile

    def _default_profile(self) -> UserProfile:
        return UserProfile.default(self.today(), self.config.default_target_ratio)

    async def _local_profile(self) -> UserProfile | None:
        document = await get_json(self.local, keys.USER_PROFILE)
        return UserProfile.model_validate(document) if document else None

    async def get_user_profile(self) -> UserProfile:
        """
        Load the user profile.

        Uses the cloud copy when sync is on (caching it locally), then the
        local copy. A default profile is created only when no profile exists
        anywhere; if the cloud could not be read, the default is returned
        without being saved. Never raises.
        """
        try:
            if await self.policy.should_use_cloud():
                result = await self._read_remote_profile(self._require_user())
                if result.is_hit:
                    await self._cache_local(keys.USER_PROFILE, result.data.to_document(), "profile")
                    return result.data  # type: ignore[no-any-return]
                if result.kind is ResultKind.ERROR:
                    logger.warning(f"Failed to load profile from cloud, using local: {result.reason}")
                    return await self._local_profile() or self._default_profile()

            profile = await self._local_profile()
            if profile is not None:
                return profile

        except Exception as e:
            logger.error(f"Error loading profile: {e}")
            return self._default_profile()

        profile = self._default_profile()
        try:
            await self.save_user_profile(profile)
            logger.info("Created default profile")
        except StorageError as e:
            logger.warning(f"Could not persist default profile: {e}")
        return profile

    async def save_user_profile(self, profile: UserProfile) -> UserProfile:
        """
        Save the user profile with the same dual-write policy as metrics.

        Raises:
            QuotaExceededError: If local storage is full and the cloud failed.
            PersistenceError: If every storage target failed otherwise.
        """
        document = profile.to_document()
        await self._dual_write(
            lambda user_id: self.remote.put_profile(user_id, document),
            keys.USER_PROFILE,
            document,
            "profile",
        )
        return profile
