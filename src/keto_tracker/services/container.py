"""
Service wiring.

Builds the stores and services for one identity from the application
configuration.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable

from keto_tracker.infrastructure.drive_client.client import DriveRemoteStore
from keto_tracker.infrastructure.identity import IdentityProvider
from keto_tracker.infrastructure.local_store.store import JsonFileLocalStore, LocalStore
from keto_tracker.infrastructure.remote_store.base import InMemoryRemoteStore, RemoteStore
from keto_tracker.services.analytics import AnalyticsService
from keto_tracker.services.migration import MigrationEngine
from keto_tracker.services.phase_engine import PhaseEngine
from keto_tracker.services.preferences import PreferencesService
from keto_tracker.services.repository import MetricRepository
from keto_tracker.services.sync_policy import SyncPolicy
from keto_tracker.services.sync_state import SyncState
from keto_tracker.utils.parameters import AppConfig, RemoteConfig

logger = logging.getLogger(__name__)


@dataclass
class TrackerServices:
    """Everything a front end needs, sharing one set of stores."""

    identity: IdentityProvider
    local: LocalStore
    remote: RemoteStore
    state: SyncState
    migration: MigrationEngine
    policy: SyncPolicy
    repository: MetricRepository
    phases: PhaseEngine
    preferences: PreferencesService
    analytics: AnalyticsService


def build_remote_store(config: RemoteConfig) -> RemoteStore:
    """Create the configured remote store backend."""
    if config.backend == "drive" and config.drive is not None:
        return DriveRemoteStore(config.drive)

    logger.info("Using in-memory remote store")
    return InMemoryRemoteStore()


def build_services(
    config: AppConfig,
    identity: IdentityProvider,
    local: LocalStore | None = None,
    remote: RemoteStore | None = None,
    clock: Callable[[], date] | None = None,
) -> TrackerServices:
    """
    Wire stores and services together.

    Args:
        config: Application configuration.
        identity: Identity provider for the session.
        local: Local store override; defaults to the configured JSON store.
        remote: Remote store override; defaults to the configured backend.
        clock: Calendar-day source override.

    Returns:
        The wired services. The sync policy is attached to identity events.
    """
    local = local or JsonFileLocalStore(config.local_store)
    remote = remote or build_remote_store(config.remote)
    timeout = config.remote.timeout_seconds

    state = SyncState(local)
    migration = MigrationEngine(local, remote, identity, state, remote_timeout=timeout)
    policy = SyncPolicy(identity, state, migration)
    policy.attach()
    repository = MetricRepository(
        local,
        remote,
        identity,
        state,
        policy,
        migration,
        config=config.tracker,
        remote_timeout=timeout,
        clock=clock,
    )

    return TrackerServices(
        identity=identity,
        local=local,
        remote=remote,
        state=state,
        migration=migration,
        policy=policy,
        repository=repository,
        phases=PhaseEngine(repository),
        preferences=PreferencesService(local),
        analytics=AnalyticsService(),
    )
