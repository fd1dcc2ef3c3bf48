"""Shared fixtures for the test suite."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any

import pytest

from keto_tracker.domain.metrics import DailyMetric
from keto_tracker.infrastructure.identity import LocalIdentityProvider
from keto_tracker.infrastructure.local_store import keys
from keto_tracker.infrastructure.local_store.store import InMemoryLocalStore, set_json
from keto_tracker.infrastructure.remote_store.base import InMemoryRemoteStore
from keto_tracker.services.container import TrackerServices, build_services
from keto_tracker.utils.exceptions import LocalStoreError, TransientRemoteError
from keto_tracker.utils.parameters import AppConfig, RemoteConfig

TODAY = date(2024, 1, 15)
USER_ID = "user-123"


# ---------------------------------------------------------------------------
# Stores with switchable failures (no real disk or network needed)
# ---------------------------------------------------------------------------

class FlakyRemoteStore(InMemoryRemoteStore):
    """In-memory remote store that can be told to fail or stall."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False
        self.fail_dates: set[str] = set()
        self.read_delay: float | None = None
        self.write_delay: float | None = None
        self.put_metric_calls = 0

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        if self.fail_reads:
            raise TransientRemoteError("simulated read outage")
        return await super().get_profile(user_id)

    async def put_profile(self, user_id: str, profile: dict[str, Any]) -> None:
        if self.fail_writes:
            raise TransientRemoteError("simulated write outage")
        await super().put_profile(user_id, profile)

    async def put_metric(self, user_id: str, metric: dict[str, Any]) -> None:
        self.put_metric_calls += 1
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes or metric.get("date") in self.fail_dates:
            raise TransientRemoteError("simulated write outage")
        await super().put_metric(user_id, metric)

    async def list_metrics(self, user_id: str) -> list[dict[str, Any]]:
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if self.fail_reads:
            raise TransientRemoteError("simulated read outage")
        return await super().list_metrics(user_id)


class FlakyLocalStore(InMemoryLocalStore):
    """In-memory local store whose reads or writes can be made to fail."""

    def __init__(self, max_bytes: int | None = None) -> None:
        super().__init__(max_bytes)
        self.read_error: LocalStoreError | None = None
        self.write_error: LocalStoreError | None = None

    async def get(self, key: str) -> str | None:
        if self.read_error is not None:
            raise self.read_error
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if self.write_error is not None:
            raise self.write_error
        await super().set(key, value)


def make_services(
    local: FlakyLocalStore,
    remote: FlakyRemoteStore,
    user_id: str | None = USER_ID,
    timeout_seconds: float = 10.0,
) -> TrackerServices:
    config = AppConfig(remote=RemoteConfig(timeout_seconds=timeout_seconds))
    return build_services(
        config,
        LocalIdentityProvider(user_id),
        local=local,
        remote=remote,
        clock=lambda: TODAY,
    )


def make_metric(day: date, glucose: float = 4.8, ketones: float = 1.2, **extra: Any) -> DailyMetric:
    return DailyMetric(date=day, glucose=glucose, ketones=ketones, **extra)


async def seed_local_metrics(local: InMemoryLocalStore, metrics: list[DailyMetric]) -> None:
    await set_json(local, keys.DAILY_METRICS, [m.to_document() for m in metrics])


@pytest.fixture
def local() -> FlakyLocalStore:
    return FlakyLocalStore()


@pytest.fixture
def remote() -> FlakyRemoteStore:
    return FlakyRemoteStore()


@pytest.fixture
def services(local: FlakyLocalStore, remote: FlakyRemoteStore) -> TrackerServices:
    """Signed-in services with cloud sync still off."""
    return make_services(local, remote)


@pytest.fixture
def anonymous_services(local: FlakyLocalStore, remote: FlakyRemoteStore) -> TrackerServices:
    return make_services(local, remote, user_id=None)
