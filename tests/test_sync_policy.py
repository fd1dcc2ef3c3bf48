"""Tests for the cloud sync switch and identity events."""

import asyncio

import pytest

from keto_tracker.infrastructure.local_store import keys
from keto_tracker.services.migration import MigrationStatus
from keto_tracker.utils.exceptions import LocalStoreError
from tests.conftest import TODAY, USER_ID, make_metric, seed_local_metrics


@pytest.mark.asyncio
async def test_cloud_requires_user_and_flag(services, anonymous_services) -> None:
    """Test the cloud is used only when signed in with the flag on."""
    if await services.policy.should_use_cloud():
        raise AssertionError("Flag off: expected local")

    await services.state.set_cloud_sync_enabled(True)
    if not await services.policy.should_use_cloud():
        raise AssertionError("Signed in with flag on: expected cloud")

    await anonymous_services.state.set_cloud_sync_enabled(True)
    if await anonymous_services.policy.should_use_cloud():
        raise AssertionError("Signed out: expected local")


@pytest.mark.asyncio
async def test_unreadable_flag_means_local(services, local) -> None:
    """Test a storage failure reading the flag yields local, not an error."""
    local.read_error = LocalStoreError("unreadable")

    if await services.policy.should_use_cloud():
        raise AssertionError("Expected local when the flag cannot be read")


@pytest.mark.asyncio
async def test_enabling_schedules_migration(services, local, remote) -> None:
    """Test the off-to-on transition migrates existing local data."""
    await seed_local_metrics(local, [make_metric(TODAY)])

    await services.policy.set_cloud_sync(True)
    report = await services.policy.wait_for_migration()

    if report is None or report.status is not MigrationStatus.COMPLETED:
        raise AssertionError(f"Expected completed migration, got {report}")
    if TODAY.isoformat() not in remote.metrics[USER_ID]:
        raise AssertionError("Local metric should be in the cloud")
    if await local.get(keys.USE_CLOUD_SYNC) != "true":
        raise AssertionError("Flag should be persisted as true")


@pytest.mark.asyncio
async def test_enabling_twice_schedules_once(services) -> None:
    """Test setting the flag when already on starts no new migration."""
    await services.policy.set_cloud_sync(True)
    first_task = services.policy.migration_task
    await services.policy.wait_for_migration()

    await services.policy.set_cloud_sync(True)

    if services.policy.migration_task is not first_task:
        raise AssertionError("No second migration expected")


@pytest.mark.asyncio
async def test_migration_failure_does_not_reach_caller(services, local, remote) -> None:
    """Test enabling sync succeeds even when the migration cannot finish."""
    await seed_local_metrics(local, [make_metric(TODAY)])
    remote.fail_writes = True

    await services.policy.set_cloud_sync(True)
    report = await services.policy.wait_for_migration()

    if report is None or report.status is not MigrationStatus.PARTIAL:
        raise AssertionError(f"Expected partial migration, got {report}")
    if not await services.state.is_cloud_sync_enabled():
        raise AssertionError("Flag should be on despite the failed migration")
    if await services.state.is_migration_completed(USER_ID):
        raise AssertionError("Marker must stay unset")


@pytest.mark.asyncio
async def test_flag_write_failure_propagates(services, local) -> None:
    """Test a failure to persist the flag itself is raised."""
    local.write_error = LocalStoreError("read-only")

    with pytest.raises(LocalStoreError):
        await services.policy.set_cloud_sync(True)

    if services.policy.migration_task is not None:
        raise AssertionError("No migration should start when the flag was not saved")


@pytest.mark.asyncio
async def test_sign_in_enables_and_migrates(anonymous_services, local, remote) -> None:
    """Test a sign-in event turns sync on and migrates for the new user."""
    await seed_local_metrics(local, [make_metric(TODAY)])

    await anonymous_services.identity.sign_in("new-user")
    report = await anonymous_services.policy.wait_for_migration()

    if not await anonymous_services.policy.should_use_cloud():
        raise AssertionError("Sync should be on after sign-in")
    if report is None or report.user_id != "new-user":
        raise AssertionError(f"Expected migration for new-user, got {report}")
    if TODAY.isoformat() not in remote.metrics["new-user"]:
        raise AssertionError("Local metric should be in the new user's cloud store")


@pytest.mark.asyncio
async def test_sign_in_with_sync_already_on_migrates_new_user(services, local, remote) -> None:
    """Test switching accounts while sync is on still migrates for the new account."""
    await services.state.set_cloud_sync_enabled(True)
    await services.state.mark_migration_completed(USER_ID)
    await seed_local_metrics(local, [make_metric(TODAY)])

    await services.identity.sign_in("other-user")
    report = await services.policy.wait_for_migration()

    if report is None or report.status is not MigrationStatus.COMPLETED:
        raise AssertionError(f"Expected completed migration, got {report}")
    if "other-user" not in remote.metrics:
        raise AssertionError("Expected data for other-user in the cloud")


@pytest.mark.asyncio
async def test_sign_out_disables_sync(services) -> None:
    """Test a sign-out event turns sync off."""
    await services.state.set_cloud_sync_enabled(True)

    await services.identity.sign_out()

    if await services.state.is_cloud_sync_enabled():
        raise AssertionError("Flag should be off after sign-out")
    if await services.policy.should_use_cloud():
        raise AssertionError("Expected local after sign-out")


@pytest.mark.asyncio
async def test_cancel_without_migration(services) -> None:
    """Test cancelling with nothing running reports False."""
    if services.policy.cancel_migration():
        raise AssertionError("Nothing to cancel")


@pytest.mark.asyncio
async def test_cancel_running_migration(services, local, remote) -> None:
    """Test a running background migration can be cancelled."""
    await seed_local_metrics(local, [make_metric(TODAY)])
    remote.write_delay = 5.0

    await services.policy.set_cloud_sync(True)

    if not services.policy.cancel_migration():
        raise AssertionError("Expected the running migration to be cancelled")
    with pytest.raises(asyncio.CancelledError):
        await services.policy.wait_for_migration()
