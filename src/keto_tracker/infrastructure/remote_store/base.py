"""
Remote document store contract and in-memory implementation.

A per-user store holding one profile document and a collection of metric
documents keyed by date string.
"""

import asyncio
import copy
from datetime import datetime, timezone
from typing import Any, Awaitable, Protocol, TypeVar

from keto_tracker.utils.exceptions import NotFoundError, TransientRemoteError

T = TypeVar("T")


class RemoteStore(Protocol):
    """
    Async contract for the cloud document store.

    All calls are fallible network I/O and raise TransientRemoteError on
    failure. get_profile raises NotFoundError when the user has no profile.
    """

    async def get_profile(self, user_id: str) -> dict[str, Any]: ...

    async def put_profile(self, user_id: str, profile: dict[str, Any]) -> None: ...

    async def put_metric(self, user_id: str, metric: dict[str, Any]) -> None: ...

    async def list_metrics(self, user_id: str) -> list[dict[str, Any]]: ...


def stamp(document: dict[str, Any]) -> dict[str, Any]:
    """Copy a document and record when it was written."""
    return {**document, "updatedAt": datetime.now(timezone.utc).isoformat()}


class InMemoryRemoteStore:
    """
    Dictionary-backed remote store.

    Profiles merge on write; metrics overwrite by date, matching the
    semantics of the hosted document store.
    """

    def __init__(self) -> None:
        self.profiles: dict[str, dict[str, Any]] = {}
        self.metrics: dict[str, dict[str, dict[str, Any]]] = {}

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        profile = self.profiles.get(user_id)
        if profile is None:
            raise NotFoundError(f"No profile for user {user_id}")
        return copy.deepcopy(profile)

    async def put_profile(self, user_id: str, profile: dict[str, Any]) -> None:
        merged = {**self.profiles.get(user_id, {}), **stamp(profile)}
        self.profiles[user_id] = merged

    async def put_metric(self, user_id: str, metric: dict[str, Any]) -> None:
        metric_date = metric.get("date")
        if not metric_date:
            raise TransientRemoteError("Metric document has no date key")
        self.metrics.setdefault(user_id, {})[str(metric_date)] = stamp(metric)

    async def list_metrics(self, user_id: str) -> list[dict[str, Any]]:
        documents = self.metrics.get(user_id, {})
        return [copy.deepcopy(documents[key]) for key in sorted(documents, reverse=True)]


async def call_remote(awaitable: Awaitable[T], timeout: float) -> T:
    """
    Await a remote store call with a deadline.

    Raises:
        TransientRemoteError: If the call does not finish within timeout seconds.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        raise TransientRemoteError(f"Remote call timed out after {timeout}s") from e
