"""Tagged results for store reads and the repository's read decision table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ResultKind(str, Enum):
    """Outcome of a single store read."""

    HIT = "hit"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class StoreResult:
    """Result of a store read: Hit(data), Empty or Error(reason)."""

    kind: ResultKind
    data: Any = None
    reason: str | None = None

    @classmethod
    def hit(cls, data: Any) -> StoreResult:
        return cls(ResultKind.HIT, data=data)

    @classmethod
    def empty(cls) -> StoreResult:
        return cls(ResultKind.EMPTY)

    @classmethod
    def error(cls, reason: str) -> StoreResult:
        return cls(ResultKind.ERROR, reason=reason)

    @property
    def is_hit(self) -> bool:
        return self.kind is ResultKind.HIT


class ReadAction(str, Enum):
    """What the repository does with a cloud-enabled metrics read."""

    USE_REMOTE = "use_remote"
    MIGRATE_THEN_REREAD = "migrate_then_reread"
    USE_LOCAL = "use_local"
    RETURN_EMPTY = "return_empty"


# (remote kind, local kind, migration completed) -> action
READ_DECISIONS: dict[tuple[ResultKind, ResultKind, bool], ReadAction] = {
    (ResultKind.HIT, ResultKind.HIT, False): ReadAction.USE_REMOTE,
    (ResultKind.HIT, ResultKind.HIT, True): ReadAction.USE_REMOTE,
    (ResultKind.HIT, ResultKind.EMPTY, False): ReadAction.USE_REMOTE,
    (ResultKind.HIT, ResultKind.EMPTY, True): ReadAction.USE_REMOTE,
    (ResultKind.HIT, ResultKind.ERROR, False): ReadAction.USE_REMOTE,
    (ResultKind.HIT, ResultKind.ERROR, True): ReadAction.USE_REMOTE,
    (ResultKind.EMPTY, ResultKind.HIT, False): ReadAction.MIGRATE_THEN_REREAD,
    (ResultKind.EMPTY, ResultKind.HIT, True): ReadAction.RETURN_EMPTY,
    (ResultKind.EMPTY, ResultKind.EMPTY, False): ReadAction.RETURN_EMPTY,
    (ResultKind.EMPTY, ResultKind.EMPTY, True): ReadAction.RETURN_EMPTY,
    (ResultKind.EMPTY, ResultKind.ERROR, False): ReadAction.RETURN_EMPTY,
    (ResultKind.EMPTY, ResultKind.ERROR, True): ReadAction.RETURN_EMPTY,
    (ResultKind.ERROR, ResultKind.HIT, False): ReadAction.USE_LOCAL,
    (ResultKind.ERROR, ResultKind.HIT, True): ReadAction.USE_LOCAL,
    (ResultKind.ERROR, ResultKind.EMPTY, False): ReadAction.USE_LOCAL,
    (ResultKind.ERROR, ResultKind.EMPTY, True): ReadAction.USE_LOCAL,
    (ResultKind.ERROR, ResultKind.ERROR, False): ReadAction.USE_LOCAL,
    (ResultKind.ERROR, ResultKind.ERROR, True): ReadAction.USE_LOCAL,
}


def decide_read(remote: ResultKind, local: ResultKind, migration_completed: bool) -> ReadAction:
    """Look up the read action for a pair of store results."""
    return READ_DECISIONS[(remote, local, migration_completed)]
