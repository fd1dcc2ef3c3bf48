"""
Identity provider contract.

The tracker does not authenticate users itself; it only needs to know who
is signed in and to hear about sign-in and sign-out.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Protocol

logger = logging.getLogger(__name__)


class AuthEventType(str, Enum):
    """Kind of identity change."""

    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class AuthEvent:
    """A sign-in or sign-out notification."""

    type: AuthEventType
    user_id: str | None


AuthListener = Callable[[AuthEvent], Awaitable[None]]


class IdentityProvider(Protocol):
    """Current user signal plus a subscribable event stream."""

    def current_user(self) -> str | None: ...

    def subscribe(self, listener: AuthListener) -> Callable[[], None]: ...


class LocalIdentityProvider:
    """
    In-process identity provider.

    Holds the signed-in user id and notifies listeners, in subscription
    order, when it changes. Used by the CLI and tests; an application with a
    real auth service adapts that service to the same two methods.
    """

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id
        self._listeners: list[AuthListener] = []

    def current_user(self) -> str | None:
        return self._user_id

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _publish(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            await listener(event)

    async def sign_in(self, user_id: str) -> None:
        """Sign a user in and notify listeners."""
        if not user_id:
            raise ValueError("user_id cannot be empty")
        self._user_id = user_id
        logger.info(f"User {user_id} signed in")
        await self._publish(AuthEvent(AuthEventType.SIGNED_IN, user_id))

    async def sign_out(self) -> None:
        """Sign the current user out and notify listeners."""
        previous = self._user_id
        self._user_id = None
        logger.info(f"User {previous} signed out")
        await self._publish(AuthEvent(AuthEventType.SIGNED_OUT, previous))
