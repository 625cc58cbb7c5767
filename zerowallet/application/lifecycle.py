"""Readiness handle for objects whose construction finishes asynchronously."""

import asyncio
from enum import Enum
from typing import Awaitable, Optional

import structlog

logger = structlog.get_logger(__name__)


class LifecycleState(str, Enum):
    INITIALIZING = "initializing"
    READY = "ready"
    FAULTED = "faulted"


class Readiness:
    """
    Single deferred-completion handle for an initialization step.

    The step starts running as soon as the handle is created, so it must be
    created inside a running event loop. Once settled the outcome never
    changes and waiting again returns immediately.

    With `propagate=True` a failed step re-raises its error to every waiter.
    With `propagate=False` the failure is recorded, the state becomes
    FAULTED and waiters return normally; callers inspect `state` before
    relying on what the step was meant to set up.
    """

    def __init__(self, step: Awaitable[None], name: str, propagate: bool = True):
        self._name = name
        self._propagate = propagate
        self._state = LifecycleState.INITIALIZING
        self._error: Optional[BaseException] = None
        self._task = asyncio.get_running_loop().create_task(self._run(step))

    async def _run(self, step: Awaitable[None]) -> None:
        try:
            await step
        except Exception as e:
            self._state = LifecycleState.FAULTED
            self._error = e
            if self._propagate:
                logger.error(
                    "initialization_failed",
                    name=self._name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
            else:
                logger.warning(
                    "initialization_failed_tolerated",
                    name=self._name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
            return
        self._state = LifecycleState.READY

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def settled(self) -> bool:
        return self._state is not LifecycleState.INITIALIZING

    async def wait(self) -> LifecycleState:
        """
        Wait for the step to settle.

        Cancelling a waiter does not cancel the step itself.

        Raises:
            Exception: The step's own error, when propagating and faulted
        """
        await asyncio.shield(self._task)
        if self._state is LifecycleState.FAULTED and self._propagate:
            raise self._error
        return self._state
