"""Listener registry for post-tick state broadcasts.

Each listener is dispatched on its own: plain callables in the event loop's
default executor and coroutine functions as their own task. A listener that
raises is logged and never affects the engine or the other listeners.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from models.state import EngineState

logger = logging.getLogger(__name__)

Listener = Callable[[EngineState], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


class ListenerRegistry:
    """Owns the set of subscribers and delivers state to each independently."""

    def __init__(self) -> None:
        self._listeners: dict[int, Listener] = {}
        self._next_token = 0
        self._pending: set[asyncio.Future[Any]] = set()

    def add(self, listener: Listener) -> Unsubscribe:
        """Register *listener*; the returned callable removes it (idempotent)."""
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener

        def _unsubscribe() -> None:
            self._listeners.pop(token, None)

        return _unsubscribe

    def __len__(self) -> int:
        return len(self._listeners)

    def broadcast(self, state: EngineState) -> None:
        """Schedule delivery of *state* to every registered listener and return immediately.

        Each listener receives its own deep copy, so one subscriber cannot
        alter what another sees. Plain callables run in the loop's default
        executor; a slow one never holds up the event loop.
        """
        loop = asyncio.get_running_loop()
        for token, listener in list(self._listeners.items()):
            payload = state.model_copy(deep=True)
            if inspect.iscoroutinefunction(listener):
                self._track(loop.create_task(self._deliver_async(token, listener, payload)))
            else:
                future = loop.run_in_executor(None, listener, payload)
                future.add_done_callback(lambda f, token=token: self._on_sync_done(token, f))
                self._track(future)

    async def drain(self) -> None:
        """Wait for outstanding deliveries (used on shutdown and in tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
            # done callbacks may have queued follow-up tasks
            await asyncio.sleep(0)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _track(self, future: asyncio.Future) -> None:
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    def _on_sync_done(self, token: int, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Listener %d failed while handling a state update: %s", token, exc, exc_info=exc
            )
            return
        result = future.result()
        if inspect.isawaitable(result):
            self._track(asyncio.ensure_future(self._await_result(token, result)))

    @staticmethod
    async def _deliver_async(token: int, listener: Listener, state: EngineState) -> None:
        try:
            await listener(state)  # type: ignore[misc]
        except Exception:
            logger.exception("Listener %d failed while handling a state update.", token)

    @staticmethod
    async def _await_result(token: int, result: Awaitable[Any]) -> None:
        try:
            await result
        except Exception:
            logger.exception("Listener %d failed while handling a state update.", token)
