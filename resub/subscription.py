# =============================================================================
# Resub -- Subscription Record
# =============================================================================
#
# One record per distinct (name, params).  The record is observable: callers
# attach ``ready`` / ``error`` handlers and are notified when the server
# acknowledges the subscription.
# =============================================================================

from __future__ import annotations

import asyncio

from collections import defaultdict
from typing import Any, Callable

from ._logging import logger
from .constants import OBSERVE_ERROR, OBSERVE_READY, OBSERVE_STOPPED, OBSERVER_KINDS
from .errors import SubscriptionError, SubscriptionTimeoutError
from .types import SubscriptionState

# Handlers may be sync or async
Handler = Callable[..., Any]


class Subscription:
    """A subscription request and its notification channel.

    ``fingerprint``, ``id``, ``name`` and ``params`` are fixed at creation.
    ``still_in_queue`` and ``state`` are owned by the manager.

    Example::

        sub = manager.subscribe("feed", 1)

        @sub.on("ready")
        def handle(sub):
            print("ready", sub.id)
    """

    def __init__(
        self,
        fingerprint: str,
        id: str,
        name: str,
        params: tuple[Any, ...],
        *,
        still_in_queue: bool = False,
    ) -> None:
        self._fingerprint = fingerprint
        self._id = id
        self._name = name
        self._params = tuple(params)
        self.still_in_queue = still_in_queue
        self.state = (
            SubscriptionState.QUEUED if still_in_queue else SubscriptionState.SENT
        )
        self.error: SubscriptionError | None = None

        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._once: set[tuple[str, Handler]] = set()
        self._background_tasks: set[asyncio.Task[Any]] = set()

    def __repr__(self) -> str:
        return (
            f"Subscription(id={self._id!r}, name={self._name!r}, "
            f"params={self._params!r}, state={self.state.value})"
        )

    # -- Identity -------------------------------------------------------------

    @property
    def fingerprint(self) -> str:
        return self._fingerprint

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def params(self) -> tuple[Any, ...]:
        return self._params

    @property
    def is_ready(self) -> bool:
        return self.state == SubscriptionState.READY

    # -- Observers ------------------------------------------------------------

    def on(self, kind: str, fn: Handler | None = None) -> Any:
        """Register a handler for ``"ready"``, ``"error"`` or ``"stopped"``.

        ``ready`` and ``stopped`` handlers receive the record; ``error``
        handlers receive the record and the
        :class:`~resub.errors.SubscriptionError`.
        Without *fn*, returns a decorator.
        """
        _check_kind(kind)
        if fn is None:

            def decorator(f: Handler) -> Handler:
                self._handlers[kind].append(f)
                return f

            return decorator
        self._handlers[kind].append(fn)
        return fn

    def once(self, kind: str, fn: Handler) -> Handler:
        """Register a handler that is removed after its first call."""
        self.on(kind, fn)
        self._once.add((kind, fn))
        return fn

    def off(self, kind: str, fn: Handler) -> None:
        """Remove a specific handler."""
        handlers = self._handlers.get(kind, [])
        if fn in handlers:
            handlers.remove(fn)
        self._once.discard((kind, fn))

    def listener_count(self, kind: str) -> int:
        return len(self._handlers.get(kind, []))

    # -- Notification (manager only) ------------------------------------------

    def _notify_ready(self) -> None:
        self.state = SubscriptionState.READY
        self._emit(OBSERVE_READY, self)

    def _notify_error(self, error: SubscriptionError) -> None:
        self.state = SubscriptionState.FAILED
        self.error = error
        self._emit(OBSERVE_ERROR, self, error)

    def _notify_stopped(self) -> None:
        self.state = SubscriptionState.STOPPED
        self._emit(OBSERVE_STOPPED, self)

    def _stopped_error(self) -> SubscriptionError:
        return SubscriptionError(
            self._id,
            {"error": "stopped", "reason": "subscription stopped by the server"},
            name=self._name,
            params=self._params,
        )

    def _emit(self, kind: str, *args: Any) -> None:
        # Copy: handlers may call off()/once() while we iterate
        for handler in list(self._handlers.get(kind, [])):
            if (kind, handler) in self._once:
                self.off(kind, handler)
            try:
                result = handler(*args)
                if asyncio.iscoroutine(result):
                    self._fire_task(result)
            except Exception as exc:
                logger.error(
                    "Subscription '%s' (%s) %s handler error: %s",
                    self._name,
                    self._id,
                    kind,
                    exc,
                )

    def _fire_task(self, coro: Any) -> None:
        """Schedule a coroutine with a strong reference to prevent GC."""
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning(
                "No running event loop, async handler for '%s' dropped", self._name
            )
            return
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # -- Awaiting -------------------------------------------------------------

    async def wait_ready(self, timeout: float | None = None) -> Subscription:
        """Wait until the server reports the subscription ready.

        Args:
            timeout: Seconds to wait, ``None`` to wait forever.

        Returns:
            This record.

        Raises:
            SubscriptionError: The server rejected or stopped the subscription.
            SubscriptionTimeoutError: No answer within *timeout*.
        """
        if self.state == SubscriptionState.READY:
            return self
        if self.state == SubscriptionState.FAILED and self.error is not None:
            raise self.error
        if self.state == SubscriptionState.STOPPED:
            raise self._stopped_error()

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Subscription] = loop.create_future()

        def on_ready(sub: Subscription) -> None:
            if not future.done():
                future.set_result(sub)

        def on_error(sub: Subscription, error: SubscriptionError) -> None:
            if not future.done():
                future.set_exception(error)

        def on_stopped(sub: Subscription) -> None:
            if not future.done():
                future.set_exception(self._stopped_error())

        self.on(OBSERVE_READY, on_ready)
        self.on(OBSERVE_ERROR, on_error)
        self.on(OBSERVE_STOPPED, on_stopped)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise SubscriptionTimeoutError(
                f"Subscription '{self._name}' ({self._id}) not ready after {timeout}s"
            ) from None
        finally:
            self.off(OBSERVE_READY, on_ready)
            self.off(OBSERVE_ERROR, on_error)
            self.off(OBSERVE_STOPPED, on_stopped)


def _check_kind(kind: str) -> None:
    if kind not in OBSERVER_KINDS:
        raise ValueError(
            f"Unknown observer kind {kind!r}, expected one of {sorted(OBSERVER_KINDS)}"
        )
