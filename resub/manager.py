# =============================================================================
# Resub -- Subscription Manager
# =============================================================================
#
# Primary public API.  Deduplicates subscribe requests, correlates the
# server's ready/nosub acknowledgments to records, and replays every
# subscription after a reconnection (the protocol cannot resume sessions).
# =============================================================================

from __future__ import annotations

from collections import Counter
from typing import Any, Callable

from ._logging import logger
from .cache import SubscriptionCache
from .constants import EVENT_CONNECTED, EVENT_NOSUB, EVENT_READY
from .errors import ManagerStateError, ProtocolError, SubscriptionError
from .fingerprint import fingerprint
from .subscription import Subscription
from .transport import Transport
from .types import (
    ManagerConfig,
    NosubMessage,
    ReadyMessage,
    SubscriptionState,
    SubscriptionStats,
    UnknownIdPolicy,
)


class SubscriptionManager:
    """Subscription bookkeeping for one connection.

    Args:
        transport: The connection object (see :class:`~resub.transport.Transport`).
        config: Manager options. Defaults to :class:`~resub.types.ManagerConfig`.

    Example::

        manager = SubscriptionManager(ddp)
        manager.init()

        sub = manager.subscribe("feed", 1)
        sub.on("ready", lambda sub: print("ready"))
        sub.on("error", lambda sub, err: print("failed:", err.reason))

        manager.unsubscribe(sub.id)
    """

    def __init__(
        self,
        transport: Transport,
        *,
        config: ManagerConfig | None = None,
    ) -> None:
        self._transport = transport
        self._config = config or ManagerConfig()
        self._cache = SubscriptionCache()
        self._stats = SubscriptionStats()
        self._initialized = False
        self._closed = False

        # Transport event dispatch table
        self._event_handlers: dict[str, Callable[..., None]] = {
            EVENT_READY: self._handle_ready,
            EVENT_NOSUB: self._handle_nosub,
            EVENT_CONNECTED: self._handle_connected,
        }

    # -- Lifecycle ------------------------------------------------------------

    def init(self) -> None:
        """Install the event wiring on the transport.

        Must run exactly once, before the first :meth:`subscribe`.  A closed
        manager cannot be initialized again.
        """
        if self._closed:
            raise ManagerStateError("SubscriptionManager is closed")
        if self._initialized:
            raise ManagerStateError("SubscriptionManager.init() called twice")
        for event, handler in self._event_handlers.items():
            self._transport.on(event, handler)
        self._initialized = True
        logger.debug("Subscription manager wired to transport")

    def close(self) -> None:
        """Remove the event wiring. Cached records are left in place."""
        if not self._initialized:
            return
        for event, handler in self._event_handlers.items():
            self._transport.off(event, handler)
        self._initialized = False
        self._closed = True

    def __enter__(self) -> SubscriptionManager:
        self.init()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # -- Properties -----------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def config(self) -> ManagerConfig:
        return self._config

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return tuple(self._cache)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def get(self, key: str) -> Subscription | None:
        """Look up a cached record by fingerprint or id."""
        return self._cache.get(key)

    # -- Subscribe / Unsubscribe ----------------------------------------------

    def subscribe(self, name: str, *params: Any) -> Subscription:
        """Subscribe to *name* with *params*, reusing an identical request.

        Returns immediately.  Attach ``ready`` / ``error`` handlers to the
        returned record to learn the outcome.

        Args:
            name: Subscription name, e.g. ``"feed"``.
            *params: Subscription arguments (JSON-serializable).

        Returns:
            The cached record for this name + params, new or existing.
        """
        self._ensure_initialized()

        fp = fingerprint(name, params)
        sub = self._cache.get_by_fingerprint(fp)
        if sub is not None:
            self._stats.dedup_hits += 1
            return sub

        sub_id = self._transport.sub(name, list(params))
        # The transport buffers requests while offline.  Remember whether this
        # one may still be in that buffer so replay does not send it twice.
        still_in_queue = not self._transport.is_connected
        sub = Subscription(fp, sub_id, name, params, still_in_queue=still_in_queue)
        self._cache.add(sub)
        self._stats.requests_sent += 1
        logger.debug(
            "Subscribed '%s' %s as %s (queued=%s)", name, params, sub_id, still_in_queue
        )
        return sub

    def unsubscribe(self, id: str) -> None:
        """Ask the server to stop subscription *id*.

        The record stays cached until the server's ``nosub`` arrives.
        """
        self._ensure_initialized()
        self._transport.unsub(id)
        logger.debug("Unsubscribe requested for %s", id)

    # -- Transport event handlers ---------------------------------------------

    def _handle_ready(self, payload: Any = None) -> None:
        try:
            message = ReadyMessage.from_payload(payload)
        except ProtocolError as exc:
            self._protocol_error(exc)
            return

        for sub_id in message.subs:
            sub = self._cache.get_by_id(sub_id)
            if sub is None:
                self._unknown_id(EVENT_READY, sub_id)
                continue
            self._stats.ready_events += 1
            logger.debug("Subscription '%s' (%s) ready", sub.name, sub_id)
            sub._notify_ready()

    def _handle_nosub(self, payload: Any = None) -> None:
        try:
            message = NosubMessage.from_payload(payload)
        except ProtocolError as exc:
            self._protocol_error(exc)
            return

        sub = self._cache.get_by_id(message.id)
        if sub is None:
            self._unknown_id(EVENT_NOSUB, message.id)
            return

        if message.error is not None:
            error = SubscriptionError(
                message.id, message.error, name=sub.name, params=sub.params
            )
            self._stats.errors += 1
            logger.warning(
                "Subscription '%s' (%s) failed: %s", sub.name, sub.id, error.reason
            )
            sub._notify_error(error)
        else:
            sub._notify_stopped()
            logger.debug("Subscription '%s' (%s) stopped", sub.name, sub.id)

        self._cache.delete(message.id)
        self._stats.removed += 1

    def _handle_connected(self, payload: Any = None) -> None:
        if not self._config.replay_on_connect:
            return
        count = len(self._cache)
        if count:
            logger.info("Connection established, replaying %d subscriptions", count)
        self._cache.for_each(self._restart_subscription)

    def _restart_subscription(self, sub: Subscription) -> None:
        if sub.still_in_queue:
            # Never left the transport's buffer; it is flushed on connect
            sub.still_in_queue = False
            sub.state = SubscriptionState.SENT
            self._stats.queued_flushes += 1
            return

        # connected handlers run asynchronously, so the connection may have
        # dropped again by now: re-check status after the resend
        self._transport.sub(sub.name, list(sub.params), sub.id)
        sub.still_in_queue = not self._transport.is_connected
        sub.state = (
            SubscriptionState.QUEUED if sub.still_in_queue else SubscriptionState.SENT
        )
        self._stats.replays += 1
        logger.debug(
            "Replayed '%s' as %s (queued=%s)", sub.name, sub.id, sub.still_in_queue
        )

    # -- Policy helpers -------------------------------------------------------

    def _unknown_id(self, event: str, sub_id: str) -> None:
        self._stats.unknown_ids += 1
        policy = self._config.unknown_id_policy
        if policy == UnknownIdPolicy.RAISE:
            raise ProtocolError(f"{event} for unknown subscription id {sub_id!r}")
        if policy == UnknownIdPolicy.LOG:
            logger.warning("Ignoring %s for unknown subscription id %s", event, sub_id)
        else:
            logger.debug("Ignoring %s for unknown subscription id %s", event, sub_id)

    def _protocol_error(self, exc: ProtocolError) -> None:
        if self._config.unknown_id_policy == UnknownIdPolicy.RAISE:
            raise exc
        logger.warning("Dropping malformed message: %s", exc)

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise ManagerStateError("SubscriptionManager.init() has not been called")

    # -- Stats ----------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Return manager statistics."""
        states = Counter(sub.state.value for sub in self._cache)
        return {
            "initialized": self._initialized,
            "closed": self._closed,
            "cached": len(self._cache),
            "queued": sum(1 for sub in self._cache if sub.still_in_queue),
            "states": dict(states),
            "requests_sent": self._stats.requests_sent,
            "dedup_hits": self._stats.dedup_hits,
            "replays": self._stats.replays,
            "queued_flushes": self._stats.queued_flushes,
            "ready_events": self._stats.ready_events,
            "errors": self._stats.errors,
            "removed": self._stats.removed,
            "unknown_ids": self._stats.unknown_ids,
        }
