# =============================================================================
# Resub -- Type Definitions
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .constants import DEFAULT_REPLAY_ON_CONNECT, FIELD_ERROR, FIELD_ID, FIELD_SUBS
from .errors import ProtocolError


class SubscriptionState(str, Enum):
    """Lifecycle state of a subscription record.

    Typical flow: QUEUED -> SENT -> READY. FAILED and STOPPED are
    terminal (the record has left the cache). A reconnection moves a
    record back to SENT, or to QUEUED if the connection dropped again
    while it was being replayed.
    """

    QUEUED = "queued"
    SENT = "sent"
    READY = "ready"
    FAILED = "failed"
    STOPPED = "stopped"


class UnknownIdPolicy(str, Enum):
    """What to do when ``ready``/``nosub`` references an id not in the cache."""

    IGNORE = "ignore"
    LOG = "log"
    RAISE = "raise"


@dataclass
class ManagerConfig:
    """Configuration for :class:`~resub.manager.SubscriptionManager`.

    Attributes:
        unknown_id_policy: Handling of events for ids with no record.
        replay_on_connect: Re-issue subscriptions on every ``connected``
            event. Only transports that resume sessions should disable it.
    """

    unknown_id_policy: UnknownIdPolicy = UnknownIdPolicy.LOG
    replay_on_connect: bool = DEFAULT_REPLAY_ON_CONNECT


@dataclass
class SubscriptionStats:
    """Counters for a single manager."""

    requests_sent: int = 0
    dedup_hits: int = 0
    replays: int = 0
    queued_flushes: int = 0
    ready_events: int = 0
    errors: int = 0
    removed: int = 0
    unknown_ids: int = 0


@dataclass(frozen=True, slots=True)
class ReadyMessage:
    """A ``ready`` message: the listed subscriptions are now active."""

    subs: tuple[str, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> ReadyMessage:
        subs = payload.get(FIELD_SUBS) if isinstance(payload, dict) else None
        if not isinstance(subs, (list, tuple)):
            raise ProtocolError(f"ready message without a subs list: {payload!r}")
        return cls(subs=tuple(subs))


@dataclass(frozen=True, slots=True)
class NosubMessage:
    """A ``nosub`` message: the subscription ended, with an optional error.

    Any ``error`` value other than ``None`` counts as an error, including
    falsy ones such as ``{}``, ``0``, ``""`` or ``False``.  A truthiness
    check would treat ``{}`` as an error but ``0`` as a clean stop; DDP
    servers only send error objects, so the two agree in practice.
    """

    id: str
    error: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> NosubMessage:
        sub_id = payload.get(FIELD_ID) if isinstance(payload, dict) else None
        if sub_id is None:
            raise ProtocolError(f"nosub message without an id: {payload!r}")
        return cls(id=sub_id, error=payload.get(FIELD_ERROR))
