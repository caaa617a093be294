# =============================================================================
# Resub -- Error Types
# =============================================================================

from __future__ import annotations

from typing import Any

from .constants import FIELD_ERROR, FIELD_MESSAGE, FIELD_REASON


class ResubError(Exception):
    """Base exception for all resub errors."""


class SubscriptionError(ResubError):
    """The server rejected or terminated a subscription with an error.

    Delivered to the record's ``error`` observers; never raised from
    :meth:`SubscriptionManager.subscribe` or ``unsubscribe``.

    Attributes:
        id: Server-correlation id of the subscription.
        name: Subscription name.
        params: Subscription parameters.
        payload: Raw error object from the ``nosub`` message.
        code: The error's ``error`` field (e.g. ``404``, ``"not-found"``).
        reason: Human readable reason, if the server sent one.
    """

    def __init__(
        self,
        id: str,
        payload: Any,
        *,
        name: str | None = None,
        params: tuple[Any, ...] = (),
    ) -> None:
        self.id = id
        self.name = name
        self.params = params
        self.payload = payload
        if isinstance(payload, dict):
            self.code = payload.get(FIELD_ERROR)
            self.reason = payload.get(FIELD_REASON) or payload.get(FIELD_MESSAGE)
        else:
            self.code = None
            self.reason = str(payload) if payload is not None else None
        detail = self.reason or self.code or "unknown error"
        super().__init__(f"Subscription '{name}' ({id}) failed: {detail}")


class SubscriptionTimeoutError(ResubError):
    """Timed out waiting for a subscription to become ready."""


class ProtocolError(ResubError):
    """Malformed transport message, or an event for an unknown id."""


class ManagerStateError(ResubError):
    """Manager used before ``init()`` or initialized twice."""
