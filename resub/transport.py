# =============================================================================
# Resub -- Transport Interface
# =============================================================================
#
# What the manager needs from the connection object.  Connecting,
# reconnecting, buffering while offline and framing all live behind it.
# =============================================================================

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Callable, Protocol, runtime_checkable

# Handlers get the decoded message dict; ``connected`` may pass nothing
TransportHandler = Callable[..., Any]


@runtime_checkable
class Transport(Protocol):
    """A persistent, possibly reconnecting, pub/sub connection.

    ``sub`` must return the correlation id synchronously, even while
    disconnected (the request is then buffered and flushed on connect).
    Events: ``ready`` (``{"subs": [id, ...]}``), ``nosub``
    (``{"id": id, "error"?: {...}}``) and ``connected``.
    """

    @property
    def is_connected(self) -> bool: ...

    def sub(self, name: str, params: Sequence[Any], id: str | None = None) -> str: ...

    def unsub(self, id: str) -> None: ...

    def on(self, event: str, handler: TransportHandler) -> Any: ...

    def off(self, event: str, handler: TransportHandler) -> Any: ...
