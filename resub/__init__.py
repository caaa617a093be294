"""Client-side subscription bookkeeping for reconnecting pub/sub connections.

Usage::

    from resub import SubscriptionManager

    manager = SubscriptionManager(connection)
    manager.init()

    sub = manager.subscribe("messages", "room-1")

    @sub.on("ready")
    def handle_ready(sub):
        print("subscribed", sub.id)

    @sub.on("error")
    def handle_error(sub, error):
        print("rejected:", error.reason)

Identical ``subscribe`` calls share one record and one server request.
Every subscription is re-issued when ``connection`` reports ``connected``.
"""

from ._version import __version__
from .cache import SubscriptionCache
from .errors import (
    ManagerStateError,
    ProtocolError,
    ResubError,
    SubscriptionError,
    SubscriptionTimeoutError,
)
from .fingerprint import fingerprint
from .manager import SubscriptionManager
from .subscription import Subscription
from .transport import Transport
from .types import (
    ManagerConfig,
    SubscriptionState,
    SubscriptionStats,
    UnknownIdPolicy,
)

__all__ = [
    "__version__",
    "fingerprint",
    "Subscription",
    "SubscriptionCache",
    "SubscriptionManager",
    "Transport",
    "ManagerConfig",
    "SubscriptionState",
    "SubscriptionStats",
    "UnknownIdPolicy",
    "ResubError",
    "SubscriptionError",
    "SubscriptionTimeoutError",
    "ProtocolError",
    "ManagerStateError",
]
