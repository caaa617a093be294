"""Shared fixtures for resub tests."""

from collections import defaultdict

import pytest

from resub import SubscriptionManager


class StubTransport:
    """In-memory transport: records requests, emits events synchronously.

    Set ``drop_on_send`` to simulate the connection dropping between a
    send and the status check that follows it.
    """

    def __init__(self, connected: bool = True) -> None:
        self.connected = connected
        self.drop_on_send = False
        self.sub_calls: list[tuple[str, list, str]] = []
        self.unsub_calls: list[str] = []
        self._handlers = defaultdict(list)
        self._counter = 0

    @property
    def is_connected(self) -> bool:
        return self.connected

    def sub(self, name, params, id=None):
        if id is None:
            self._counter += 1
            id = f"sub-{self._counter}"
        self.sub_calls.append((name, list(params), id))
        if self.drop_on_send:
            self.connected = False
        return id

    def unsub(self, id):
        self.unsub_calls.append(id)

    def on(self, event, handler):
        self._handlers[event].append(handler)

    def off(self, event, handler):
        if handler in self._handlers[event]:
            self._handlers[event].remove(handler)

    def listener_count(self, event):
        return len(self._handlers[event])

    # -- Server side ----------------------------------------------------------

    def emit(self, event, *args):
        for handler in list(self._handlers[event]):
            handler(*args)

    def ready(self, *ids):
        self.emit("ready", {"msg": "ready", "subs": list(ids)})

    def nosub(self, id, error=None):
        message = {"msg": "nosub", "id": id}
        if error is not None:
            message["error"] = error
        self.emit("nosub", message)

    def reconnect(self):
        self.connected = True
        self.emit("connected")


@pytest.fixture
def make_transport():
    return StubTransport


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def offline_transport():
    return StubTransport(connected=False)


@pytest.fixture
def manager(transport):
    m = SubscriptionManager(transport)
    m.init()
    return m


@pytest.fixture
def offline_manager(offline_transport):
    m = SubscriptionManager(offline_transport)
    m.init()
    return m
