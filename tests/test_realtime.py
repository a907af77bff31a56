import json
import logging
import time

import pytest
import redis

from shop_admin.extensions import socketio
from shop_admin.realtime import RealtimeEvents, RedisService, realtime_events
from shop_admin.realtime.admin_gateway import NAMESPACE
from shop_admin.realtime.redis_service import parse_payload

from .conftest import ADMIN, login


class FakeRedis:
    def __init__(self, fail=False):
        self.fail = fail
        self.published = []

    def publish(self, channel, message):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        self.published.append((channel, message))
        return 1

    def close(self):
        pass


class FakePubSub:
    """Hands out queued messages, then stops the owning service."""

    def __init__(self, service, messages):
        self.service = service
        self.messages = list(messages)
        self.closed = False

    def subscribe(self, channel):
        self.channel = channel

    def get_message(self, timeout=None):
        if not self.messages:
            self.service._stop.set()
            return None
        return self.messages.pop(0)

    def close(self):
        self.closed = True


class DroppingPubSub(FakePubSub):
    """Loses the connection on the first read."""

    def get_message(self, timeout=None):
        raise redis.ConnectionError("connection reset by peer")


class IdlePubSub(FakePubSub):
    def get_message(self, timeout=None):
        time.sleep(0.01)
        return None


class FakeSubscriberClient:
    """`pubsub()` hands out the queued pubsubs; exceptions are raised instead."""

    def __init__(self, pubsubs):
        self.pubsubs = list(pubsubs)

    def pubsub(self, ignore_subscribe_messages=False):
        item = self.pubsubs.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _message(event, data):
    return {"type": "message", "channel": "admin:events", "data": json.dumps({"event": event, "data": data})}


@pytest.fixture
def subscriber_client(monkeypatch):
    def _install(pubsubs):
        client = FakeSubscriberClient(pubsubs)
        monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, url, **kw: client))
        return client

    return _install


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, url, **kw: client))
    return client


# ── In-process relay ─────────────────────────────────────────────────────────

def test_emit_dispatches_in_process_without_redis(app, events):
    realtime_events.emit("orders.created", {"orderNumber": "ZYT-1"})
    assert events == [("orders.created", {"orderNumber": "ZYT-1"})]


@pytest.mark.parametrize("payload", [
    {"event": 1, "data": {}},
    {"event": "orders.created", "data": ["not", "a", "dict"]},
    {"event": "orders.created"},
    "orders.created",
    None,
])
def test_malformed_payloads_are_ignored(app, events, payload):
    realtime_events.handle_payload(payload)
    assert events == []


def test_unsubscribe_stops_delivery(app):
    received = []
    unsubscribe = realtime_events.on_event(lambda event, data: received.append(event))
    realtime_events.emit("a", {})
    unsubscribe()
    realtime_events.emit("b", {})
    assert received == ["a"]


def test_failing_listener_does_not_block_others(app, events, caplog):
    def broken(event, data):
        raise RuntimeError("boom")

    unsubscribe = realtime_events.on_event(broken)
    try:
        with caplog.at_level(logging.ERROR):
            realtime_events.emit("settings.updated", {"settings": {}})
    finally:
        unsubscribe()

    assert events == [("settings.updated", {"settings": {}})]
    assert "Realtime listener failed for settings.updated" in caplog.text


# ── Redis ────────────────────────────────────────────────────────────────────

def test_emit_publishes_to_redis_when_enabled(fake_redis):
    relay = RealtimeEvents(RedisService("redis://localhost:6379"))
    received = []
    relay.on_event(lambda event, data: received.append(event))

    relay.emit("catalog.product.updated", {"product": {"sku": "OIL-1L"}})

    assert received == []
    ((channel, message),) = fake_redis.published
    assert channel == "admin:events"
    assert json.loads(message) == {"event": "catalog.product.updated", "data": {"product": {"sku": "OIL-1L"}}}


def test_publish_failure_is_logged_and_swallowed(monkeypatch, caplog):
    monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, url, **kw: FakeRedis(fail=True)))
    service = RedisService("redis://localhost:6379")

    with caplog.at_level(logging.WARNING):
        assert service.publish("admin:events", {"event": "x", "data": {}}) is False

    assert "Redis publish skipped" in caplog.text


def test_disabled_service_does_nothing():
    service = RedisService("")
    assert service.enabled is False
    assert service.publisher is None
    assert service.publish("admin:events", {"event": "x", "data": {}}) is False
    assert service.subscribe("admin:events", lambda payload: None) is None


def test_listener_loop_forwards_parsed_messages(caplog):
    service = RedisService("redis://localhost:6379")
    forwarded = []
    pubsub = FakePubSub(service, [
        {"type": "subscribe", "channel": "admin:events", "data": 1},
        {"type": "message", "channel": "admin:events", "data": json.dumps({"event": "a", "data": {}})},
        {"type": "message", "channel": "other", "data": json.dumps({"event": "b", "data": {}})},
        {"type": "message", "channel": "admin:events", "data": "{broken"},
        None,
        {"type": "message", "channel": "admin:events", "data": json.dumps({"event": "c", "data": {"n": 1}})},
    ])

    with caplog.at_level(logging.WARNING):
        service._listen(pubsub, "admin:events", forwarded.append)

    assert forwarded == [{"event": "a", "data": {}}, {"event": "c", "data": {"n": 1}}]
    assert pubsub.closed is True
    assert "could not be parsed" in caplog.text


def test_subscriber_reconnects_after_dropped_connection(subscriber_client, caplog):
    service = RedisService("redis://localhost:6379", reconnect_delay=0)
    forwarded = []
    dropped = DroppingPubSub(service, [])
    subscriber_client([dropped, FakePubSub(service, [_message("orders.created", {"orderNumber": "ZYT-7"})])])

    with caplog.at_level(logging.WARNING):
        service._run("admin:events", forwarded.append)

    assert forwarded == [{"event": "orders.created", "data": {"orderNumber": "ZYT-7"}}]
    assert dropped.closed is True
    assert "lost its connection" in caplog.text


def test_subscriber_retries_failed_subscribe(subscriber_client, caplog):
    service = RedisService("redis://localhost:6379", reconnect_delay=0)
    forwarded = []
    client = subscriber_client([
        redis.ConnectionError("connection refused"),
        redis.ConnectionError("connection refused"),
        FakePubSub(service, [_message("orders.created", {"orderNumber": "ZYT-8"})]),
    ])

    with caplog.at_level(logging.WARNING):
        service._run("admin:events", forwarded.append)

    assert forwarded == [{"event": "orders.created", "data": {"orderNumber": "ZYT-8"}}]
    assert client.pubsubs == []
    assert caplog.text.count("Redis subscribe on admin:events failed") == 2


def test_stop_ends_subscriber_thread(subscriber_client, monkeypatch):
    registered = []
    monkeypatch.setattr("shop_admin.realtime.events.atexit.register", registered.append)
    monkeypatch.setattr("shop_admin.realtime.events.atexit.unregister", lambda func: None)
    service = RedisService("redis://localhost:6379", reconnect_delay=0)
    relay = RealtimeEvents(service)
    subscriber_client([IdlePubSub(service, [])])

    relay.start()
    (thread,) = service._subscriber_threads
    assert thread.is_alive()
    assert registered == [relay.stop]

    relay.stop()

    assert not thread.is_alive()
    assert relay._started is False
    assert service._subscriber_threads == []


@pytest.mark.parametrize("raw, expected", [
    ('{"event": "x", "data": {}}', {"event": "x", "data": {}}),
    ("[1, 2]", None),
    ("not json", None),
    (None, None),
])
def test_parse_payload(raw, expected):
    assert parse_payload(raw) == expected


# ── Socket.IO gateway ────────────────────────────────────────────────────────

def test_socket_requires_valid_token(app):
    anonymous = socketio.test_client(app, namespace=NAMESPACE)
    assert not anonymous.is_connected(NAMESPACE)

    forged = socketio.test_client(app, namespace=NAMESPACE, auth={"token": "forged"})
    assert not forged.is_connected(NAMESPACE)


def test_socket_accepts_auth_or_query_token(app, client):
    token = login(client, *ADMIN)

    via_auth = socketio.test_client(app, namespace=NAMESPACE, auth={"token": token})
    assert via_auth.is_connected(NAMESPACE)
    via_auth.disconnect(namespace=NAMESPACE)

    via_query = socketio.test_client(app, namespace=NAMESPACE, query_string=f"token=Bearer%20{token}")
    assert via_query.is_connected(NAMESPACE)
    via_query.disconnect(namespace=NAMESPACE)


def test_domain_events_reach_the_dashboard(app, client, admin_headers, admin_token):
    dashboard = socketio.test_client(app, namespace=NAMESPACE, auth={"token": f"Bearer {admin_token}"})
    assert dashboard.is_connected(NAMESPACE)
    dashboard.get_received(NAMESPACE)

    r = client.put("/api/settings", json={"storeName": "Canli Magaza"}, headers=admin_headers)
    assert r.status_code == 200

    received = dashboard.get_received(NAMESPACE)
    assert [m["name"] for m in received] == ["settings.updated"]
    assert received[0]["args"][0]["settings"]["storeName"] == "Canli Magaza"
    dashboard.disconnect(namespace=NAMESPACE)
