"""shop_admin/realtime/events.py

Domain event relay. Services call ``realtime_events.emit(event, data)``; the
envelope ``{event, data}`` goes through the Redis channel (so every API
process sees it) and comes back to the registered listeners, the Socket.IO
gateway among them. Without Redis the envelope is dispatched in-process.
"""
import atexit
import logging
import threading
from typing import Callable

from shop_admin.realtime.redis_service import RedisService

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict], None]

ADMIN_EVENTS_CHANNEL = "admin:events"


class RealtimeEvents:
    def __init__(self, redis_service: RedisService):
        self.redis = redis_service
        self.channel = ADMIN_EVENTS_CHANNEL
        self._listeners: set = set()
        self._lock = threading.Lock()
        self._started = False

    def init_app(self, app):
        self.channel = app.config.get("ADMIN_EVENTS_CHANNEL") or ADMIN_EVENTS_CHANNEL
        self.redis.init_app(app)
        app.extensions["realtime_events"] = self

    def start(self) -> None:
        """Begin consuming the Redis channel (once per process, stopped at exit)."""
        if self._started or not self.redis.enabled:
            return
        if self.redis.subscribe(self.channel, self.handle_payload) is not None:
            self._started = True
            atexit.unregister(self.stop)
            atexit.register(self.stop)

    def stop(self) -> None:
        self.redis.close()
        self._started = False

    def on_event(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.add(listener)

        def unsubscribe():
            with self._lock:
                self._listeners.discard(listener)

        return unsubscribe

    def emit(self, event: str, data: dict) -> None:
        payload = {"event": event, "data": data}
        if self.redis.enabled:
            self.redis.publish(self.channel, payload)
            return
        self.handle_payload(payload)

    def handle_payload(self, payload: dict) -> None:
        event = payload.get("event") if isinstance(payload, dict) else None
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(event, str) or not isinstance(data, dict):
            return

        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, data)
            except Exception:
                # listeners are isolated from each other
                logger.exception("Realtime listener failed for %s", event)
