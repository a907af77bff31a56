"""shop_admin/realtime/redis_service.py

Thin redis-py wrapper for the admin event channel: lazy publisher, and a
subscriber running in a daemon thread that reconnects after a dropped
connection. Redis being down never breaks a request; every failure is
logged as a warning and skipped.
"""
import json
import logging
import threading
from typing import Callable, Optional

import redis

logger = logging.getLogger(__name__)

RECONNECT_DELAY = 1.0
MAX_RECONNECT_DELAY = 30.0


class RedisService:
    """Publisher/subscriber pair bound to one REDIS_URL."""

    def __init__(self, url: Optional[str] = None, reconnect_delay: float = RECONNECT_DELAY):
        self.url = url
        self.reconnect_delay = reconnect_delay
        self._publisher: Optional[redis.Redis] = None
        self._subscriber_threads: list[threading.Thread] = []
        self._stop = threading.Event()

    def init_app(self, app):
        self.url = app.config.get("REDIS_URL") or None
        self._publisher = None

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def _client(self) -> redis.Redis:
        return redis.Redis.from_url(
            self.url,
            decode_responses=True,
            socket_connect_timeout=2,
        )

    @property
    def publisher(self) -> Optional[redis.Redis]:
        """Publishing client, created on first use (None when Redis is disabled)."""
        if not self.enabled:
            return None
        if self._publisher is None:
            self._publisher = self._client()
        return self._publisher

    def publish(self, channel: str, payload: dict) -> bool:
        client = self.publisher
        if client is None:
            return False
        try:
            client.publish(channel, json.dumps(payload, default=str))
            return True
        except (redis.RedisError, OSError) as e:
            logger.warning("Redis publish skipped: %s", e)
            return False

    def subscribe(self, channel: str, on_message: Callable[[dict], None]) -> Optional[threading.Thread]:
        """
        Listen on `channel` in a daemon thread; parsed JSON objects go to
        `on_message`. A failed subscribe or a dropped connection is retried
        with a doubling delay (capped at MAX_RECONNECT_DELAY) until close().
        """
        if not self.enabled:
            return None

        thread = threading.Thread(
            target=self._run,
            args=(channel, on_message),
            name=f"redis-sub:{channel}",
            daemon=True,
        )
        thread.start()
        self._subscriber_threads.append(thread)
        return thread

    def _open_pubsub(self, channel: str):
        pubsub = self._client().pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(channel)
        return pubsub

    def _run(self, channel: str, on_message: Callable[[dict], None]) -> None:
        stop = self._stop
        delay = self.reconnect_delay
        while not stop.is_set():
            try:
                pubsub = self._open_pubsub(channel)
            except (redis.RedisError, OSError) as e:
                logger.warning("Redis subscribe on %s failed: %s (retrying in %ss)", channel, e, delay)
                stop.wait(delay)
                delay = min(delay * 2, MAX_RECONNECT_DELAY)
                continue

            logger.info("Redis subscriber listening on %s", channel)
            delay = self.reconnect_delay
            if self._listen(pubsub, channel, on_message, stop):
                return
            stop.wait(delay)

    def _listen(self, pubsub, channel: str, on_message: Callable[[dict], None], stop=None) -> bool:
        """Read until close() (True) or a connection error (False)."""
        stop = stop or self._stop
        try:
            while not stop.is_set():
                message = pubsub.get_message(timeout=1.0)
                if not message or message.get("type") != "message":
                    continue
                if message.get("channel") != channel:
                    continue
                payload = parse_payload(message.get("data"))
                if payload is None:
                    logger.warning("Redis payload could not be parsed on %s", channel)
                    continue
                on_message(payload)
            return True
        except (redis.RedisError, OSError) as e:
            logger.warning("Redis subscriber on %s lost its connection: %s", channel, e)
            return False
        finally:
            try:
                pubsub.close()
            except (redis.RedisError, OSError):
                pass

    def close(self) -> None:
        self._stop.set()
        for thread in self._subscriber_threads:
            thread.join(timeout=2)
        self._subscriber_threads.clear()
        if self._publisher is not None:
            try:
                self._publisher.close()
            except (redis.RedisError, OSError) as e:
                logger.warning("Redis publisher close failed: %s", e)
            self._publisher = None
        self._stop = threading.Event()


def parse_payload(raw) -> Optional[dict]:
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None
