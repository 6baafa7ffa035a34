"""Change-notification fan-out.

Committed events reach consumers two ways:

* in-process listeners registered with :func:`subscribe` are called right
  after the writing transaction commits;
* the outbox worker relays persisted events to Redis channels
  ``ws-topic:<topic>`` for out-of-process subscribers.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import redis

from app.core.config import settings
from app.utils.json import dumps
from app.utils.redis_cache import get_redis_client

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], None]

_listeners: list[Listener] = []

CHANNEL_PREFIX = "ws-topic:"


def bus_enabled() -> bool:
    return bool(settings.WS_BUS_ENABLED)


def subscribe(listener: Listener) -> Callable[[], None]:
    """Register ``listener(topic, envelope)``; returns an unsubscribe callable."""
    _listeners.append(listener)

    def _unsubscribe() -> None:
        if listener in _listeners:
            _listeners.remove(listener)

    return _unsubscribe


def publish(topic: str, envelope: dict[str, Any]) -> None:
    """Deliver a committed event to in-process listeners.

    A failing listener is logged and skipped so one consumer cannot block the
    others or the writer.
    """
    for listener in list(_listeners):
        try:
            listener(topic, envelope)
        except Exception:
            logger.exception("bus listener failed topic=%s event=%s", topic, envelope.get("event_type"))


def publish_remote(topic: str, envelope: dict[str, Any], client: Any = None) -> bool:
    """Publish an envelope to ``ws-topic:<topic>``; returns ``False`` on failure."""
    if not bus_enabled():
        return False
    client = client or get_redis_client()
    env = dict(envelope)
    env.setdefault("v", 1)
    env.setdefault("topic", topic)
    try:
        client.publish(f"{CHANNEL_PREFIX}{topic}", dumps(env))
    except redis.RedisError as exc:
        logger.warning("bus publish failed topic=%s err=%s", topic, exc)
        return False
    return True


class EventSink:
    """What the lifecycle manager publishes committed events to."""

    def publish(self, topic: str, envelope: dict[str, Any]) -> None:
        publish(topic, envelope)


default_sink = EventSink()


__all__ = [
    "EventSink",
    "bus_enabled",
    "default_sink",
    "publish",
    "publish_remote",
    "subscribe",
]
