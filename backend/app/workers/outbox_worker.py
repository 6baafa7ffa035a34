"""Relay committed outbox events to Redis pub/sub channels.

Each undelivered row is published to ``ws-topic:<topic>`` and stamped
``delivered_at``. A failed publish bumps ``attempt_count`` and pushes
``due_at`` back so the row is retried later. Rows are processed in id order,
so subscribers of one topic see its events in commit order.

Environment:
  - OUTBOX_POLL_INTERVAL_MS (default 1000)
  - OUTBOX_MAX_BATCH (default 200)
  - OUTBOX_RETRY_SECONDS (default 5)
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.database import get_db_session
from app.models.base import utcnow
from app.models.outbox_event import OutboxEvent
from app.realtime.bus import bus_enabled, publish_remote
from app.utils.json import loads
from app.utils.redis_cache import get_redis_client

logger = logging.getLogger(__name__)


def _retry_delay() -> timedelta:
    return timedelta(seconds=float(os.getenv("OUTBOX_RETRY_SECONDS") or 5))


def run_once(db: Session, client: Any = None, max_batch: int = 200) -> int:
    """Deliver one batch of due events; returns how many were delivered."""
    if not bus_enabled():
        # Without the Redis bus there is nothing to deliver to
        return 0
    client = client or get_redis_client()
    now = utcnow()
    rows = (
        db.query(OutboxEvent)
        .filter(
            OutboxEvent.delivered_at.is_(None),
            or_(OutboxEvent.due_at.is_(None), OutboxEvent.due_at <= now),
        )
        .order_by(OutboxEvent.id.asc())
        .limit(max_batch)
        .all()
    )
    delivered = 0
    blocked: set[str] = set()
    for row in rows:
        # Keep per-topic order: once a topic fails, hold its later rows too
        if row.topic in blocked:
            continue
        try:
            payload = loads(row.payload_json)
        except ValueError:
            payload = {"_error": "invalid-payload"}
        if publish_remote(row.topic, payload, client=client):
            row.delivered_at = utcnow()
            delivered += 1
            logger.debug("outbox_delivered id=%s topic=%s", row.id, row.topic)
        else:
            blocked.add(row.topic)
            row.attempt_count = (row.attempt_count or 0) + 1
            row.last_error = "publish_failed"
            row.due_at = utcnow() + _retry_delay()
            logger.warning("outbox_attempt_failed id=%s topic=%s attempts=%s", row.id, row.topic, row.attempt_count)
        db.commit()
    return delivered


def pending_lag(db: Session) -> tuple[int, Optional[float]]:
    """Count of undelivered events and age in seconds of the oldest one."""
    count, oldest = (
        db.query(func.count(OutboxEvent.id), func.min(OutboxEvent.created_at))
        .filter(OutboxEvent.delivered_at.is_(None))
        .one()
    )
    age = (utcnow() - oldest).total_seconds() if oldest is not None else None
    return int(count or 0), age


def _run_batch(max_batch: int) -> int:
    with get_db_session() as db:
        return run_once(db, max_batch=max_batch)


async def main() -> None:
    interval_ms = int(os.getenv("OUTBOX_POLL_INTERVAL_MS") or 1000)
    max_batch = int(os.getenv("OUTBOX_MAX_BATCH") or 200)
    last_lag_log = 0.0
    while True:
        try:
            await asyncio.to_thread(_run_batch, max_batch)
        except Exception:
            # Keep going; the loop is resilient
            logger.exception("outbox batch failed")
        now = asyncio.get_running_loop().time()
        if now - last_lag_log >= 10.0:
            with get_db_session() as db:
                cnt, age = pending_lag(db)
            logger.info("outbox_lag count=%s oldest_s=%s", cnt, f"{age:.1f}" if age is not None else "-")
            last_lag_log = now
        await asyncio.sleep(interval_ms / 1000.0)
