#!/usr/bin/env python3
"""
Outbox worker: delivers undelivered outbox_events to ``ws-topic:<topic>``
Redis channels. Requires WS_BUS_ENABLED=1 and REDIS_URL.

This worker is idempotent and safe to run alongside API instances.
"""
from __future__ import annotations

import asyncio
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "backend")))

from app.core.observability import setup_logging  # noqa: E402
from app.workers.outbox_worker import main  # noqa: E402


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
