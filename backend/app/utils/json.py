from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

import orjson


def _default(o: Any):
    # Normalize common non-JSON-native types
    if isinstance(o, Decimal):
        return str(o)
    if isinstance(o, (datetime, date, time)):
        return o.isoformat()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def dumps_bytes(obj: Any) -> bytes:
    return orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS, default=_default)


def dumps(obj: Any) -> str:
    """Serialize obj to a compact JSON string (UTF-8)."""
    return dumps_bytes(obj).decode("utf-8")


def loads(data: str | bytes) -> Any:
    return orjson.loads(data)
