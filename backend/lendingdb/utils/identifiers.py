from __future__ import annotations

import os
import time
import uuid
from typing import Optional


def generate_uuid7(ts_ms: Optional[int] = None) -> str:
    """
    Generate a UUIDv7 string (time-ordered) for item, loan and user ids.

    Layout:
    - 48-bit Unix timestamp in milliseconds
    - 4-bit version (0b0111)
    - 2-bit variant, remaining bits random

    SQLAlchemy calls this as a column default with no arguments; `ts_ms`
    only exists so callers can pin the timestamp.
    """
    if ts_ms is None:
        ts_ms = int(time.time() * 1000)
    raw = bytearray(ts_ms.to_bytes(6, "big", signed=False) + os.urandom(10))
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))
