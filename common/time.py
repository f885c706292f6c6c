from __future__ import annotations

import time
from datetime import datetime, timezone


def now_s() -> float:
    return time.monotonic()


def clip_stamp(when: datetime | None = None) -> str:
    when = when or datetime.now(tz=timezone.utc)
    return when.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
