from __future__ import annotations

import math
from dataclasses import dataclass

from goldbot.config.settings import DAY_MS, HOUR_MS, MINUTE_MS, WEEK_MS


@dataclass(frozen=True)
class CooldownCheck:
    allowed: bool
    remaining_ms: int = 0


def try_claim(last_claimed_ms: int | None, now_ms: int, period_ms: int) -> CooldownCheck:
    last = int(last_claimed_ms or 0)
    if last <= 0:
        return CooldownCheck(allowed=True)
    elapsed = int(now_ms) - last
    if elapsed >= period_ms:
        return CooldownCheck(allowed=True)
    return CooldownCheck(allowed=False, remaining_ms=int(period_ms) - elapsed)


def wait_units(remaining_ms: int, period_ms: int) -> tuple[int, str]:
    """Round a remaining wait up to the natural unit of its cooldown period.

    Week-long periods report days, day-long periods report hours and
    anything shorter reports minutes.
    """
    if period_ms >= WEEK_MS:
        unit_ms, unit = DAY_MS, "day"
    elif period_ms >= DAY_MS:
        unit_ms, unit = HOUR_MS, "hour"
    else:
        unit_ms, unit = MINUTE_MS, "minute"
    return max(1, math.ceil(max(0, remaining_ms) / unit_ms)), unit
