from __future__ import annotations

import re

_AMOUNT_RE = re.compile(r"^[+-]?\d+$")


def parse_amount(raw: object) -> int | None:
    """Parse a user-typed amount such as ``"1,500"``; ``None`` if it is not a whole number."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    text = str(raw).strip().replace(",", "").replace("_", "")
    if not _AMOUNT_RE.match(text):
        return None
    return int(text)


def format_gold(value: int) -> str:
    return f"{int(value):,}"
