from __future__ import annotations

import tempfile
import threading
from functools import partial
from pathlib import Path

from goldbot.db.database import get_connection, init_db


class ScriptedRandom:
    """Hands out pre-chosen draws in order."""

    def __init__(self, floats: list[float] | None = None, ints: list[int] | None = None) -> None:
        self._floats = list(floats or [])
        self._ints = list(ints or [])
        self._lock = threading.Lock()

    def random(self) -> float:
        with self._lock:
            return self._floats.pop(0)

    def randint(self, a: int, b: int) -> int:
        with self._lock:
            value = self._ints.pop(0)
        if not a <= value <= b:
            raise AssertionError(f"scripted draw {value} outside [{a}, {b}]")
        return value


class ConstantRandom:
    def __init__(self, value: float) -> None:
        self._value = value

    def random(self) -> float:
        return self._value

    def randint(self, a: int, b: int) -> int:
        return a


class FakeClock:
    def __init__(self, now_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class TempDatabaseMixin:
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmp.name) / "goldbot.db"
        self.connection_factory = partial(get_connection, self.db_path)
        init_db(self.connection_factory)

    def tearDown(self) -> None:
        self._tmp.cleanup()
