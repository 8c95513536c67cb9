from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from goldbot.core.errors import UnknownGame


class RandomSource(Protocol):
    """Uniform draws used by every game; ``random.Random`` satisfies it."""

    def random(self) -> float: ...

    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True)
class Reward:
    action: str
    amount: int
    job: str | None = None


@dataclass(frozen=True)
class Settlement:
    game: str
    bet: int
    multiplier: int
    delta: int
    description: str
    detail: dict[str, Any] = field(default_factory=dict)

    @property
    def won(self) -> bool:
        return self.multiplier > 0


EARNING_RANGES: dict[str, tuple[int, int]] = {
    "dig": (10, 60),
    "fish": (8, 50),
    "daily": (150, 400),
    "weekly": (1000, 3000),
}

JOBS: tuple[str, ...] = ("miner", "developer", "chef", "driver", "artist")
JOB_RANGES: dict[str, tuple[int, int]] = {
    "developer": (150, 350),
    "miner": (100, 300),
    "chef": (60, 200),
    "driver": (50, 180),
    "artist": (40, 150),
}
UNKNOWN_JOB_RANGE = (50, 200)

SLOT_SYMBOLS: tuple[str, ...] = ("🍒", "🍋", "🔔", "⭐", "7️⃣")
SLOT_TOP_SYMBOL = "7️⃣"

ROULETTE_COLORS = ("green", "black", "red")

GAMES: tuple[str, ...] = ("spin", "slots", "roulette", "casino")
MAX_MULTIPLIER = 36


def roll_reward(action: str, rng: RandomSource, job: str | None = None) -> Reward:
    if action == "work":
        picked = job.strip().lower() if job and job.strip() else JOBS[rng.randint(0, len(JOBS) - 1)]
        low, high = JOB_RANGES.get(picked, UNKNOWN_JOB_RANGE)
        return Reward(action="work", amount=rng.randint(low, high), job=picked)
    bounds = EARNING_RANGES.get(action)
    if bounds is None:
        raise KeyError(f"Unknown earning action: {action}")
    return Reward(action=action, amount=rng.randint(*bounds))


def _settle(game: str, bet: int, multiplier: int, description: str, **detail: Any) -> Settlement:
    delta = bet * multiplier if multiplier > 0 else -bet
    return Settlement(
        game=game,
        bet=bet,
        multiplier=multiplier,
        delta=delta,
        description=description,
        detail=detail,
    )


def _spin(bet: int, rng: RandomSource) -> Settlement:
    draw = rng.random() * 100
    if draw < 50:
        return _settle("spin", bet, 0, "Spin lost.", draw=draw)
    if draw < 85:
        mult = 2
    elif draw < 97:
        mult = 5
    else:
        mult = 10
    return _settle("spin", bet, mult, f"Spin win! Multiplier x{mult}", draw=draw)


def _slots(bet: int, rng: RandomSource) -> Settlement:
    reels = tuple(SLOT_SYMBOLS[rng.randint(0, len(SLOT_SYMBOLS) - 1)] for _ in range(3))
    a, b, c = reels
    if a == b == c:
        mult = 10 if a == SLOT_TOP_SYMBOL else 5
        return _settle("slots", bet, mult, f"JACKPOT! x{mult}", reels=reels)
    if a == b or b == c or a == c:
        return _settle("slots", bet, 2, "Nice! Pair", reels=reels)
    return _settle("slots", bet, 0, "No win.", reels=reels)


def roulette_color(number: int) -> str:
    if number == 0:
        return "green"
    return "black" if number % 2 == 0 else "red"


def _roulette(bet: int, rng: RandomSource, pick: str | None) -> Settlement:
    number = rng.randint(0, 36)
    color = roulette_color(number)
    choice = (pick or "").strip().lower()
    if not choice:
        return _settle(
            "roulette", bet, 0, "You must pick a color or number.",
            number=number, color=color, pick=None,
        )
    if choice.isascii() and choice.isdigit():
        if int(choice) == number:
            return _settle("roulette", bet, MAX_MULTIPLIER, "Exact hit!", number=number, color=color, pick=choice)
        return _settle("roulette", bet, 0, "Missed.", number=number, color=color, pick=choice)
    if choice == color:
        mult = 14 if color == "green" else 2
        return _settle("roulette", bet, mult, f"You won x{mult}!", number=number, color=color, pick=choice)
    return _settle("roulette", bet, 0, "You lost.", number=number, color=color, pick=choice)


def _casino(bet: int, rng: RandomSource) -> Settlement:
    draw = rng.random() * 100
    if draw < 45:
        return _settle("casino", bet, 0, "House wins.", draw=draw)
    if draw < 85:
        return _settle("casino", bet, 2, "You beat the house!", draw=draw)
    return _settle("casino", bet, 5, "Big win!", draw=draw)


def resolve(game: str, bet: int, rng: RandomSource, pick: str | None = None) -> Settlement:
    """Settle one wager; ``bet`` must already be checked against the balance."""
    name = game.strip().lower()
    if name == "spin":
        return _spin(bet, rng)
    if name == "slots":
        return _slots(bet, rng)
    if name == "roulette":
        return _roulette(bet, rng, pick)
    if name == "casino":
        return _casino(bet, rng)
    raise UnknownGame(f"Unknown game: {game}")
