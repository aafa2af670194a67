"""
FAIRLENS — Game Outcome Formatter

Maps a normalized float in [0, 1) to the value a player saw on screen.
One fixed formula per game family; unknown games show the raw float.

    format_outcome(0.4217, "dice").formatted   → "42.17"
    format_outcome(0.4217, "roulette").raw     → 15
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Union

from config.fairness_schema import GameType
from config.settings import VerificationConfig

SUITS = ["Hearts", "Diamonds", "Clubs", "Spades"]
RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]


@dataclass(frozen=True)
class GameOutcome:
    raw: Union[int, float]
    formatted: str
    game_type: str

    def to_dict(self) -> dict:
        """JSON-safe form: a non-finite raw value is written as None."""
        d = asdict(self)
        if isinstance(self.raw, float) and not math.isfinite(self.raw):
            d["raw"] = None
        return d


def _div(a: float, b: float) -> float:
    """a / b with IEEE semantics for b == 0."""
    if b == 0:
        return math.copysign(math.inf, a) if a else math.nan
    return a / b


def _dice(f: float):
    roll = f * 100
    return roll, f"{roll:.2f}"


def _crash(f: float):
    point = max(1.0, _div(1 - VerificationConfig.CRASH_HOUSE_EDGE, 1 - f))
    return point, f"{point:.2f}x"


def _limbo(f: float):
    mult = _div(1.0, f)
    return mult, f"{mult:.2f}x"


def _plinko(f: float):
    return f, "left" if f < 0.5 else "right"


def _mines(f: float):
    tile = math.floor(f * 25)
    return tile, f"Tile {tile + 1}"


def _keno(f: float):
    number = math.floor(f * 40) + 1
    return number, f"#{number}"


def _roulette(f: float):
    number = math.floor(f * 37)
    return number, str(number)


def _card(f: float):
    index = min(math.floor(f * 52), 51)
    suit = SUITS[index // 13]
    rank = RANKS[index % 13]
    return index, f"{rank} of {suit}"


def _raw(f: float):
    return f, f"{f:.8f}"


FORMATTERS = {
    GameType.DICE: _dice,
    GameType.CRASH: _crash,
    GameType.LIMBO: _limbo,
    GameType.PLINKO: _plinko,
    GameType.MINES: _mines,
    GameType.KENO: _keno,
    GameType.ROULETTE: _roulette,
    GameType.BLACKJACK: _card,
    GameType.POKER: _card,
    GameType.BACCARAT: _card,
    GameType.SLOTS: _raw,
    GameType.OTHER: _raw,
}


def format_outcome(normalized_float: float, game_type) -> GameOutcome:
    """Render a normalized float for a game type (case-insensitive)."""
    key = game_type.value if isinstance(game_type, GameType) else str(game_type).lower()
    try:
        formatter = FORMATTERS[GameType(key)]
    except ValueError:
        formatter = _raw
    raw, formatted = formatter(normalized_float)
    return GameOutcome(raw=raw, formatted=formatted, game_type=key)
