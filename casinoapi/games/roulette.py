"""
Roulette-Lite: red/black only on an 8-section wheel.

Sections alternate red/black starting with red at index 0. The result is
read off the final wheel rotation with `section_from_rotation`, so the angle
shown to the player and the settled colour always agree.
"""

import math
from dataclasses import dataclass

from casinoapi.games.rng import RandomnessSource

SECTION_COUNT = 8
SECTION_ANGLE = 360 / SECTION_COUNT

RED = "red"
BLACK = "black"
COLORS = (RED, BLACK)

WIN = "win"
LOSS = "loss"

PAYOUT_MULTIPLIER = 2
MIN_FULL_SPINS = 3
EXTRA_SPINS = 2


@dataclass
class RouletteSpin:
    rotation: float
    section: int
    color: str


@dataclass
class RouletteOutcome:
    outcome: str
    payout: int
    note: str


def section_color(section: int) -> str:
    return RED if section % 2 == 0 else BLACK


def section_from_rotation(rotation: float) -> int:
    """Section under the top pointer after the wheel turns `rotation` degrees."""
    normalized = rotation % 360
    return int(math.floor(((360 - normalized) % 360) / SECTION_ANGLE)) % SECTION_COUNT


def spin_wheel(rng: RandomnessSource) -> RouletteSpin:
    full_spins = MIN_FULL_SPINS + rng.random() * EXTRA_SPINS
    angle = rng.random() * 360
    rotation = full_spins * 360 + angle
    section = section_from_rotation(rotation)
    return RouletteSpin(rotation=rotation, section=section, color=section_color(section))


def resolve(selected_color: str, spin: RouletteSpin, stake: int) -> RouletteOutcome:
    if selected_color not in COLORS:
        raise ValueError(f"color must be one of {COLORS}")
    if spin.color == selected_color:
        payout = stake * PAYOUT_MULTIPLIER
        return RouletteOutcome(
            WIN, payout, f"{spin.color.upper()}! You won {payout:,} tokens!"
        )
    return RouletteOutcome(LOSS, 0, f"{spin.color.upper()}. Better luck next time.")
