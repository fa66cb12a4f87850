"""High-Low: guess whether the second card beats the first. Ace is low."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from casinoapi.games.cards import Card

HIGHER = "higher"
LOWER = "lower"
DIRECTIONS = (HIGHER, LOWER)

WIN = "win"
LOSE = "lose"
PUSH = "push"

DEFAULT_MULTIPLIER = Decimal("1.9")


@dataclass
class HighLowOutcome:
    outcome: str
    payout: int
    note: str


def win_payout(stake: int, multiplier: Decimal = DEFAULT_MULTIPLIER) -> int:
    """stake x multiplier rounded half-up to whole tokens."""
    return int((Decimal(stake) * multiplier).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve(
    first: Card,
    second: Card,
    guess: str,
    stake: int,
    multiplier: Decimal = DEFAULT_MULTIPLIER,
) -> HighLowOutcome:
    if guess not in DIRECTIONS:
        raise ValueError(f"guess must be one of {DIRECTIONS}")

    if second.value == first.value:
        return HighLowOutcome(PUSH, stake, "Push: bet returned")

    went_higher = second.value > first.value
    if went_higher == (guess == HIGHER):
        payout = win_payout(stake, multiplier)
        return HighLowOutcome(WIN, payout, f"Win: {payout}")
    return HighLowOutcome(LOSE, 0, "Lose")
