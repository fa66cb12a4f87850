"""
Slots Mini: 3 reels x 3 rows, five fixed paylines.

Each cell is drawn independently from a weighted symbol bag, so spins carry
no memory of earlier spins. Rarer symbols pay more; `validate_paytable`
enforces that ordering.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from casinoapi.games.rng import RandomnessSource

REEL_COUNT = 3
ROW_COUNT = 3


@dataclass(frozen=True)
class SlotSymbol:
    id: str
    label: str
    weight: int
    multiplier: int
    display_name: str


@dataclass(frozen=True)
class Payline:
    id: str
    label: str
    rows: Tuple[int, ...]  # row index on each reel, left to right


SYMBOLS: List[SlotSymbol] = [
    SlotSymbol("seven", "7", weight=1, multiplier=25, display_name="Lucky Seven"),
    SlotSymbol("bar", "BAR", weight=2, multiplier=12, display_name="Bar"),
    SlotSymbol("bell", "BELL", weight=3, multiplier=8, display_name="Bell"),
    SlotSymbol("cherry", "CH", weight=4, multiplier=5, display_name="Cherry"),
    SlotSymbol("lemon", "LE", weight=5, multiplier=3, display_name="Lemon"),
]

BLANK_SYMBOL = SlotSymbol("blank", "--", weight=0, multiplier=0, display_name="Idle")

SYMBOLS_BY_ID: Dict[str, SlotSymbol] = {s.id: s for s in SYMBOLS + [BLANK_SYMBOL]}

PAYLINES: List[Payline] = [
    Payline("line-1", "Top line", (0, 0, 0)),
    Payline("line-2", "Center line", (1, 1, 1)),
    Payline("line-3", "Bottom line", (2, 2, 2)),
    Payline("line-4", "Forward diagonal", (0, 1, 2)),
    Payline("line-5", "Reverse diagonal", (2, 1, 0)),
]

Grid = List[List[SlotSymbol]]  # grid[reel][row]


@dataclass
class LineWin:
    line_id: str
    label: str
    symbol: SlotSymbol
    payout: int


@dataclass
class SpinEvaluation:
    line_wins: List[LineWin] = field(default_factory=list)
    winning_positions: Set[Tuple[int, int]] = field(default_factory=set)
    total_payout: int = 0
    is_jackpot: bool = False


def validate_paytable(symbols: Sequence[SlotSymbol]) -> None:
    """Raise ValueError unless weight strictly falls as multiplier rises."""
    ordered = sorted(symbols, key=lambda s: s.multiplier)
    for lower, higher in zip(ordered, ordered[1:]):
        if higher.multiplier == lower.multiplier or higher.weight >= lower.weight:
            raise ValueError(
                f"Symbol {higher.id} (x{higher.multiplier}) must be rarer than "
                f"{lower.id} (x{lower.multiplier})"
            )
    for symbol in symbols:
        if symbol.weight <= 0:
            raise ValueError(f"Symbol {symbol.id} needs a positive weight")


validate_paytable(SYMBOLS)


def symbol_bag(symbols: Sequence[SlotSymbol]) -> List[SlotSymbol]:
    """Flatten symbols into a bag where each appears `weight` times."""
    return [symbol for symbol in symbols for _ in range(symbol.weight)]


def draw_symbol_grid(
    columns: int,
    rows: int,
    weighted_alphabet: Sequence[SlotSymbol],
    rng: RandomnessSource,
) -> Grid:
    bag = symbol_bag(weighted_alphabet)
    return [[bag[rng.randbelow(len(bag))] for _ in range(rows)] for _ in range(columns)]


def spin_reels(seed: int, symbols: Sequence[SlotSymbol] = SYMBOLS) -> Grid:
    return draw_symbol_grid(REEL_COUNT, ROW_COUNT, symbols, RandomnessSource(seed))


def empty_grid() -> Grid:
    return [[BLANK_SYMBOL for _ in range(ROW_COUNT)] for _ in range(REEL_COUNT)]


def evaluate_spin(
    reels: Grid,
    stake: int,
    jackpot_multiplier: int = 20,
    paylines: Sequence[Payline] = PAYLINES,
) -> SpinEvaluation:
    result = SpinEvaluation()

    for line in paylines:
        pulled = [reels[reel][row] for reel, row in enumerate(line.rows)]
        first = pulled[0]
        if first.id == BLANK_SYMBOL.id:
            continue
        if any(symbol.id != first.id for symbol in pulled):
            continue

        payout = stake * first.multiplier
        result.total_payout += payout
        result.winning_positions.update(enumerate(line.rows))
        result.line_wins.append(LineWin(line.id, line.label, first, payout))

        if first.multiplier >= jackpot_multiplier:
            result.is_jackpot = True

    return result


def grid_to_state(reels: Grid) -> List[List[str]]:
    return [[symbol.id for symbol in reel] for reel in reels]
