"""
Playing cards and deck handling.

Two value conventions exist and are kept separate per game:
- HIGH_LOW_VALUES: Ace is always 1, J/Q/K are 11/12/13.
- BLACKJACK_VALUES: Ace starts at 11 (downgraded in hand_value), J/Q/K are 10.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Sequence, TypeVar

from casinoapi.games.rng import RandomnessSource

RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

# (symbol, colour)
SUITS = [
    ("♠", "dark"),
    ("♥", "bright"),
    ("♦", "bright"),
    ("♣", "dark"),
]

HIGH_LOW_VALUES: Dict[str, int] = {rank: index + 1 for index, rank in enumerate(RANKS)}

BLACKJACK_VALUES: Dict[str, int] = {
    **{rank: min(index + 1, 10) for index, rank in enumerate(RANKS)},
    "A": 11,
}


@dataclass(frozen=True)
class Card:
    rank: str
    value: int
    suit: str
    suit_color: str

    @property
    def code(self) -> str:
        return f"{self.rank}{self.suit}"

    def to_dict(self) -> dict:
        return {**asdict(self), "code": self.code}

    @classmethod
    def from_dict(cls, data: dict) -> "Card":
        return cls(
            rank=data["rank"],
            value=data["value"],
            suit=data["suit"],
            suit_color=data["suit_color"],
        )


def build_deck(values: Dict[str, int] = HIGH_LOW_VALUES) -> List[Card]:
    """One card for each rank x suit combination, 52 in total."""
    return [
        Card(rank=rank, value=values[rank], suit=symbol, suit_color=color)
        for symbol, color in SUITS
        for rank in RANKS
    ]


T = TypeVar("T")


def shuffle(deck: Sequence[T], rng: RandomnessSource) -> List[T]:
    """Fisher-Yates shuffle; returns a new list and leaves `deck` untouched."""
    cards = list(deck)
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randbelow(i + 1)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def shuffled_deck(values: Dict[str, int], seed: int) -> List[Card]:
    """Rebuild the exact deck order a round was dealt from."""
    return shuffle(build_deck(values), RandomnessSource(seed))


def cards_to_state(cards: Sequence[Card]) -> List[dict]:
    return [card.to_dict() for card in cards]


def cards_from_state(data: Sequence[dict]) -> List[Card]:
    return [Card.from_dict(item) for item in data]
