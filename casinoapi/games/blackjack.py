"""
Blackjack rules.

- Aces count 11, then drop to 1 one at a time while the hand is over 21.
- A natural is exactly two cards totalling 21, checked right after the deal.
- Dealer draws while under 17 and stands on every 17, soft or hard.
- win/blackjack pay stake x 2, push refunds the stake, dealer pays nothing.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from casinoapi.games.cards import Card

BLACKJACK_TARGET = 21
DEALER_STAND_VALUE = 17

WIN = "win"
BLACKJACK = "blackjack"
PUSH = "push"
DEALER = "dealer"

PAYOUT_MULTIPLIERS = {WIN: 2, BLACKJACK: 2, PUSH: 1, DEALER: 0}


@dataclass
class BlackjackOutcome:
    outcome: str
    payout: int
    player_total: int
    dealer_total: int
    note: str


def hand_value(hand: Sequence[Card]) -> int:
    total = sum(card.value for card in hand)
    aces = sum(1 for card in hand if card.rank == "A")
    while total > BLACKJACK_TARGET and aces > 0:
        total -= 10
        aces -= 1
    return total


def is_blackjack(hand: Sequence[Card]) -> bool:
    return len(hand) == 2 and hand_value(hand) == BLACKJACK_TARGET


def is_bust(hand: Sequence[Card]) -> bool:
    return hand_value(hand) > BLACKJACK_TARGET


def payout_for(outcome: str, stake: int) -> int:
    return stake * PAYOUT_MULTIPLIERS[outcome]


def describe_outcome(outcome: str, player_total: int, dealer_total: int) -> str:
    if outcome == BLACKJACK:
        return "Natural blackjack! 2x payout credited."
    if outcome == WIN:
        if dealer_total > BLACKJACK_TARGET:
            return "Dealer busts. You win this round!"
        return f"You win with {player_total} over dealer {dealer_total}."
    if outcome == PUSH:
        return f"Push. {player_total} ties {dealer_total}. Bet returned."
    if player_total > BLACKJACK_TARGET:
        return f"Bust with {player_total}. Dealer takes it."
    return f"Dealer takes it with {dealer_total}."


def resolve_natural(
    player_hand: Sequence[Card], dealer_hand: Sequence[Card], stake: int
) -> Optional[BlackjackOutcome]:
    """Deal-time check. None means play continues to the player turn."""
    if not is_blackjack(player_hand):
        return None
    player_total = hand_value(player_hand)
    dealer_total = hand_value(dealer_hand)
    if is_blackjack(dealer_hand):
        return BlackjackOutcome(
            PUSH, payout_for(PUSH, stake), player_total, dealer_total,
            "Double blackjack! Bet returned.",
        )
    return BlackjackOutcome(
        BLACKJACK, payout_for(BLACKJACK, stake), player_total, dealer_total,
        describe_outcome(BLACKJACK, player_total, dealer_total),
    )


def play_dealer(
    dealer_hand: Sequence[Card], deck: Sequence[Card]
) -> Tuple[List[Card], List[Card]]:
    """Draw from the end of `deck` until the dealer stands.

    Returns (dealer_hand, remaining_deck) as new lists.
    """
    hand = list(dealer_hand)
    remaining = list(deck)
    while hand_value(hand) < DEALER_STAND_VALUE and remaining:
        hand.append(remaining.pop())
    return hand, remaining


def settle(
    player_hand: Sequence[Card], dealer_hand: Sequence[Card], stake: int
) -> BlackjackOutcome:
    """Compare final hands. A busted player loses regardless of the dealer."""
    player_total = hand_value(player_hand)
    dealer_total = hand_value(dealer_hand)

    if player_total > BLACKJACK_TARGET:
        outcome = DEALER
    elif dealer_total > BLACKJACK_TARGET or player_total > dealer_total:
        outcome = WIN
    elif player_total < dealer_total:
        outcome = DEALER
    else:
        outcome = PUSH

    return BlackjackOutcome(
        outcome,
        payout_for(outcome, stake),
        player_total,
        dealer_total,
        describe_outcome(outcome, player_total, dealer_total),
    )
