from collections import Counter
from itertools import permutations
from unittest.mock import patch

import pytest

from casinoapi.core.exceptions import RNGError
from casinoapi.games.cards import (
    BLACKJACK_VALUES,
    HIGH_LOW_VALUES,
    RANKS,
    SUITS,
    Card,
    build_deck,
    cards_from_state,
    cards_to_state,
    shuffle,
    shuffled_deck,
)
from casinoapi.games.rng import SEED_BITS, RandomnessSource, generate_seed

# chi-square critical value, 23 degrees of freedom, p = 0.001
CHI_SQUARE_CRITICAL_23 = 49.73


class TestDeck:
    def test_deck_has_52_unique_cards(self):
        deck = build_deck()

        assert len(deck) == 52
        assert len({(card.rank, card.suit) for card in deck}) == 52
        assert Counter(card.rank for card in deck) == {rank: 4 for rank in RANKS}
        assert Counter(card.suit for card in deck) == {suit: 13 for suit, _ in SUITS}

    def test_high_low_values_ace_low(self):
        values = {card.rank: card.value for card in build_deck(HIGH_LOW_VALUES)}

        assert values["A"] == 1
        assert values["J"] == 11
        assert values["Q"] == 12
        assert values["K"] == 13

    def test_blackjack_values(self):
        values = {card.rank: card.value for card in build_deck(BLACKJACK_VALUES)}

        assert values["A"] == 11
        assert values["10"] == values["J"] == values["Q"] == values["K"] == 10
        assert values["7"] == 7

    def test_suit_colors(self):
        colors = {card.suit: card.suit_color for card in build_deck()}

        assert colors["♥"] == colors["♦"] == "bright"
        assert colors["♠"] == colors["♣"] == "dark"

    def test_state_round_trip_keeps_codes(self):
        deck = build_deck()[:5]

        restored = cards_from_state(cards_to_state(deck))

        assert restored == deck
        assert cards_to_state(deck)[0]["code"] == "A♠"


class TestShuffle:
    def test_shuffle_returns_new_permutation(self):
        deck = build_deck()
        original = list(deck)

        shuffled = shuffle(deck, RandomnessSource(7))

        assert deck == original
        assert sorted(shuffled, key=lambda c: c.code) == sorted(original, key=lambda c: c.code)

    def test_same_seed_same_order(self):
        assert shuffled_deck(BLACKJACK_VALUES, 42) == shuffled_deck(BLACKJACK_VALUES, 42)
        assert shuffled_deck(BLACKJACK_VALUES, 42) != shuffled_deck(BLACKJACK_VALUES, 43)

    def test_shuffle_is_uniform_over_permutations(self):
        """10,000 shuffles of 4 items: every one of the 24 orders near N/24."""
        rng = RandomnessSource(20240101)
        trials = 10_000
        items = ["a", "b", "c", "d"]

        counts = Counter(tuple(shuffle(items, rng)) for _ in range(trials))

        assert set(counts) == set(permutations(items))
        expected = trials / 24
        chi_square = sum((observed - expected) ** 2 / expected for observed in counts.values())
        assert chi_square < CHI_SQUARE_CRITICAL_23


class TestRandomnessSource:
    def test_seed_is_recorded(self):
        source = RandomnessSource(1234)

        assert source.seed == 1234

    def test_generated_seed_fits_in_32_bits(self):
        for _ in range(100):
            seed = generate_seed()
            assert 0 <= seed < 2**SEED_BITS

    def test_randbelow_rejects_empty_range(self):
        with pytest.raises(ValueError):
            RandomnessSource(1).randbelow(0)

    def test_falls_back_when_entropy_unavailable(self):
        with patch("casinoapi.games.rng.secrets.randbits", side_effect=OSError("no entropy")):
            seed = generate_seed()

        assert 0 <= seed < 2**SEED_BITS

    def test_raises_rng_error_when_every_source_fails(self):
        with patch("casinoapi.games.rng.secrets.randbits", side_effect=OSError("no entropy")), \
                patch("casinoapi.games.rng._fallback_seed", side_effect=RuntimeError("no clock")):
            with pytest.raises(RNGError):
                generate_seed()
