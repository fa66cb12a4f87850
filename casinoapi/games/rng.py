"""
Seeded randomness for game rounds.

Every round gets its own 32-bit seed. The seed is stored with the round and in
the game session audit record, so the deck, reel grid or wheel angle of any
settled round can be rebuilt and checked later.
"""

import logging
import os
import random
import secrets
import time
from typing import Optional

from casinoapi.core.exceptions import RNGError

logger = logging.getLogger(__name__)

SEED_BITS = 32


def _fallback_seed() -> int:
    return (time.time_ns() ^ (os.getpid() << 16)) & ((1 << SEED_BITS) - 1)


def generate_seed() -> int:
    """Draw a fresh seed from the OS entropy pool.

    Falls back to a clock/pid mix when the entropy pool is unavailable so
    gameplay is never blocked on the RNG.
    """
    try:
        return secrets.randbits(SEED_BITS)
    except (OSError, NotImplementedError) as e:
        logger.warning(f"OS entropy unavailable, using fallback seed source: {e}")
        try:
            return _fallback_seed()
        except Exception as fallback_error:
            raise RNGError(f"No randomness source available: {fallback_error}")


class RandomnessSource:
    """Deterministic uniform generator bound to a recorded seed."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = generate_seed() if seed is None else seed
        self._rng = random.Random(self.seed)

    def randbelow(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        if n <= 0:
            raise ValueError("n must be positive")
        return self._rng.randrange(n)

    def random(self) -> float:
        """Uniform float in [0.0, 1.0)."""
        return self._rng.random()
