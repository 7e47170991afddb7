import itertools
import logging
import math
import random
import secrets
from typing import Iterable, Iterator, Optional

from sympy.ntheory.primetest import mr

from .config import NEXT_PRIME_CERTAINTY
from .exceptions import SearchBudgetExhausted

logger = logging.getLogger(__name__)

_system_random = secrets.SystemRandom()


def default_rng() -> random.Random:
    """Process-wide randomness source used when no rng is injected."""
    return _system_random


def miller_rabin_rounds(certainty: int) -> int:
    # each round lets a composite through with probability at most 1/4
    return max(1, math.ceil(certainty / 2))


def is_probable_prime(n: int, certainty: int, rng: Optional[random.Random] = None) -> bool:
    """
    Probabilistic primality test.

    Returns False for every composite with probability at least
    1 - 2^-certainty and True for every prime.
    """
    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False
    rng = rng or default_rng()
    bases = [rng.randrange(2, n - 1) for _ in range(miller_rabin_rounds(certainty))]
    return mr(n, bases)


def random_odd_candidates(bit_length: int, rng: random.Random) -> Iterator[int]:
    """Endless stream of odd integers having exactly bit_length bits."""
    top = 1 << (bit_length - 1)
    while True:
        yield rng.getrandbits(bit_length) | top | 1


def successive_integers(start: int) -> Iterator[int]:
    return itertools.count(start)


def _first_probable_prime(candidates: Iterable[int], certainty: int, rng: random.Random,
                          budget: Optional[int]) -> int:
    if budget is not None:
        candidates = itertools.islice(candidates, budget)
    tried = 0
    for candidate in candidates:
        tried += 1
        if is_probable_prime(candidate, certainty, rng):
            logger.debug("Accepted probable prime after %d candidate(s)", tried)
            return candidate
    raise SearchBudgetExhausted(f"No probable prime among {tried} candidate(s)")


def generate_probable_prime(bit_length: int, certainty: int,
                            rng: Optional[random.Random] = None,
                            max_candidates: Optional[int] = None) -> int:
    """
    Draw random odd bit_length-bit integers until one passes the primality test.

    Args:
        bit_length: Exact bit length of the result (at least 2)
        certainty: The result is prime with probability >= 1 - 2^-certainty
        rng: Randomness source, defaults to the system source
        max_candidates: Stop with SearchBudgetExhausted after this many draws

    Raises:
        ValueError: If bit_length < 2
        SearchBudgetExhausted: If max_candidates draws were all rejected
    """
    if bit_length < 2:
        raise ValueError("bit_length must be at least 2")
    rng = rng or default_rng()
    return _first_probable_prime(random_odd_candidates(bit_length, rng), certainty, rng,
                                 max_candidates)


def next_prime_at_or_after(start: int, rng: Optional[random.Random] = None,
                           certainty: int = NEXT_PRIME_CERTAINTY,
                           max_steps: Optional[int] = None) -> int:
    """Smallest probable prime >= start, found by stepping one at a time."""
    rng = rng or default_rng()
    prime = _first_probable_prime(successive_integers(start), certainty, rng, max_steps)
    logger.debug("Next prime at or after %d is %d", start, prime)
    return prime
