import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .config import GENERATOR_ATTEMPTS, GENERATOR_ZERO_REDRAWS
from .exceptions import GeneratorNotFoundError
from .primes import default_rng, next_prime_at_or_after

logger = logging.getLogger(__name__)

Ciphertext = Tuple[int, int]  # (c1, c2)


@dataclass(frozen=True)
class ElGamalPublicKey:
    p: int
    g: int
    b: int


@dataclass(frozen=True)
class ElGamalKeyMaterial:
    """ElGamal key over Z_p^*: g is a primitive root, b = g^a mod p."""
    p: int
    g: int
    b: int
    a: int = field(repr=False)

    @property
    def public_key(self) -> ElGamalPublicKey:
        return ElGamalPublicKey(self.p, self.g, self.b)


AnyElGamalKey = Union[ElGamalKeyMaterial, ElGamalPublicKey]


def _draw_exponent(p: int, rng: random.Random) -> int:
    # uniform in [0, 2^(bitlen(p) - 1))
    return rng.getrandbits(p.bit_length() - 1)


def multiplicative_order(x: int, modulus: int) -> Optional[int]:
    """
    Smallest e >= 1 with x^e = 1 (mod modulus), found by trying e = 1, 2, 3, ...

    Returns None when no such e exists up to modulus - 1, i.e. x is not a
    unit. The search is linear in the order, so only small moduli are practical.
    """
    if modulus == 1:
        return 1
    value = x % modulus
    power = value
    for exp in range(1, modulus):
        if power == 1:
            return exp
        power = (power * value) % modulus
    return None


def find_generator(p: int, rng: Optional[random.Random] = None,
                   attempts: int = GENERATOR_ATTEMPTS,
                   zero_redraws: int = GENERATOR_ZERO_REDRAWS) -> int:
    """
    Search for a primitive root mod p by random sampling.

    Each attempt draws a candidate in [0, 2^(bitlen(p) - 1)), redrawing zeros,
    and accepts it if its multiplicative order is exactly p - 1.

    Raises:
        GeneratorNotFoundError: If a candidate stayed zero after zero_redraws
            redraws, or none of the attempts produced a generator
    """
    rng = rng or default_rng()
    for attempt in range(1, attempts + 1):
        candidate = _draw_exponent(p, rng)
        redraws = 0
        while candidate == 0:
            if redraws == zero_redraws:
                raise GeneratorNotFoundError(
                    f"Candidate stayed zero after {zero_redraws} redraws (p = {p})")
            candidate = _draw_exponent(p, rng)
            redraws += 1

        order = multiplicative_order(candidate, p)
        if order == p - 1:
            logger.debug("Found generator %d for p = %d on attempt %d", candidate, p, attempt)
            return candidate
        logger.debug("Candidate %d has order %s mod %d, not a generator", candidate, order, p)

    logger.warning("No generator found for p = %d after %d attempts", p, attempts)
    raise GeneratorNotFoundError(f"No generator found for p = {p} after {attempts} attempts")


def derive_key_material(p: int, g: int, a: int) -> ElGamalKeyMaterial:
    return ElGamalKeyMaterial(p=p, g=g, b=pow(g, a, p), a=a)


def generate_keys(approx_prime: int, rng: Optional[random.Random] = None,
                  attempts: int = GENERATOR_ATTEMPTS,
                  zero_redraws: int = GENERATOR_ZERO_REDRAWS,
                  max_prime_steps: Optional[int] = None) -> ElGamalKeyMaterial:
    """
    Generate an ElGamal key around approx_prime.

    p is the first prime >= approx_prime. Meant for small moduli: the
    generator search enumerates exponents one by one.

    Raises:
        GeneratorNotFoundError: If no primitive root of p was found
        SearchBudgetExhausted: If max_prime_steps is set and no prime was reached
    """
    rng = rng or default_rng()
    p = next_prime_at_or_after(approx_prime, rng, max_steps=max_prime_steps)
    g = find_generator(p, rng, attempts, zero_redraws)
    key = derive_key_material(p, g, _draw_exponent(p, rng))
    logger.info("Generated ElGamal key: p = %d, g = %d", key.p, key.g)
    return key


def encrypt(key: AnyElGamalKey, m: int, k: Optional[int] = None,
            rng: Optional[random.Random] = None) -> Ciphertext:
    """
    (c1, c2) = (g^k mod p, b^k * m mod p). m should lie in [1, p).

    k is the ephemeral exponent and comes after m; pass it by keyword.
    """
    if k is None:
        k = _draw_exponent(key.p, rng or default_rng())
    c1 = pow(key.g, k, key.p)
    c2 = (pow(key.b, k, key.p) * m) % key.p
    return (c1, c2)


def decrypt(key: ElGamalKeyMaterial, c1: int, c2: int) -> int:
    s_inv = pow(pow(c1, key.a, key.p), -1, key.p)
    return (c2 * s_inv) % key.p


def homomorphic_multiply(key: AnyElGamalKey, ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
    """Component-wise product; decrypts to m1 * m2 mod p."""
    return ((ct1[0] * ct2[0]) % key.p, (ct1[1] * ct2[1]) % key.p)


class ElGamal:
    def __init__(self, approx_prime: int, rng: Optional[random.Random] = None,
                 attempts: int = GENERATOR_ATTEMPTS,
                 zero_redraws: int = GENERATOR_ZERO_REDRAWS,
                 max_prime_steps: Optional[int] = None):
        self.rng = rng or default_rng()
        self.attempts = attempts
        self.zero_redraws = zero_redraws
        self.max_prime_steps = max_prime_steps
        self._generate_keys(approx_prime)

    def _generate_keys(self, approx_prime: int) -> None:
        self.keys = generate_keys(approx_prime, self.rng, self.attempts,
                                  self.zero_redraws, self.max_prime_steps)
        self.p = self.keys.p
        self.g = self.keys.g

    @property
    def public_key(self) -> ElGamalPublicKey:
        return self.keys.public_key

    def encrypt(self, m: int, k: Optional[int] = None) -> Ciphertext:
        return encrypt(self.keys, m, k, self.rng)

    def decrypt(self, cipher: Ciphertext) -> int:
        c1, c2 = cipher
        return decrypt(self.keys, c1, c2)

    def homomorphic_multiply(self, ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
        return homomorphic_multiply(self.keys, ct1, ct2)
