import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional, Union

from .config import PAILLIER_BASE, PAILLIER_CERTAINTY, PAILLIER_KEY_SIZE
from .exceptions import FatalConfigurationError, InexactDivisionError
from .primes import default_rng, generate_probable_prime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaillierPublicKey:
    """Public half of a Paillier key: enough to encrypt and combine ciphertexts."""
    n: int
    n_square: int
    g: int
    bit_length: int


@dataclass(frozen=True)
class PaillierKeyMaterial:
    """Full Paillier key. The factorization and decryption exponents stay out of repr."""
    n: int
    n_square: int
    g: int
    bit_length: int
    p: int = field(repr=False)
    q: int = field(repr=False)
    lambda_: int = field(repr=False)
    mu: int = field(repr=False)

    @property
    def public_key(self) -> PaillierPublicKey:
        return PaillierPublicKey(self.n, self.n_square, self.g, self.bit_length)


AnyPaillierKey = Union[PaillierKeyMaterial, PaillierPublicKey]


def _L(x: int, n: int) -> int:
    q, rem = divmod(x - 1, n)
    if rem:
        raise InexactDivisionError(f"L(x) undefined: n does not divide x - 1 (remainder {rem})")
    return q


def derive_key_material(p: int, q: int, bit_length: Optional[int] = None,
                        g: int = PAILLIER_BASE) -> PaillierKeyMaterial:
    """
    Build Paillier key material from two primes.

    Args:
        p, q: The secret primes
        bit_length: Size used when drawing encryption randomness,
            defaults to the bit length of n
        g: Base, fixed to 2 unless overridden

    Returns:
        PaillierKeyMaterial with lambda = lcm(p-1, q-1) and mu precomputed

    Raises:
        FatalConfigurationError: If gcd(L(g^lambda mod n^2), n) != 1
    """
    n = p * q
    n_square = n * n
    lambda_ = math.lcm(p - 1, q - 1)

    try:
        l_value = _L(pow(g, lambda_, n_square), n)
    except InexactDivisionError as e:
        raise FatalConfigurationError(f"g = {g} is not a valid base for this modulus") from e
    if math.gcd(l_value, n) != 1:
        raise FatalConfigurationError(f"g = {g} is not a valid base for this modulus")

    mu = pow(l_value, -1, n)
    return PaillierKeyMaterial(
        n=n,
        n_square=n_square,
        g=g,
        bit_length=bit_length if bit_length is not None else n.bit_length(),
        p=p,
        q=q,
        lambda_=lambda_,
        mu=mu,
    )


def generate_keys(bit_length: int = PAILLIER_KEY_SIZE, certainty: int = PAILLIER_CERTAINTY,
                  rng: Optional[random.Random] = None,
                  max_candidates: Optional[int] = None) -> PaillierKeyMaterial:
    """
    Generate a Paillier key with a bit_length-bit modulus.

    The base check is not retried: a FatalConfigurationError reaches the
    caller, who may call generate_keys again for fresh primes.
    """
    # 2-bit halves admit only the prime 3, so p and q could never differ
    if bit_length < 6:
        raise ValueError("bit_length must be at least 6")
    rng = rng or default_rng()

    p = generate_probable_prime(bit_length // 2, certainty, rng, max_candidates)
    q = generate_probable_prime(bit_length // 2, certainty, rng, max_candidates)
    while q == p:
        q = generate_probable_prime(bit_length // 2, certainty, rng, max_candidates)

    key = derive_key_material(p, q, bit_length)
    logger.info("Generated Paillier key: %d-bit modulus", key.n.bit_length())
    return key


def _random_unit(key: AnyPaillierKey, rng: random.Random) -> int:
    while True:
        r = rng.getrandbits(key.bit_length)
        if math.gcd(r, key.n) == 1:
            return r


def encrypt(key: AnyPaillierKey, m: int, r: Optional[int] = None,
            rng: Optional[random.Random] = None) -> int:
    """c = g^m * r^n mod n^2. When r is omitted a random unit mod n is drawn."""
    n_sq = key.n_square
    if r is None:
        r = _random_unit(key, rng or default_rng())
    return (pow(key.g, m, n_sq) * pow(r, key.n, n_sq)) % n_sq


def decrypt(key: PaillierKeyMaterial, c: int) -> int:
    """m = L(c^lambda mod n^2) * mu mod n"""
    return (_L(pow(c, key.lambda_, key.n_square), key.n) * key.mu) % key.n


def homomorphic_add(key: AnyPaillierKey, c1: int, c2: int) -> int:
    return (c1 * c2) % key.n_square


def homomorphic_add_constant(key: AnyPaillierKey, c: int, k: int) -> int:
    return (c * pow(key.g, k, key.n_square)) % key.n_square


def homomorphic_multiply_constant(key: AnyPaillierKey, c: int, k: int) -> int:
    return pow(c, k, key.n_square)


class Paillier:
    def __init__(self, key_size: int = PAILLIER_KEY_SIZE, certainty: int = PAILLIER_CERTAINTY,
                 rng: Optional[random.Random] = None):
        self.key_size = key_size
        self.certainty = certainty
        self.rng = rng or default_rng()
        self._generate_keys()

    def _generate_keys(self) -> None:
        self.keys = generate_keys(self.key_size, self.certainty, self.rng)
        self.n = self.keys.n
        self.n_square = self.keys.n_square

    @property
    def public_key(self) -> PaillierPublicKey:
        return self.keys.public_key

    def encrypt(self, m: int, r: Optional[int] = None) -> int:
        return encrypt(self.keys, m, r, self.rng)

    def decrypt(self, ciphertext: int) -> int:
        return decrypt(self.keys, ciphertext)

    def homomorphic_add(self, c1: int, c2: int) -> int:
        return homomorphic_add(self.keys, c1, c2)

    def homomorphic_add_constant(self, c: int, k: int) -> int:
        return homomorphic_add_constant(self.keys, c, k)

    def homomorphic_multiply_constant(self, c: int, k: int) -> int:
        return homomorphic_multiply_constant(self.keys, c, k)
