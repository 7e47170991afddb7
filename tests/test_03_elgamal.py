import random
import unittest

import sympy
from sympy.ntheory import is_primitive_root, n_order

from homocrypt.elgamal_encryption import (
    ElGamal,
    decrypt,
    derive_key_material,
    encrypt,
    find_generator,
    generate_keys,
    homomorphic_multiply,
    multiplicative_order,
)
from homocrypt.exceptions import GeneratorNotFoundError, SearchBudgetExhausted


class ScriptedRandom(random.Random):
    """Returns queued values from getrandbits, then falls back to a seeded stream."""

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def getrandbits(self, k):
        if self.values:
            return self.values.pop(0)
        return super().getrandbits(k)


class ZeroRandom(random.Random):

    def getrandbits(self, k):
        return 0


class TestElGamalToyKey(unittest.TestCase):
    """
    Worked example with p = 11, g = 2, a = 3.
    """

    def setUp(self):
        self.key = derive_key_material(11, 2, 3)

    def test_01_key_material(self):
        self.assertEqual(self.key.b, 8)
        self.assertEqual(multiplicative_order(2, 11), 10)

    def test_02_encrypt_decrypt(self):
        self.assertEqual(encrypt(self.key, 7, k=4), (5, 6))
        self.assertEqual(decrypt(self.key, 5, 6), 7)

    def test_03_every_message_and_ephemeral(self):
        for k in range(0, 20):
            for m in range(1, 11):
                c1, c2 = encrypt(self.key, m, k=k)
                self.assertTrue(0 <= c1 < 11 and 0 <= c2 < 11)
                self.assertEqual(decrypt(self.key, c1, c2), m)

    def test_04_message_reduced_mod_p(self):
        c1, c2 = encrypt(self.key, 18, k=4)
        self.assertEqual(decrypt(self.key, c1, c2), 7)

    def test_05_non_invertible_c1(self):
        with self.assertRaises(ValueError):
            decrypt(self.key, 0, 6)


class TestMultiplicativeOrder(unittest.TestCase):

    def test_01_matches_sympy(self):
        for p in (2, 3, 5, 7, 11, 13, 101, 1009):
            for x in range(1, p):
                self.assertEqual(multiplicative_order(x, p), n_order(x, p), f"x = {x}, p = {p}")

    def test_02_non_unit_has_no_order(self):
        self.assertIsNone(multiplicative_order(3, 9))
        self.assertIsNone(multiplicative_order(0, 11))
        self.assertIsNone(multiplicative_order(22, 11))

    def test_03_reduces_argument(self):
        self.assertEqual(multiplicative_order(13, 11), 10)


class TestGeneratorSearch(unittest.TestCase):

    def assert_generator(self, g, p):
        self.assertEqual(pow(g, p - 1, p), 1)
        for e in range(1, p - 1):
            self.assertNotEqual(pow(g, e, p), 1, f"g^{e} = 1 mod {p}")
        self.assertTrue(is_primitive_root(g, p))

    def test_01_generator_validity(self):
        rng = random.Random(42)
        for p in (11, 101, 1009, 10007):
            g = find_generator(p, rng, attempts=100)
            self.assert_generator(g, p)
            self.assertLess(g, 2 ** (p.bit_length() - 1))

    def test_02_unreachable_generator(self):
        # candidates for p = 3 are drawn from [0, 2): only 1, of order 1
        with self.assertRaises(GeneratorNotFoundError):
            find_generator(3, random.Random(1))
        with self.assertRaises(GeneratorNotFoundError):
            generate_keys(3, random.Random(1))

    def test_03_malformed_modulus(self):
        # no unit mod 9 has order 8
        with self.assertRaises(GeneratorNotFoundError):
            find_generator(9, random.Random(3))

    def test_04_zero_candidates_exhaust_redraws(self):
        with self.assertRaises(GeneratorNotFoundError):
            find_generator(11, ZeroRandom())

    def test_05_zero_candidate_is_redrawn(self):
        rng = ScriptedRandom([0, 0, 0, 2])
        self.assertEqual(find_generator(11, rng), 2)

    def test_06_non_generators_are_skipped(self):
        # 1, 3, 4, 5 have orders 1, 5, 5, 5 mod 11
        rng = ScriptedRandom([1, 3, 4, 5, 7])
        self.assertEqual(find_generator(11, rng), 7)

    def test_07_attempt_cap(self):
        rng = ScriptedRandom([1, 3, 4, 5, 7])
        with self.assertRaises(GeneratorNotFoundError):
            find_generator(11, rng, attempts=4)


class TestElGamalKeyGeneration(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.rng = random.Random(2718)
        cls.key = generate_keys(10000, cls.rng, attempts=100)

    def test_01_key_material(self):
        self.assertEqual(self.key.p, 10007)
        self.assertTrue(sympy.isprime(self.key.p))
        self.assertTrue(is_primitive_root(self.key.g, self.key.p))
        self.assertTrue(0 <= self.key.a < 2 ** (self.key.p.bit_length() - 1))
        self.assertEqual(self.key.b, pow(self.key.g, self.key.a, self.key.p))
        self.assertNotIn("a=", repr(self.key))

    def test_02_round_trip(self):
        for _ in range(50):
            m = self.rng.randrange(1, self.key.p)
            c1, c2 = encrypt(self.key, m, rng=self.rng)
            self.assertEqual(decrypt(self.key, c1, c2), m)

    def test_03_multiplicative_homomorphism(self):
        p = self.key.p
        for _ in range(20):
            m1 = self.rng.randrange(1, p)
            m2 = self.rng.randrange(1, p)
            ct = homomorphic_multiply(self.key, encrypt(self.key, m1, rng=self.rng),
                                      encrypt(self.key.public_key, m2, rng=self.rng))
            self.assertEqual(decrypt(self.key, *ct), (m1 * m2) % p)

    def test_04_prime_search_budget(self):
        with self.assertRaises(SearchBudgetExhausted):
            generate_keys(24, random.Random(0), max_prime_steps=2)

    def test_05_reproducible_with_seeded_rng(self):
        first = generate_keys(5000, random.Random(8), attempts=100)
        second = generate_keys(5000, random.Random(8), attempts=100)
        self.assertEqual(first, second)


class TestElGamalFacade(unittest.TestCase):

    def test_01_demo_flow(self):
        elgamal = ElGamal(10000, rng=random.Random(31), attempts=100)
        self.assertEqual(elgamal.p, 10007)
        cipher = elgamal.encrypt(1234)
        self.assertEqual(elgamal.decrypt(cipher), 1234)
        product = elgamal.homomorphic_multiply(cipher, elgamal.encrypt(3))
        self.assertEqual(elgamal.decrypt(product), (1234 * 3) % elgamal.p)
        self.assertEqual(elgamal.public_key.b, elgamal.keys.b)

    def test_02_prime_search_cap_is_forwarded(self):
        with self.assertRaises(SearchBudgetExhausted):
            ElGamal(24, rng=random.Random(0), max_prime_steps=2)

    def test_03_zero_redraws_are_forwarded(self):
        with self.assertRaises(GeneratorNotFoundError):
            ElGamal(11, rng=ZeroRandom(), zero_redraws=0)

    def test_04_ephemeral_exponent_by_keyword(self):
        elgamal = ElGamal(10000, rng=random.Random(31), attempts=100)
        self.assertEqual(elgamal.encrypt(5, k=9), encrypt(elgamal.keys, 5, k=9))
        self.assertEqual(encrypt(elgamal.keys, 5, k=9)[0], pow(elgamal.g, 9, elgamal.p))


if __name__ == "__main__":
    unittest.main()
