# Default parameters for key generation and prime search

# Paillier modulus size (in bits) and primality certainty
PAILLIER_KEY_SIZE = 512
PAILLIER_CERTAINTY = 64

# Fixed Paillier base
PAILLIER_BASE = 2

# Certainty used by the incremental next-prime search
NEXT_PRIME_CERTAINTY = 64

# ElGamal generator search caps
GENERATOR_ATTEMPTS = 10
GENERATOR_ZERO_REDRAWS = 10
