class HomocryptError(Exception):
    """Base class for errors raised by homocrypt."""


class FatalConfigurationError(HomocryptError):
    """The Paillier base failed its validity check for the drawn primes."""


class GeneratorNotFoundError(HomocryptError):
    """No primitive root was found within the generator search caps."""


class SearchBudgetExhausted(HomocryptError):
    """A capped prime search ran out of candidates."""


class InexactDivisionError(HomocryptError, ArithmeticError):
    """L(x) = (x - 1) / n was requested for an x with n not dividing x - 1."""
