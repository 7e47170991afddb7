import logging

from .exceptions import (
    FatalConfigurationError,
    GeneratorNotFoundError,
    HomocryptError,
    InexactDivisionError,
    SearchBudgetExhausted,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "FatalConfigurationError",
    "GeneratorNotFoundError",
    "HomocryptError",
    "InexactDivisionError",
    "SearchBudgetExhausted",
]
