"""
Random helpers used by the choice, dice, shuffle and secret commands.

All sampling goes through the module-level ``random`` generator so tests can
seed or patch it.
"""

import math
import random
import string
from enum import Enum
from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')

ALPHANUMERIC = string.ascii_uppercase + string.ascii_lowercase + string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


class Alphabet(Enum):
    """Character sets for random string generation"""
    ALPHANUMERIC = "alphanumeric"
    WITH_SYMBOLS = "with_symbols"

    @property
    def characters(self) -> str:
        if self is Alphabet.WITH_SYMBOLS:
            return ALPHANUMERIC + SYMBOLS
        return ALPHANUMERIC


def random_item(items: Sequence[T]) -> Optional[T]:
    """
    Pick one element uniformly.

    Args:
        items: Candidates

    Returns:
        The selected element, or None when ``items`` is empty
    """
    if not items:
        return None
    return items[math.floor(random.random() * len(items))]


def random_int(minimum: float, maximum: float) -> int:
    """
    Return a uniformly distributed integer in ``[ceil(minimum), floor(maximum)]``.

    Args:
        minimum: Lower bound, inclusive
        maximum: Upper bound, inclusive

    Returns:
        The sampled integer
    """
    low = math.ceil(minimum)
    high = math.floor(maximum)
    if low == high:
        return low
    return math.floor(random.random() * (high - low + 1)) + low


def shuffle(items: Sequence[T]) -> List[T]:
    """
    Fisher-Yates shuffle into a new list; ``items`` is left untouched.

    Args:
        items: Elements to shuffle

    Returns:
        A new list holding the same elements in random order
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(random.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def random_string(length: int, alphabet: Alphabet = Alphabet.ALPHANUMERIC) -> str:
    """
    Build a string of ``length`` characters sampled independently from ``alphabet``.

    Args:
        length: Number of characters
        alphabet: Character set to draw from

    Returns:
        The generated string
    """
    characters = alphabet.characters
    return ''.join(
        characters[math.floor(random.random() * len(characters))]
        for _ in range(length)
    )


def parse_command(text: str) -> List[str]:
    """
    Split command text on runs of whitespace.

    Empty or whitespace-only text yields an empty list.
    """
    return text.split()
