"""
Random helper tests

- range sampling including degenerate ranges
- shuffle leaves its input alone and is roughly uniform
- random strings use the requested alphabet
- command tokenization
"""

from collections import Counter
from unittest.mock import patch

from trrbot.utils.random_utils import (
    ALPHANUMERIC,
    SYMBOLS,
    Alphabet,
    parse_command,
    random_int,
    random_item,
    random_string,
    shuffle,
)


class TestRandomItem:
    """random_item"""

    def test_empty_returns_none(self):
        assert random_item([]) is None

    def test_returns_member(self):
        items = ["a", "b", "c"]
        for _ in range(50):
            assert random_item(items) in items

    def test_uses_uniform_variate(self):
        with patch("trrbot.utils.random_utils.random.random", return_value=0.999):
            assert random_item(["a", "b", "c"]) == "c"
        with patch("trrbot.utils.random_utils.random.random", return_value=0.0):
            assert random_item(["a", "b", "c"]) == "a"


class TestRandomInt:
    """random_int"""

    def test_equal_bounds_always_return_bound(self):
        for _ in range(1000):
            assert random_int(5, 5) == 5

    def test_inclusive_bounds(self):
        seen = {random_int(1, 3) for _ in range(500)}
        assert seen == {1, 2, 3}

    def test_bounds_are_rounded_inward(self):
        for _ in range(200):
            assert 2 <= random_int(1.2, 3.8) <= 3

    def test_rounded_to_single_value(self):
        assert random_int(4.5, 5.5) == 5


class TestShuffle:
    """shuffle"""

    def test_returns_new_list_with_same_elements(self):
        items = ["a", "b", "c"]
        result = shuffle(items)

        assert result is not items
        assert sorted(result) == sorted(items)
        assert items == ["a", "b", "c"]

    def test_permutations_roughly_uniform(self):
        trials = 6000
        counts = Counter(tuple(shuffle(["a", "b", "c"])) for _ in range(trials))

        assert len(counts) == 6
        expected = trials / 6
        for permutation, count in counts.items():
            assert abs(count - expected) < expected * 0.25, f"{permutation} appeared {count} times"

    def test_empty_and_single(self):
        assert shuffle([]) == []
        assert shuffle(["x"]) == ["x"]


class TestRandomString:
    """random_string"""

    def test_length(self):
        assert len(random_string(0)) == 0
        assert len(random_string(37)) == 37

    def test_alphanumeric_alphabet(self):
        assert set(random_string(500)) <= set(ALPHANUMERIC)

    def test_symbol_alphabet(self):
        value = random_string(500, Alphabet.WITH_SYMBOLS)
        assert set(value) <= set(ALPHANUMERIC + SYMBOLS)


class TestParseCommand:
    """parse_command"""

    def test_splits_on_whitespace_runs(self):
        assert parse_command("  choice  ramen\tcurry \n sushi ") == ["choice", "ramen", "curry", "sushi"]

    def test_empty_input_yields_no_tokens(self):
        assert parse_command("") == []

    def test_whitespace_only_input_yields_no_tokens(self):
        assert parse_command(" \t\n ") == []
