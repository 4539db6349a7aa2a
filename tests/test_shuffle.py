import random

import pytest

from mlt_exam.shuffle import (
    canonical_to_displayed, displayed_to_canonical, fisher_yates, option_order, permutation,
)


def test_fisher_yates_is_a_permutation():
    items = list(range(50))
    result = fisher_yates(items, random.Random(1))
    assert sorted(result) == items
    assert items == list(range(50))  # input untouched


def test_fisher_yates_same_seed_same_order():
    assert fisher_yates(list("abcdef"), random.Random(9)) == fisher_yates(list("abcdef"), random.Random(9))


def test_fisher_yates_handles_empty_and_single():
    assert fisher_yates([], random.Random(0)) == []
    assert fisher_yates(["x"], random.Random(0)) == ["x"]


def test_permutation_reaches_every_ordering():
    rng = random.Random(3)
    seen = {tuple(permutation(3, rng)) for _ in range(300)}
    assert len(seen) == 6


def test_option_order_is_stable_per_render():
    assert option_order("att", "q1", 4) == option_order("att", "q1", 4)
    assert sorted(option_order("att", "q1", 4)) == [0, 1, 2, 3]


def test_display_mapping_round_trip():
    order = option_order("att", "q9", 5)
    for shown in range(5):
        canonical = displayed_to_canonical(order, shown)
        assert canonical_to_displayed(order, canonical) == shown


def test_displayed_index_out_of_range():
    with pytest.raises(IndexError):
        displayed_to_canonical([1, 0], 2)
