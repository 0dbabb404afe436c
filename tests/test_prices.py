"""Product-of-others price normalization tests."""

from decimal import Decimal

from conftest import price_sum
from fpmmindex.amm.prices import calculate_prices


def test_balanced_reserves_split_evenly():
    assert calculate_prices([100, 100]) == [Decimal("0.5"), Decimal("0.5")]


def test_no_liquidity_is_all_zero():
    assert calculate_prices([0, 0, 0]) == [Decimal(0)] * 3


def test_cheaper_outcome_has_larger_reserve():
    prices = calculate_prices([104, 110])
    assert prices[0] > prices[1]
    assert abs(prices[0] - Decimal(110) / Decimal(214)) < Decimal("1e-25")
    assert abs(price_sum(prices) - 1) < Decimal("1e-35")


def test_three_outcomes():
    # W = [2*4, 1*4, 1*2] = [8, 4, 2]
    prices = calculate_prices([1, 2, 4])
    expected = [Decimal(8) / 14, Decimal(4) / 14, Decimal(2) / 14]
    for got, want in zip(prices, expected):
        assert abs(got - want) < Decimal("1e-25")
    assert abs(price_sum(prices) - 1) < Decimal("1e-35")


def test_single_empty_reserve_saturates():
    assert calculate_prices([0, 50]) == [Decimal(1), Decimal(0)]


def test_two_empty_reserves_collapse_to_zero():
    assert calculate_prices([0, 0, 5]) == [Decimal(0)] * 3


def test_large_reserves_keep_precision():
    big = 2**200
    prices = calculate_prices([big, big + 1], precision=80)
    assert prices[0] > prices[1]
    assert abs(price_sum(prices) - 1) < Decimal("1e-70")
