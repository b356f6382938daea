from math import isqrt

import hypothesis
import hypothesis.strategies
import pytest

from rangepool.libraries.liquidity_amounts import (
    get_amount0_for_liquidity,
    get_amount1_for_liquidity,
    get_amounts_for_liquidity,
    get_amounts_for_liquidity_delta,
    get_liquidity_for_amount0,
    get_liquidity_for_amount1,
    get_liquidity_for_amounts,
)

# Reference vectors from the Uniswap V3 periphery test suite
# ref: https://github.com/Uniswap/v3-periphery/blob/main/test/LiquidityAmounts.spec.ts


def encode_price_sqrt(reserve1: int, reserve0: int) -> int:
    """
    Returns the sqrt price as a Q64.96 value, rounded down
    """
    return isqrt((reserve1 << 192) // reserve0)


SQRT_PRICE_A = encode_price_sqrt(100, 110)
SQRT_PRICE_B = encode_price_sqrt(110, 100)

PRICES = {
    "inside": encode_price_sqrt(1, 1),
    "below": encode_price_sqrt(99, 110),
    "above": encode_price_sqrt(111, 100),
    "lower boundary": SQRT_PRICE_A,
    "upper boundary": SQRT_PRICE_B,
}


@pytest.mark.parametrize(
    ("position", "liquidity", "amounts"),
    [
        ("inside", 2148, (99, 99)),
        ("below", 1048, (99, 0)),
        ("above", 2097, (0, 199)),
        ("lower boundary", 1048, (99, 0)),
        ("upper boundary", 2097, (0, 199)),
    ],
)
def test_liquidity_and_amounts(position: str, liquidity: int, amounts: tuple[int, int]):
    sqrt_price_x96 = PRICES[position]

    assert (
        get_liquidity_for_amounts(sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, 100, 200)
        == liquidity
    )
    assert (
        get_amounts_for_liquidity(sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, liquidity)
        == amounts
    )


def test_range_order_does_not_matter():
    sqrt_price_x96 = PRICES["inside"]
    assert get_liquidity_for_amounts(
        sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, 100, 200
    ) == get_liquidity_for_amounts(sqrt_price_x96, SQRT_PRICE_B, SQRT_PRICE_A, 100, 200)
    assert get_liquidity_for_amount0(SQRT_PRICE_A, SQRT_PRICE_B, 100) == get_liquidity_for_amount0(
        SQRT_PRICE_B, SQRT_PRICE_A, 100
    )
    assert get_liquidity_for_amount1(SQRT_PRICE_A, SQRT_PRICE_B, 200) == get_liquidity_for_amount1(
        SQRT_PRICE_B, SQRT_PRICE_A, 200
    )
    assert get_amount0_for_liquidity(SQRT_PRICE_A, SQRT_PRICE_B, 1048) == get_amount0_for_liquidity(
        SQRT_PRICE_B, SQRT_PRICE_A, 1048
    )
    assert get_amount1_for_liquidity(SQRT_PRICE_A, SQRT_PRICE_B, 2097) == get_amount1_for_liquidity(
        SQRT_PRICE_B, SQRT_PRICE_A, 2097
    )


@pytest.mark.parametrize(
    ("position", "liquidity", "amounts"),
    [
        ("inside", 2148, (100, 100)),
        ("below", 1048, (100, 0)),
        ("above", 2097, (0, 200)),
        ("lower boundary", 1048, (100, 0)),
        ("upper boundary", 2097, (0, 200)),
    ],
)
def test_amounts_for_liquidity_delta(position: str, liquidity: int, amounts: tuple[int, int]):
    sqrt_price_x96 = PRICES[position]

    # Adding liquidity rounds up
    assert (
        get_amounts_for_liquidity_delta(sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, liquidity)
        == amounts
    )

    # Removing liquidity rounds down and gives negative amounts
    amount0, amount1 = get_amounts_for_liquidity(
        sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, liquidity
    )
    assert get_amounts_for_liquidity_delta(
        sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, -liquidity
    ) == (-amount0, -amount1)


@hypothesis.given(
    sqrt_price_x96=hypothesis.strategies.integers(
        min_value=SQRT_PRICE_A - 10**27, max_value=SQRT_PRICE_B + 10**27
    ),
    liquidity=hypothesis.strategies.integers(min_value=1, max_value=2**100),
)
def test_adding_never_costs_less_than_removing_returns(sqrt_price_x96: int, liquidity: int):
    added = get_amounts_for_liquidity_delta(sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, liquidity)
    removed = get_amounts_for_liquidity_delta(
        sqrt_price_x96, SQRT_PRICE_A, SQRT_PRICE_B, -liquidity
    )

    for amount_added, amount_removed in zip(added, removed, strict=True):
        assert amount_added >= 0
        assert amount_removed <= 0
        assert 0 <= amount_added + amount_removed <= 1
