"""
Conversions between a liquidity amount and the token amounts it represents across a price range,
taking into account where the current price sits relative to that range.

ref: https://github.com/Uniswap/v3-periphery/blob/main/contracts/libraries/LiquidityAmounts.sol
"""

from rangepool.libraries.constants import Q96
from rangepool.libraries.full_math import muldiv
from rangepool.libraries.functions import to_uint128
from rangepool.libraries.sqrt_price_math import get_amount0_delta, get_amount1_delta
from rangepool.types.aliases import Liquidity, SqrtPriceX96


def _sorted(a: SqrtPriceX96, b: SqrtPriceX96) -> tuple[SqrtPriceX96, SqrtPriceX96]:
    return (a, b) if a <= b else (b, a)


def get_amounts_for_liquidity_delta(
    sqrt_price_x96: SqrtPriceX96,
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity_delta: int,
) -> tuple[int, int]:
    """
    Signed token amounts for adding (positive delta) or removing (negative delta) liquidity.

    Positive deltas round up, giving the amounts the pool must receive. Negative deltas round down
    and are returned as negative amounts, giving what the pool owes.
    """

    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if sqrt_price_x96 <= sqrt_ratio_lower:
        # below the range, the position is held entirely in token0
        return get_amount0_delta(sqrt_ratio_lower, sqrt_ratio_upper, liquidity_delta), 0

    if sqrt_price_x96 < sqrt_ratio_upper:
        return (
            get_amount0_delta(sqrt_price_x96, sqrt_ratio_upper, liquidity_delta),
            get_amount1_delta(sqrt_ratio_lower, sqrt_price_x96, liquidity_delta),
        )

    # above the range, the position is held entirely in token1
    return 0, get_amount1_delta(sqrt_ratio_lower, sqrt_ratio_upper, liquidity_delta)


def get_liquidity_for_amount0(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    amount0: int,
) -> Liquidity:
    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    intermediate = muldiv(sqrt_ratio_lower, sqrt_ratio_upper, Q96)
    return to_uint128(muldiv(amount0, intermediate, sqrt_ratio_upper - sqrt_ratio_lower))


def get_liquidity_for_amount1(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    amount1: int,
) -> Liquidity:
    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    return to_uint128(muldiv(amount1, Q96, sqrt_ratio_upper - sqrt_ratio_lower))


def get_liquidity_for_amounts(
    sqrt_price_x96: SqrtPriceX96,
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    amount0: int,
    amount1: int,
) -> Liquidity:
    """
    The maximum liquidity that can be funded by `amount0` and `amount1` at the current price.
    """

    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if sqrt_price_x96 <= sqrt_ratio_lower:
        return get_liquidity_for_amount0(sqrt_ratio_lower, sqrt_ratio_upper, amount0)

    if sqrt_price_x96 < sqrt_ratio_upper:
        return min(
            get_liquidity_for_amount0(sqrt_price_x96, sqrt_ratio_upper, amount0),
            get_liquidity_for_amount1(sqrt_ratio_lower, sqrt_price_x96, amount1),
        )

    return get_liquidity_for_amount1(sqrt_ratio_lower, sqrt_ratio_upper, amount1)


def get_amount0_for_liquidity(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
) -> int:
    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    return (
        muldiv(liquidity << 96, sqrt_ratio_upper - sqrt_ratio_lower, sqrt_ratio_upper)
        // sqrt_ratio_lower
    )


def get_amount1_for_liquidity(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
) -> int:
    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    return muldiv(liquidity, sqrt_ratio_upper - sqrt_ratio_lower, Q96)


def get_amounts_for_liquidity(
    sqrt_price_x96: SqrtPriceX96,
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
) -> tuple[int, int]:
    """
    The token amounts held by `liquidity` at the current price, rounded down.
    """

    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if sqrt_price_x96 <= sqrt_ratio_lower:
        return get_amount0_for_liquidity(sqrt_ratio_lower, sqrt_ratio_upper, liquidity), 0

    if sqrt_price_x96 < sqrt_ratio_upper:
        return (
            get_amount0_for_liquidity(sqrt_price_x96, sqrt_ratio_upper, liquidity),
            get_amount1_for_liquidity(sqrt_ratio_lower, sqrt_price_x96, liquidity),
        )

    return 0, get_amount1_for_liquidity(sqrt_ratio_lower, sqrt_ratio_upper, liquidity)
