"""
Token amount deltas between two square root prices, and the price reached after adding or
removing an amount of either token at a fixed liquidity.
"""

import functools

from rangepool.constants import MAX_UINT160, MAX_UINT256
from rangepool.exceptions import EVMRevertError
from rangepool.libraries._config import LIB_CACHE_SIZE
from rangepool.libraries.constants import Q96, Q96_RESOLUTION
from rangepool.libraries.full_math import muldiv, muldiv_rounding_up
from rangepool.libraries.functions import to_int256, to_uint160
from rangepool.libraries.unsafe_math import div_rounding_up
from rangepool.types.aliases import Liquidity, SqrtPriceX96


def _sorted(a: SqrtPriceX96, b: SqrtPriceX96) -> tuple[SqrtPriceX96, SqrtPriceX96]:
    return (a, b) if a <= b else (b, a)


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_amount0_delta(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
    round_up: bool | None = None,
) -> int:
    """
    Amount of token0 held by `liquidity` between the two prices, calculated as
    liquidity / sqrt(lower) - liquidity / sqrt(upper).

    With `round_up` given, `liquidity` must be unsigned and the unsigned amount is returned. Without
    it, `liquidity` is treated as a signed delta: a positive delta rounds up (owed to the pool) and a
    negative delta rounds down and returns a negative amount (owed by the pool).
    """

    if round_up is None:
        if liquidity < 0:
            return to_int256(
                -get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity, round_up=False)
            )
        return to_int256(
            get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, round_up=True)
        )

    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if sqrt_ratio_lower <= 0:
        raise EVMRevertError(error="required: sqrt_ratio_a_x96 > 0")

    numerator1 = liquidity << Q96_RESOLUTION
    numerator2 = sqrt_ratio_upper - sqrt_ratio_lower

    if round_up:
        return div_rounding_up(
            muldiv_rounding_up(numerator1, numerator2, sqrt_ratio_upper),
            sqrt_ratio_lower,
        )
    return muldiv(numerator1, numerator2, sqrt_ratio_upper) // sqrt_ratio_lower


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_amount1_delta(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
    round_up: bool | None = None,
) -> int:
    """
    Amount of token1 held by `liquidity` between the two prices, calculated as
    liquidity * (sqrt(upper) - sqrt(lower)).

    Rounding and sign conventions match `get_amount0_delta`.
    """

    if round_up is None:
        if liquidity < 0:
            return to_int256(
                -get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, -liquidity, round_up=False)
            )
        return to_int256(
            get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, round_up=True)
        )

    sqrt_ratio_lower, sqrt_ratio_upper = _sorted(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    price_difference = sqrt_ratio_upper - sqrt_ratio_lower

    if round_up:
        return muldiv_rounding_up(liquidity, price_difference, Q96)
    return muldiv(liquidity, price_difference, Q96)


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount: int,
    add: bool,
) -> SqrtPriceX96:
    # Rounding up keeps the price from moving further than the amount allows in either direction
    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << Q96_RESOLUTION
    product = amount * sqrt_price_x96

    if not add:
        if product >= numerator1:
            raise EVMRevertError(error="required: numerator1 > product")
        return to_uint160(muldiv_rounding_up(numerator1, sqrt_price_x96, numerator1 - product))

    if product <= MAX_UINT256 and numerator1 + product <= MAX_UINT256:
        return muldiv_rounding_up(numerator1, sqrt_price_x96, numerator1 + product)

    # liquidity / (liquidity / price + amount) avoids the overflowing product
    return div_rounding_up(numerator1, numerator1 // sqrt_price_x96 + amount)


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount: int,
    add: bool,
) -> SqrtPriceX96:
    if add:
        quotient = (
            (amount << Q96_RESOLUTION) // liquidity
            if amount <= MAX_UINT160
            else muldiv(amount, Q96, liquidity)
        )
        return to_uint160(sqrt_price_x96 + quotient)

    quotient = (
        div_rounding_up(amount << Q96_RESOLUTION, liquidity)
        if amount <= MAX_UINT160
        else muldiv_rounding_up(amount, Q96, liquidity)
    )
    if sqrt_price_x96 <= quotient:
        raise EVMRevertError(error="required: sqrt_price_x96 > quotient")
    return sqrt_price_x96 - quotient


def _check_price_and_liquidity(sqrt_price_x96: SqrtPriceX96, liquidity: Liquidity) -> None:
    if sqrt_price_x96 <= 0:
        raise EVMRevertError(error="required: sqrt_price_x96 > 0")
    if liquidity <= 0:
        raise EVMRevertError(error="required: liquidity > 0")


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_next_sqrt_price_from_input(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount_in: int,
    zero_for_one: bool,
) -> SqrtPriceX96:
    """
    The price after `amount_in` of the input token is added. Never passes the true price.
    """

    _check_price_and_liquidity(sqrt_price_x96, liquidity)
    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(
            sqrt_price_x96, liquidity, amount_in, add=True
        )
    return get_next_sqrt_price_from_amount1_rounding_down(
        sqrt_price_x96, liquidity, amount_in, add=True
    )


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_next_sqrt_price_from_output(
    sqrt_price_x96: SqrtPriceX96,
    liquidity: Liquidity,
    amount_out: int,
    zero_for_one: bool,
) -> SqrtPriceX96:
    """
    The price after `amount_out` of the output token is removed. Always reaches or passes the
    true price.
    """

    _check_price_and_liquidity(sqrt_price_x96, liquidity)
    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(
            sqrt_price_x96, liquidity, amount_out, add=False
        )
    return get_next_sqrt_price_from_amount0_rounding_up(
        sqrt_price_x96, liquidity, amount_out, add=False
    )
