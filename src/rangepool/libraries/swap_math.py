from rangepool.libraries import full_math, sqrt_price_math
from rangepool.libraries.constants import FEE_DENOMINATOR
from rangepool.types.aliases import Liquidity, Pip, SqrtPriceX96

type AmountIn = int
type AmountOut = int
type FeeAmount = int


def _amount_in(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
    zero_for_one: bool,
) -> AmountIn:
    delta = sqrt_price_math.get_amount0_delta if zero_for_one else sqrt_price_math.get_amount1_delta
    return delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, round_up=True)


def _amount_out(
    sqrt_ratio_a_x96: SqrtPriceX96,
    sqrt_ratio_b_x96: SqrtPriceX96,
    liquidity: Liquidity,
    zero_for_one: bool,
) -> AmountOut:
    delta = sqrt_price_math.get_amount1_delta if zero_for_one else sqrt_price_math.get_amount0_delta
    return delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity, round_up=False)


def compute_swap_step(
    sqrt_ratio_x96_current: SqrtPriceX96,
    sqrt_ratio_x96_target: SqrtPriceX96,
    liquidity: Liquidity,
    amount_remaining: int,
    fee_pips: Pip,
) -> tuple[SqrtPriceX96, AmountIn, AmountOut, FeeAmount]:
    """
    Compute the result of swapping some amount in or out, given the parameters of the swap.

    The fee, plus the amount in, will never exceed the amount remaining if the swap's
    `amount_remaining` is positive (exact input). The swap direction is inferred from the
    relative position of the current and target prices.

    Returns the price after the swap, the amount of input token taken, the amount of output token
    paid, and the fee taken from the input amount.
    """

    zero_for_one = sqrt_ratio_x96_current >= sqrt_ratio_x96_target
    exact_in = amount_remaining >= 0

    assert liquidity >= 0

    amount_in = amount_out = 0

    if exact_in:
        amount_remaining_less_fee = full_math.muldiv(
            amount_remaining, FEE_DENOMINATOR - fee_pips, FEE_DENOMINATOR
        )
        amount_in = _amount_in(
            sqrt_ratio_x96_target, sqrt_ratio_x96_current, liquidity, zero_for_one
        )
        sqrt_ratio_x96_next = (
            sqrt_ratio_x96_target
            if amount_remaining_less_fee >= amount_in
            else sqrt_price_math.get_next_sqrt_price_from_input(
                sqrt_ratio_x96_current, liquidity, amount_remaining_less_fee, zero_for_one
            )
        )
    else:
        amount_out = _amount_out(
            sqrt_ratio_x96_target, sqrt_ratio_x96_current, liquidity, zero_for_one
        )
        sqrt_ratio_x96_next = (
            sqrt_ratio_x96_target
            if -amount_remaining >= amount_out
            else sqrt_price_math.get_next_sqrt_price_from_output(
                sqrt_ratio_x96_current, liquidity, -amount_remaining, zero_for_one
            )
        )

    reached_target = sqrt_ratio_x96_next == sqrt_ratio_x96_target

    # Amounts computed against the target are reused only when the target was actually reached
    if not (reached_target and exact_in):
        amount_in = _amount_in(
            sqrt_ratio_x96_next, sqrt_ratio_x96_current, liquidity, zero_for_one
        )
    if not (reached_target and not exact_in):
        amount_out = _amount_out(
            sqrt_ratio_x96_next, sqrt_ratio_x96_current, liquidity, zero_for_one
        )

    if not exact_in and amount_out > -amount_remaining:
        amount_out = -amount_remaining

    if exact_in and not reached_target:
        # the target was not reached, so the remainder of the maximum input is taken as fee
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = full_math.muldiv_rounding_up(
            amount_in, fee_pips, FEE_DENOMINATOR - fee_pips
        )

    return sqrt_ratio_x96_next, amount_in, amount_out, fee_amount
