from . import (
    full_math,
    functions,
    liquidity_amounts,
    liquidity_math,
    sqrt_price_math,
    swap_math,
    tick_math,
    unsafe_math,
)

__all__ = (
    "full_math",
    "functions",
    "liquidity_amounts",
    "liquidity_math",
    "sqrt_price_math",
    "swap_math",
    "tick_math",
    "unsafe_math",
)
