import functools

from rangepool.constants import MAX_UINT128, MAX_UINT256
from rangepool.exceptions import EVMRevertError
from rangepool.libraries._config import LIB_CACHE_SIZE
from rangepool.types.aliases import SqrtPriceX96, Tick

"""
Conversions between a tick index and the Q64.96 square root price sqrt(1.0001^tick).

ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/TickMath.sol
"""

MIN_TICK = -887272
MAX_TICK = -MIN_TICK
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# Q128.128 values of 1/sqrt(1.0001)^(2^i) for i = 0..19, applied for each set bit of |tick|
_RATIO_MULTIPLIERS = (
    340265354078544963557816517032075149313,
    340248342086729790484326174814286782778,
    340214320654664324051920982716015181260,
    340146287995602323631171512101879684304,
    340010263488231146823593991679159461444,
    339738377640345403697157401104375502016,
    339195258003219555707034227454543997025,
    338111622100601834656805679988414885971,
    335954724994790223023589805789778977700,
    331682121138379247127172139078559817300,
    323299236684853023288211250268160618739,
    307163716377032989948697243942600083929,
    277268403626896220162999269216087595045,
    225923453940442621947126027127485391333,
    149997214084966997727330242082538205943,
    66119101136024775622716233608466517926,
    12847376061809297530290974190478138313,
    485053260817066172746253684029974020,
    691415978906521570653435304214168,
    1404880482679654955896180642,
)

# log_sqrt(1.0001)(2) as a Q128.128 multiplier
_LOG_SQRT10001_OF_2 = 255738958999603826347141

# Error bounds for the log approximation, valid for sqrt prices in (2^-64, 2^64). MIN_SQRT_RATIO is
# above 2^-64, so both bounds hold across the whole tick range.
_TICK_LOW_ERROR = 3402992956809132418596140100660247210
_TICK_HIGH_ERROR = 291339464771989622907027621153398088495


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_sqrt_ratio_at_tick(tick: Tick) -> SqrtPriceX96:
    """
    Calculate sqrt(1.0001^tick) * 2^96, rounded up.
    """

    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        raise EVMRevertError(error="required: abs_tick <= MAX_TICK")

    ratio = MAX_UINT128 + 1
    for bit, multiplier in enumerate(_RATIO_MULTIPLIERS):
        if abs_tick & (1 << bit):
            ratio = (ratio * multiplier) >> 128

    # The product is 1/sqrt(1.0001)^|tick|, so invert it for positive ticks
    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Convert Q128.128 to Q128.96. Rounding up keeps get_tick_at_sqrt_ratio consistent for every
    # value this function returns.
    return (ratio >> 32) + (ratio % (1 << 32) != 0)


@functools.lru_cache(maxsize=LIB_CACHE_SIZE)
def get_tick_at_sqrt_ratio(sqrt_price_x96: SqrtPriceX96) -> Tick:
    """
    Find the greatest tick such that get_sqrt_ratio_at_tick(tick) <= sqrt_price_x96.
    """

    if not (MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO):
        raise EVMRevertError(error="R")

    ratio = sqrt_price_x96 << 32
    msb = ratio.bit_length() - 1

    # Normalize to a Q1.127 mantissa in [1, 2)
    r = ratio >> (msb - 127) if msb >= 128 else ratio << (127 - msb)  # noqa: PLR2004

    # Integer part of log2, then 14 fractional bits by repeated squaring
    log_2 = (msb - 128) << 64
    for bit in range(63, 49, -1):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << bit
        r >>= f

    log_sqrt10001 = log_2 * _LOG_SQRT10001_OF_2

    tick_low = (log_sqrt10001 - _TICK_LOW_ERROR) >> 128
    tick_high = (log_sqrt10001 + _TICK_HIGH_ERROR) >> 128

    if tick_low == tick_high:
        return tick_low
    return tick_high if get_sqrt_ratio_at_tick(tick_high) <= sqrt_price_x96 else tick_low
