from rangepool.constants import MAX_INT128, MAX_UINT128, MIN_INT128, MIN_UINT128
from rangepool.exceptions import EVMRevertError


def add_delta(x: int, y: int) -> int:
    """
    Add a signed liquidity delta to an unsigned liquidity value.

    The result is checked directly against the uint128 range instead of relying on wrapping casts.
    Underflow raises with reason "LS" (liquidity sub), overflow with "LA" (liquidity add).
    """

    if not (MIN_UINT128 <= x <= MAX_UINT128):
        raise EVMRevertError(error="x not a valid uint128")
    if not (MIN_INT128 <= y <= MAX_INT128):
        raise EVMRevertError(error="y not a valid int128")

    z = x + y

    if z < MIN_UINT128:
        raise EVMRevertError(error="LS")
    if z > MAX_UINT128:
        raise EVMRevertError(error="LA")

    return z
