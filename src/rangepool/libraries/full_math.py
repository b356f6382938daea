from rangepool.constants import MAX_UINT256, MIN_UINT256
from rangepool.exceptions import EVMRevertError
from rangepool.libraries.functions import mulmod


def _check_uint256(value: int, name: str) -> None:
    if not (MIN_UINT256 <= value <= MAX_UINT256):
        raise EVMRevertError(error=f"Invalid value for {name}.")


def muldiv(
    a: int,
    b: int,
    denominator: int,
) -> int:
    """
    Calculate floor(a * b / denominator) with full precision.

    The reference implementation works around a 512-bit intermediate product. Python integers have
    arbitrary precision, so only the operand and result ranges are checked.
    """

    _check_uint256(a, "a")
    _check_uint256(b, "b")
    _check_uint256(denominator, "denominator")

    if denominator == 0:
        raise EVMRevertError(error="DIVISION BY ZERO")

    result = (a * b) // denominator
    if result > MAX_UINT256:
        raise EVMRevertError(error="Invalid result, does not fit in uint256")

    return result


def muldiv_rounding_up(a: int, b: int, denominator: int) -> int:
    """
    Calculate ceil(a * b / denominator) with full precision.
    """

    result = muldiv(a, b, denominator)
    if mulmod(a, b, denominator) == 0:
        return result

    if result == MAX_UINT256:
        raise EVMRevertError(error="Rounded result does not fit in uint256")
    return result + 1
