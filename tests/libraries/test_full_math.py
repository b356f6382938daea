import hypothesis
import hypothesis.strategies
import pytest

from rangepool.constants import MAX_UINT256
from rangepool.exceptions import EVMRevertError
from rangepool.libraries.constants import Q128
from rangepool.libraries.full_math import muldiv, muldiv_rounding_up

# Reference vectors from the Uniswap V3 core test suite
# ref: https://github.com/Uniswap/v3-core/blob/main/test/FullMath.spec.ts

uint256 = hypothesis.strategies.integers(min_value=0, max_value=MAX_UINT256)


@pytest.mark.parametrize("func", [muldiv, muldiv_rounding_up])
@pytest.mark.parametrize(
    ("a", "b", "denominator"),
    [
        (Q128, 5, 0),
        (Q128, Q128, 0),
        (Q128, Q128, 1),
        (MAX_UINT256, MAX_UINT256, MAX_UINT256 - 1),
        (-1, Q128, Q128),
        (Q128, -1, Q128),
        (Q128, Q128, MAX_UINT256 + 1),
    ],
)
def test_reverts(func, a, b, denominator):
    with pytest.raises(EVMRevertError):
        func(a, b, denominator)


def test_muldiv():
    assert muldiv(MAX_UINT256, MAX_UINT256, MAX_UINT256) == MAX_UINT256
    assert muldiv(Q128, 50 * Q128 // 100, 150 * Q128 // 100) == Q128 // 3
    assert muldiv(Q128, 35 * Q128, 8 * Q128) == 4375 * Q128 // 1000
    assert muldiv(Q128, 1000 * Q128, 3000 * Q128) == Q128 // 3


def test_muldiv_rounding_up():
    assert muldiv_rounding_up(MAX_UINT256, MAX_UINT256, MAX_UINT256) == MAX_UINT256

    # without phantom overflow
    assert muldiv_rounding_up(Q128, 50 * Q128 // 100, 150 * Q128 // 100) == Q128 // 3 + 1

    # with phantom overflow
    assert muldiv_rounding_up(Q128, 35 * Q128, 8 * Q128) == 4375 * Q128 // 1000

    # with phantom overflow and a repeating decimal
    assert muldiv_rounding_up(Q128, 1000 * Q128, 3000 * Q128) == Q128 // 3 + 1

    # the floored result fits, but rounding up would not
    with pytest.raises(EVMRevertError):
        muldiv_rounding_up(
            535006138814359,
            432862656469423142931042426214547535783388063929571229938474969,
            2,
        )
    with pytest.raises(EVMRevertError):
        muldiv_rounding_up(
            115792089237316195423570985008687907853269984659341747863450311749907997002549,
            115792089237316195423570985008687907853269984659341747863450311749907997002550,
            115792089237316195423570985008687907853269984653042931687443039491902864365164,
        )


@hypothesis.given(
    a=uint256,
    b=uint256,
    denominator=hypothesis.strategies.integers(min_value=1, max_value=MAX_UINT256),
)
def test_rounding_against_exact_product(a: int, b: int, denominator: int):
    floored, remainder = divmod(a * b, denominator)

    if floored > MAX_UINT256:
        with pytest.raises(EVMRevertError):
            muldiv(a, b, denominator)
        return

    assert muldiv(a, b, denominator) == floored

    if remainder and floored == MAX_UINT256:
        with pytest.raises(EVMRevertError):
            muldiv_rounding_up(a, b, denominator)
    else:
        assert muldiv_rounding_up(a, b, denominator) == floored + (remainder > 0)
