from dataclasses import dataclass
from typing import Self

from rangepool.constants import MAX_UINT256
from rangepool.exceptions import FeeGrowthDecrease, FeeGrowthOverflow
from rangepool.libraries.constants import Q128
from rangepool.libraries.full_math import muldiv
from rangepool.types.aliases import Liquidity, X128


@dataclass(slots=True, frozen=True, order=True)
class FeeGrowth:
    """
    Accumulated fees earned per unit of liquidity, as a Q128.128 fixed point value.

    The value can only grow. `accrue` returns a new accumulator and there is no operation that
    produces a smaller one from an existing one, so a position holding a snapshot can always settle
    a non-negative claim against the current value.
    """

    x128: X128 = 0

    def __post_init__(self) -> None:
        if self.x128 < 0:
            raise FeeGrowthDecrease(message=f"Invalid fee growth value {self.x128}")
        if self.x128 > MAX_UINT256:
            raise FeeGrowthOverflow(value=self.x128)

    def __int__(self) -> int:
        return self.x128

    def accrue(self, fee_amount: int, liquidity: Liquidity) -> Self:
        """
        Distribute `fee_amount` across `liquidity` units and return the grown accumulator.
        """

        if fee_amount < 0:
            raise FeeGrowthDecrease(message=f"Cannot accrue a negative fee amount {fee_amount}")
        if fee_amount == 0:
            return self
        return type(self)(self.x128 + muldiv(fee_amount, Q128, liquidity))

    def since(self, snapshot: "FeeGrowth | int") -> X128:
        """
        The growth accumulated after `snapshot` was taken.
        """

        snapshot_x128 = int(snapshot)
        if snapshot_x128 > self.x128:
            raise FeeGrowthDecrease(
                message=f"Snapshot {snapshot_x128} is ahead of the accumulator {self.x128}"
            )
        return self.x128 - snapshot_x128

    def earned(self, snapshot: "FeeGrowth | int", liquidity: Liquidity) -> int:
        """
        Fees owed to `liquidity` units for the growth after `snapshot`, rounded down.
        """

        return muldiv(self.since(snapshot), liquidity, Q128)
