from typing import Any

from eth_typing import ChecksumAddress

from rangepool.exceptions.base import RangepoolError


class LiquidityPoolError(RangepoolError):
    """
    Exception raised inside liquidity pool helpers.
    """


# Lifecycle
class PoolAlreadyInitialized(LiquidityPoolError):
    def __init__(self) -> None:
        super().__init__(message="The pool has already been initialized.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()


class PoolNotInitialized(LiquidityPoolError):
    def __init__(self) -> None:
        super().__init__(message="The pool has not been initialized.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()


# Bounds
class PriceOutOfRange(LiquidityPoolError):
    """
    Raised when a starting price maps to a tick outside of the pool's fixed range.
    """

    def __init__(self, tick: int | None, tick_lower: int, tick_upper: int) -> None:
        self.tick = tick
        self.tick_lower = tick_lower
        self.tick_upper = tick_upper
        super().__init__(
            message=f"Price at tick {tick} is outside of the range [{tick_lower}, {tick_upper})"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.tick, self.tick_lower, self.tick_upper)


class InvalidPriceLimit(LiquidityPoolError):
    """
    Raised when a swap price limit is on the wrong side of the current price, or beyond the global
    price bounds.
    """

    reason = "SPL"

    def __init__(self, sqrt_price_limit_x96: int, sqrt_price_x96: int) -> None:
        self.sqrt_price_limit_x96 = sqrt_price_limit_x96
        self.sqrt_price_x96 = sqrt_price_x96
        super().__init__(
            message=f"Invalid price limit {sqrt_price_limit_x96} for current price {sqrt_price_x96}"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.sqrt_price_limit_x96, self.sqrt_price_x96)


# Arithmetic
class InvalidSwapAmount(LiquidityPoolError):
    reason = "AS"

    def __init__(self) -> None:
        super().__init__(message="The specified swap amount cannot be zero.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()


class InvalidLiquidityAmount(LiquidityPoolError):
    def __init__(self, amount: int) -> None:
        self.amount = amount
        super().__init__(message=f"Liquidity amount must be greater than zero, got {amount}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.amount,)


class InsufficientPositionLiquidity(LiquidityPoolError):
    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            message=f"Cannot remove {requested} liquidity from a position holding {available}"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.requested, self.available)


class FeeGrowthDecrease(LiquidityPoolError):
    """
    Raised if an operation would decrease a fee growth accumulator.
    """


class FeeGrowthOverflow(LiquidityPoolError):
    """
    Raised if a fee growth accumulator would exceed the largest uint256 value.
    """

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(message=f"Fee growth {value} exceeds the uint256 maximum")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.value,)


# Funding
class InsufficientFunding(LiquidityPoolError):
    """
    Raised when the pool's token balance did not increase by the required amount after a funding
    callback returned.
    """

    def __init__(
        self,
        token: ChecksumAddress,
        expected: int,
        received: int,
        reason: str,
    ) -> None:
        self.token = token
        self.expected = expected
        self.received = received
        self.reason = reason
        super().__init__(
            message=f"{reason}: expected {expected} of token {token}, received {received}"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.token, self.expected, self.received, self.reason)
