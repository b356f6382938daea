from typing import Any

from rangepool.exceptions.base import RangepoolError


class SwapRouterError(RangepoolError):
    """
    Exception raised inside the swap router.
    """


class SlippageExceeded(SwapRouterError):
    """
    Raised when a routed swap delivers less output (exact input) or requires more input (exact
    output) than the caller allowed.
    """

    def __init__(self, amount: int, threshold: int) -> None:
        self.amount = amount
        self.threshold = threshold
        super().__init__(message=f"Slippage exceeded: {amount} vs. threshold {threshold}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.amount, self.threshold)
