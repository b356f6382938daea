from typing import Any

from rangepool.exceptions.base import RangepoolError


class EVMRevertError(RangepoolError):
    """
    Raised when an integer math operation would revert under EVM semantics.
    """

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(message=f"EVM Revert: {error}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.error,)
