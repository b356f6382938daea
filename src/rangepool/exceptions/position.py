from typing import Any

from rangepool.exceptions.base import RangepoolError


class PositionManagerError(RangepoolError):
    """
    Exception raised inside the position manager.
    """


class NotApproved(PositionManagerError):
    def __init__(self, position_id: int, caller: str) -> None:
        self.position_id = position_id
        self.caller = caller
        super().__init__(message=f"Not approved: {caller} may not operate position {position_id}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.position_id, self.caller)


class InvalidPositionId(PositionManagerError):
    def __init__(self, position_id: int) -> None:
        self.position_id = position_id
        super().__init__(message=f"Invalid position ID {position_id}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.position_id,)


class InvalidCallbackCaller(RangepoolError):
    """
    Raised when a funding callback is invoked by an address other than the expected pool.
    """

    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(message=f"Invalid callback caller {caller}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.caller,)


class DeadlineExpired(RangepoolError):
    def __init__(self, deadline: int, timestamp: int) -> None:
        self.deadline = deadline
        self.timestamp = timestamp
        super().__init__(message=f"Transaction too old: deadline {deadline} < {timestamp}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.deadline, self.timestamp)
