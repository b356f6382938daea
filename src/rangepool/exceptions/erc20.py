from typing import Any

from rangepool.exceptions.base import RangepoolError


class Erc20Error(RangepoolError):
    """
    Exception raised by the token balance ledger.
    """


class InsufficientBalance(Erc20Error):
    def __init__(self, token: str, holder: str, balance: int, amount: int) -> None:
        self.token = token
        self.holder = holder
        self.balance = balance
        self.amount = amount
        super().__init__(
            message=f"{holder} holds {balance} of token {token}, cannot transfer {amount}"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.token, self.holder, self.balance, self.amount)


class InsufficientAllowance(Erc20Error):
    def __init__(self, token: str, owner: str, spender: str, allowance: int, amount: int) -> None:
        self.token = token
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.amount = amount
        super().__init__(
            message=f"{spender} is allowed {allowance} of token {token} from {owner}, "
            f"cannot transfer {amount}"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.token, self.owner, self.spender, self.allowance, self.amount)
