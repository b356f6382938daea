import contextlib
import copy
from collections.abc import Iterator

from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.exceptions import InsufficientAllowance, InsufficientBalance, RangepoolValueError
from rangepool.logging import logger


class TokenLedger:
    """
    A dictionary-like class for tracking token balances and allowances across addresses.

    Token balances are organized first by the holding address, then by the token contract address.
    Allowances are organized by (token, owner, spender).

    Balances can never become negative: every debit is checked against the current balance, and
    `atomic` restores the prior state if the block it wraps raises.
    """

    def __init__(self) -> None:
        # Entries are recorded as a dict-of-dicts, keyed by address, then by token address
        self.balances: dict[
            ChecksumAddress,  # address holding balance
            dict[
                ChecksumAddress,  # token address
                int,  # balance
            ],
        ] = {}
        self.allowances: dict[
            tuple[
                ChecksumAddress,  # token address
                ChecksumAddress,  # owner
                ChecksumAddress,  # spender
            ],
            int,
        ] = {}

    @contextlib.contextmanager
    def atomic(self) -> Iterator["TokenLedger"]:
        """
        Apply every balance & allowance change made inside the block, or none of them.
        """

        balances = copy.deepcopy(self.balances)
        allowances = self.allowances.copy()
        try:
            yield self
        except BaseException:
            logger.debug("Rolling back token ledger changes")
            self.balances = balances
            self.allowances = allowances
            raise

    def adjust(
        self,
        address: ChecksumAddress | str,
        token: ChecksumAddress | str,
        amount: int,
    ) -> None:
        """
        Apply an adjustment to the balance for a token held by an address.

        The amount can be positive (credit) or negative (debit). The method checksums all addresses
        prior to use.

        Parameters
        ----------
        address: str | ChecksumAddress
            The address holding the token balance.
        token: str | ChecksumAddress
            The token being held.
        amount: int
            The amount to adjust. May be negative or positive.

        Raises
        ------
        InsufficientBalance
            If a debit exceeds the current balance.
        """

        _address = get_checksum_address(address)
        _token_address = get_checksum_address(token)

        balance = self.balance_of(_address, _token_address)
        if balance + amount < 0:
            raise InsufficientBalance(
                token=_token_address,
                holder=_address,
                balance=balance,
                amount=-amount,
            )

        logger.debug(f"BALANCE: {_address} {'+' if amount > 0 else ''}{amount} {_token_address}")

        address_balances = self.balances.setdefault(_address, {})
        address_balances[_token_address] = balance + amount
        if address_balances[_token_address] == 0:
            del address_balances[_token_address]
        if not address_balances:
            del self.balances[_address]

    def mint(self, token: ChecksumAddress | str, to_addr: ChecksumAddress | str, amount: int) -> None:
        """
        Credit newly issued tokens to an address.
        """

        if amount < 0:
            raise RangepoolValueError(message="Mint amount cannot be negative.")
        self.adjust(address=to_addr, token=token, amount=amount)

    def balance_of(
        self,
        address: ChecksumAddress | str,
        token: ChecksumAddress | str,
    ) -> int:
        """
        Get the balance for a given address and token. Addresses without a record hold zero.
        """

        return self.balances.get(get_checksum_address(address), {}).get(
            get_checksum_address(token), 0
        )

    def transfer(
        self,
        token: ChecksumAddress | str,
        amount: int,
        from_addr: ChecksumAddress | str,
        to_addr: ChecksumAddress | str,
    ) -> None:
        """
        Transfer a balance between addresses.

        Parameters
        ----------
        token: str | ChecksumAddress
            The token being transferred.
        amount: int
            The balance to transfer.
        from_addr: str | ChecksumAddress
            The address sending the balance.
        to_addr: str | ChecksumAddress
            The address receiving the balance.

        Raises
        ------
        InsufficientBalance
            If `from_addr` holds less than `amount`.
        RangepoolValueError
            If `amount` is negative.
        """

        if amount < 0:
            raise RangepoolValueError(message="Transfer amount cannot be negative.")

        self.adjust(address=from_addr, token=token, amount=-amount)
        self.adjust(address=to_addr, token=token, amount=amount)

    def allowance(
        self,
        token: ChecksumAddress | str,
        owner: ChecksumAddress | str,
        spender: ChecksumAddress | str,
    ) -> int:
        return self.allowances.get(
            (
                get_checksum_address(token),
                get_checksum_address(owner),
                get_checksum_address(spender),
            ),
            0,
        )

    def approve(
        self,
        token: ChecksumAddress | str,
        owner: ChecksumAddress | str,
        spender: ChecksumAddress | str,
        amount: int,
    ) -> None:
        """
        Allow `spender` to transfer up to `amount` of `owner`'s tokens. Replaces any prior allowance.
        """

        if amount < 0:
            raise RangepoolValueError(message="Allowance cannot be negative.")

        key = (
            get_checksum_address(token),
            get_checksum_address(owner),
            get_checksum_address(spender),
        )
        logger.debug(f"APPROVE: {key[1]} allows {key[2]} to spend {amount} {key[0]}")
        if amount == 0:
            self.allowances.pop(key, None)
        else:
            self.allowances[key] = amount

    def transfer_from(
        self,
        token: ChecksumAddress | str,
        amount: int,
        spender: ChecksumAddress | str,
        from_addr: ChecksumAddress | str,
        to_addr: ChecksumAddress | str,
    ) -> None:
        """
        Transfer a balance on behalf of `from_addr`, consuming the allowance granted to `spender`.
        """

        allowance = self.allowance(token, from_addr, spender)
        if allowance < amount:
            raise InsufficientAllowance(
                token=get_checksum_address(token),
                owner=get_checksum_address(from_addr),
                spender=get_checksum_address(spender),
                allowance=allowance,
                amount=amount,
            )

        self.transfer(token=token, amount=amount, from_addr=from_addr, to_addr=to_addr)
        self.approve(token, from_addr, spender, allowance - amount)
