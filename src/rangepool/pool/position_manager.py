import contextlib
import dataclasses
import time
from collections.abc import Callable, Iterator
from threading import Lock

import eth_abi.abi
from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.constants import ZERO_ADDRESS
from rangepool.exceptions import (
    DeadlineExpired,
    InvalidCallbackCaller,
    InvalidPositionId,
    NotApproved,
)
from rangepool.libraries.constants import Q128
from rangepool.libraries.full_math import muldiv
from rangepool.libraries.liquidity_amounts import (
    get_amounts_for_liquidity,
    get_liquidity_for_amounts,
)
from rangepool.logging import logger
from rangepool.pool.factory import PoolFactory
from rangepool.pool.range_pool import RangePool
from rangepool.pool.types import MintParams, PositionInfo
from rangepool.registry import pool_registry
from rangepool.types.aliases import Liquidity, PositionId, Timestamp


def check_deadline(deadline: Timestamp, clock: Callable[[], Timestamp]) -> None:
    if (timestamp := clock()) > deadline:
        raise DeadlineExpired(deadline=deadline, timestamp=timestamp)


class PositionManager:
    """
    Issues transferable handles for liquidity positions.

    The manager holds all liquidity it mints as a single position in each pool, and keeps a
    per-handle record of liquidity, fee snapshots and owed tokens. Only the handle holder or an
    address approved for the handle may burn or collect through it.
    """

    def __init__(
        self,
        address: str,
        *,
        factory: PoolFactory,
        clock: Callable[[], Timestamp] | None = None,
    ) -> None:
        self.address = get_checksum_address(address)
        self.factory = factory
        self.ledger = factory.ledger
        self._clock = clock if clock is not None else lambda: int(time.time())

        self._lock = Lock()
        self._next_id: PositionId = 1
        self._positions: dict[PositionId, PositionInfo] = {}
        self._owners: dict[PositionId, ChecksumAddress] = {}
        self._approvals: dict[PositionId, ChecksumAddress] = {}
        self._expected_pool: ChecksumAddress | None = None

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(address={self.address}, factory={self.factory.address})"

    # Handle ownership
    def owner_of(self, position_id: PositionId) -> ChecksumAddress:
        try:
            return self._owners[position_id]
        except KeyError:
            raise InvalidPositionId(position_id=position_id) from None

    def balance_of(self, owner: str) -> int:
        _owner = get_checksum_address(owner)
        return sum(1 for holder in self._owners.values() if holder == _owner)

    def get_approved(self, position_id: PositionId) -> ChecksumAddress:
        self.owner_of(position_id)
        return self._approvals.get(position_id, ZERO_ADDRESS)

    def approve(self, spender: str, position_id: PositionId, *, sender: str) -> None:
        """
        Allow `spender` to operate the handle. Only the holder may approve.
        """

        _sender = get_checksum_address(sender)
        if self.owner_of(position_id) != _sender:
            raise NotApproved(position_id=position_id, caller=_sender)
        self._approvals[position_id] = get_checksum_address(spender)

    def is_approved_or_owner(self, spender: str, position_id: PositionId) -> bool:
        _spender = get_checksum_address(spender)
        return _spender in (self.owner_of(position_id), self._approvals.get(position_id))

    def _check_authorized(self, position_id: PositionId, caller: str) -> None:
        if not self.is_approved_or_owner(caller, position_id):
            raise NotApproved(position_id=position_id, caller=get_checksum_address(caller))

    def transfer_from(
        self,
        from_addr: str,
        to_addr: str,
        position_id: PositionId,
        *,
        sender: str,
    ) -> None:
        """
        Move a handle to a new holder. Any approval for the handle is cleared.
        """

        self._check_authorized(position_id, sender)
        _from_addr = get_checksum_address(from_addr)
        if self.owner_of(position_id) != _from_addr:
            raise NotApproved(position_id=position_id, caller=_from_addr)

        _to_addr = get_checksum_address(to_addr)
        self._owners[position_id] = _to_addr
        self._approvals.pop(position_id, None)
        self._positions[position_id] = dataclasses.replace(
            self._positions[position_id], owner=_to_addr
        )
        logger.debug(f"{self}: position {position_id} transferred {_from_addr} -> {_to_addr}")

    # Position records
    def positions(self, position_id: PositionId) -> PositionInfo:
        try:
            return self._positions[position_id]
        except KeyError:
            raise InvalidPositionId(position_id=position_id) from None

    def get_all_positions(self) -> list[PositionInfo]:
        """
        Get the records of all live handles, ordered by id.
        """

        return [self._positions[position_id] for position_id in sorted(self._owners)]

    def principal(self, position_id: PositionId) -> tuple[int, int]:
        """
        The token amounts held by the handle's liquidity at the pool's current price, rounded down.
        Owed tokens and unsettled fees are not included.
        """

        position = self.positions(position_id)
        pool = self._get_pool(position)
        return get_amounts_for_liquidity(
            sqrt_price_x96=pool.sqrt_price_x96,
            sqrt_ratio_a_x96=pool.sqrt_ratio_lower_x96,
            sqrt_ratio_b_x96=pool.sqrt_ratio_upper_x96,
            liquidity=position.liquidity,
        )

    def _get_pool(self, position: PositionInfo) -> RangePool:
        return self.factory.get_pool_object(position.token0, position.token1, position.index)

    @contextlib.contextmanager
    def _expecting_callback_from(self, pool: RangePool) -> Iterator[None]:
        self._expected_pool = pool.address
        try:
            yield
        finally:
            self._expected_pool = None

    def mint_callback(self, amount0_owed: int, amount1_owed: int, data: bytes) -> None:
        """
        Pay a pool for liquidity minted on behalf of the payer encoded in `data`, using the
        allowance the payer granted to this manager.
        """

        pool_address, payer = eth_abi.abi.decode(types=("address", "address"), data=data)
        pool_address = get_checksum_address(pool_address)
        if self._expected_pool is None or pool_address != self._expected_pool:
            raise InvalidCallbackCaller(caller=pool_address)

        pool = pool_registry.get(pool_address)
        assert isinstance(pool, RangePool)
        for token, amount in ((pool.token0, amount0_owed), (pool.token1, amount1_owed)):
            if amount > 0:
                self.ledger.transfer_from(
                    token=token,
                    amount=amount,
                    spender=self.address,
                    from_addr=payer,
                    to_addr=pool_address,
                )

    def mint(
        self,
        params: MintParams,
        *,
        sender: str,
    ) -> tuple[PositionId, Liquidity, int, int]:
        """
        Add the most liquidity that `amount0_desired` and `amount1_desired` can fund to the pool at
        (`token0`, `token1`, `index`), paid by `sender`, and issue a handle for it to
        `params.recipient`.
        """

        check_deadline(params.deadline, self._clock)

        pool = self.factory.get_pool_object(params.token0, params.token1, params.index)
        liquidity = get_liquidity_for_amounts(
            sqrt_price_x96=pool.sqrt_price_x96,
            sqrt_ratio_a_x96=pool.sqrt_ratio_lower_x96,
            sqrt_ratio_b_x96=pool.sqrt_ratio_upper_x96,
            amount0=params.amount0_desired,
            amount1=params.amount1_desired,
        )

        with self._lock:
            with self._expecting_callback_from(pool):
                amount0, amount1 = pool.mint(
                    recipient=self.address,
                    amount=liquidity,
                    payer=self,
                    data=eth_abi.abi.encode(
                        types=("address", "address"),
                        args=(pool.address, get_checksum_address(sender)),
                    ),
                )

            pool_position = pool.get_position(self.address)
            position_id = self._next_id
            self._next_id += 1
            self._owners[position_id] = params.recipient
            self._positions[position_id] = PositionInfo(
                id=position_id,
                owner=params.recipient,
                token0=pool.token0,
                token1=pool.token1,
                index=params.index,
                fee=pool.fee,
                liquidity=liquidity,
                tick_lower=pool.tick_lower,
                tick_upper=pool.tick_upper,
                tokens_owed0=0,
                tokens_owed1=0,
                fee_growth_inside0_last_x128=pool_position.fee_growth_inside0_last_x128,
                fee_growth_inside1_last_x128=pool_position.fee_growth_inside1_last_x128,
            )

        logger.debug(
            f"{self}: minted position {position_id} with liquidity {liquidity} in {pool} for {params.recipient}"  # noqa: E501
        )
        return position_id, liquidity, amount0, amount1

    def burn(self, position_id: PositionId, *, sender: str) -> tuple[int, int]:
        """
        Remove all liquidity held by the handle. The token amounts and the fees earned since the
        handle's last snapshot are credited to the handle, and must be withdrawn with `collect`.
        """

        self._check_authorized(position_id, sender)

        with self._lock:
            position = self._positions[position_id]
            pool = self._get_pool(position)

            amount0, amount1 = pool.burn(position.liquidity, sender=self.address)

            pool_position = pool.get_position(self.address)
            fees0 = muldiv(
                pool_position.fee_growth_inside0_last_x128 - position.fee_growth_inside0_last_x128,
                position.liquidity,
                Q128,
            )
            fees1 = muldiv(
                pool_position.fee_growth_inside1_last_x128 - position.fee_growth_inside1_last_x128,
                position.liquidity,
                Q128,
            )

            self._positions[position_id] = dataclasses.replace(
                position,
                liquidity=0,
                tokens_owed0=position.tokens_owed0 + amount0 + fees0,
                tokens_owed1=position.tokens_owed1 + amount1 + fees1,
                fee_growth_inside0_last_x128=pool_position.fee_growth_inside0_last_x128,
                fee_growth_inside1_last_x128=pool_position.fee_growth_inside1_last_x128,
            )

        logger.debug(f"{self}: burned position {position_id}, amounts ({amount0}, {amount1})")
        return amount0, amount1

    def collect(self, position_id: PositionId, recipient: str, *, sender: str) -> tuple[int, int]:
        """
        Withdraw the handle's owed tokens to `recipient`. A handle with no remaining liquidity is
        retired afterwards.
        """

        self._check_authorized(position_id, sender)

        with self._lock:
            position = self._positions[position_id]
            pool = self._get_pool(position)

            amount0, amount1 = pool.collect(
                recipient=recipient,
                amount0_requested=position.tokens_owed0,
                amount1_requested=position.tokens_owed1,
                sender=self.address,
            )

            self._positions[position_id] = position = dataclasses.replace(
                position,
                tokens_owed0=0,
                tokens_owed1=0,
            )

            if position.liquidity == 0:
                del self._owners[position_id]
                self._approvals.pop(position_id, None)
                logger.debug(f"{self}: retired position {position_id}")

        return amount0, amount1
