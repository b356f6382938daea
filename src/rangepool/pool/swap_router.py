import contextlib
import time
from collections.abc import Callable, Iterator
from threading import Lock

import eth_abi.abi
from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.exceptions import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidCallbackCaller,
    SlippageExceeded,
)
from rangepool.libraries.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO
from rangepool.logging import logger
from rangepool.pool.factory import PoolFactory
from rangepool.pool.position_manager import check_deadline
from rangepool.pool.range_pool import RangePool
from rangepool.pool.types import (
    ExactInputParams,
    ExactOutputParams,
    QuoteParams,
    RangePoolState,
)
from rangepool.types.aliases import SqrtPriceX96, Timestamp

type SwapStep = Callable[[RangePool, int, bool, int, SqrtPriceX96], tuple[int, int]]


class SwapRouter:
    """
    Routes a swap for a token pair through one or more of the pair's pools.

    Pools are visited in `index_path` order. Each pool fills as much of the remaining amount as its
    range allows, and the remainder moves on to the next pool. Routing stops early once the
    requested amount is filled.

    Every swap is quoted against current pool states before it is executed, so slippage, price
    limit and funding failures are raised before any pool is touched.
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
        self._expected_pool: ChecksumAddress | None = None

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(address={self.address}, factory={self.factory.address})"

    @contextlib.contextmanager
    def _expecting_callback_from(self, pool: RangePool) -> Iterator[None]:
        self._expected_pool = pool.address
        try:
            yield
        finally:
            self._expected_pool = None

    def swap_callback(self, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        """
        Pay a pool the input amount of a swap on behalf of the payer encoded in `data`, using the
        allowance the payer granted to this router.
        """

        token_in, token_out, index, payer = eth_abi.abi.decode(
            types=("address", "address", "uint256", "address"), data=data
        )
        pool = self.factory.get_pool_object(token_in, token_out, index)
        if pool.address != self._expected_pool:
            raise InvalidCallbackCaller(caller=pool.address)

        amount_to_pay = amount0_delta if amount0_delta > 0 else amount1_delta
        if amount_to_pay > 0:
            self.ledger.transfer_from(
                token=token_in,
                amount=amount_to_pay,
                spender=self.address,
                from_addr=payer,
                to_addr=pool.address,
            )

    def _route(
        self,
        token_in: str,
        token_out: str,
        index_path: tuple[int, ...],
        amount_specified: int,
        sqrt_price_limit_x96: SqrtPriceX96,
        step: SwapStep,
    ) -> tuple[int, int]:
        """
        Apply `step` to each pool on the path until `amount_specified` is filled. Returns the total
        input paid and output received.
        """

        zero_for_one = int(token_in, 16) < int(token_out, 16)
        if sqrt_price_limit_x96 == 0:
            # Zero means no limit
            sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

        exact_input = amount_specified > 0
        amount_remaining = amount_specified
        total_in = total_out = 0

        for index in index_path:
            pool = self.factory.get_pool_object(token_in, token_out, index)
            amount0, amount1 = step(
                pool, index, zero_for_one, amount_remaining, sqrt_price_limit_x96
            )

            amount_in, amount_out = (amount0, -amount1) if zero_for_one else (amount1, -amount0)
            total_in += amount_in
            total_out += amount_out
            amount_remaining += -amount_in if exact_input else amount_out
            if amount_remaining == 0:
                break

        return total_in, total_out

    @staticmethod
    def _simulator() -> SwapStep:
        """
        Build a quoting step. A pool visited more than once on a path is quoted from the state left
        by its previous visit.
        """

        simulated_states: dict[ChecksumAddress, RangePoolState] = {}

        def simulate_step(
            pool: RangePool,
            _: int,
            zero_for_one: bool,
            amount_specified: int,
            sqrt_price_limit_x96: SqrtPriceX96,
        ) -> tuple[int, int]:
            result = pool.simulate_swap(
                zero_for_one=zero_for_one,
                amount_specified=amount_specified,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
                override_state=simulated_states.get(pool.address),
            )
            simulated_states[pool.address] = result.final_state
            return result.amount0_delta, result.amount1_delta

        return simulate_step

    def _execute(
        self,
        token_in: ChecksumAddress,
        token_out: ChecksumAddress,
        index_path: tuple[int, ...],
        amount_specified: int,
        sqrt_price_limit_x96: SqrtPriceX96,
        recipient: ChecksumAddress,
        payer: ChecksumAddress,
    ) -> tuple[int, int]:
        def swap_step(
            pool: RangePool,
            index: int,
            zero_for_one: bool,
            amount_specified: int,
            sqrt_price_limit_x96: SqrtPriceX96,
        ) -> tuple[int, int]:
            with self._expecting_callback_from(pool):
                return pool.swap(
                    recipient=recipient,
                    zero_for_one=zero_for_one,
                    amount_specified=amount_specified,
                    sqrt_price_limit_x96=sqrt_price_limit_x96,
                    payer=self,
                    data=eth_abi.abi.encode(
                        types=("address", "address", "uint256", "address"),
                        args=(token_in, token_out, index, payer),
                    ),
                )

        return self._route(
            token_in, token_out, index_path, amount_specified, sqrt_price_limit_x96, swap_step
        )

    def _check_funding(self, token_in: ChecksumAddress, payer: ChecksumAddress, amount: int) -> None:
        if (balance := self.ledger.balance_of(payer, token_in)) < amount:
            raise InsufficientBalance(token=token_in, holder=payer, balance=balance, amount=amount)
        if (allowance := self.ledger.allowance(token_in, payer, self.address)) < amount:
            raise InsufficientAllowance(
                token=token_in,
                owner=payer,
                spender=self.address,
                allowance=allowance,
                amount=amount,
            )

    def exact_input(self, params: ExactInputParams, *, sender: str) -> int:
        """
        Swap up to `params.amount_in` of `token_in`, paid by `sender`. Returns the amount of
        `token_out` sent to `params.recipient`.
        """

        check_deadline(params.deadline, self._clock)
        payer = get_checksum_address(sender)

        with self._lock:
            quoted_in, quoted_out = self._route(
                params.token_in,
                params.token_out,
                params.index_path,
                params.amount_in,
                params.sqrt_price_limit_x96,
                self._simulator(),
            )
            if quoted_out < params.amount_out_minimum:
                raise SlippageExceeded(amount=quoted_out, threshold=params.amount_out_minimum)
            self._check_funding(params.token_in, payer, quoted_in)

            amount_in, amount_out = self._execute(
                token_in=params.token_in,
                token_out=params.token_out,
                index_path=params.index_path,
                amount_specified=params.amount_in,
                sqrt_price_limit_x96=params.sqrt_price_limit_x96,
                recipient=params.recipient,
                payer=payer,
            )

        logger.debug(
            f"{self}: exact input swap {amount_in} {params.token_in} -> {amount_out} {params.token_out}"  # noqa: E501
        )
        return amount_out

    def exact_output(self, params: ExactOutputParams, *, sender: str) -> int:
        """
        Swap `token_in` for up to `params.amount_out` of `token_out`, paid by `sender`. Returns the
        amount of `token_in` paid.
        """

        check_deadline(params.deadline, self._clock)
        payer = get_checksum_address(sender)

        with self._lock:
            quoted_in, _ = self._route(
                params.token_in,
                params.token_out,
                params.index_path,
                -params.amount_out,
                params.sqrt_price_limit_x96,
                self._simulator(),
            )
            if quoted_in > params.amount_in_maximum:
                raise SlippageExceeded(amount=quoted_in, threshold=params.amount_in_maximum)
            self._check_funding(params.token_in, payer, quoted_in)

            amount_in, amount_out = self._execute(
                token_in=params.token_in,
                token_out=params.token_out,
                index_path=params.index_path,
                amount_specified=-params.amount_out,
                sqrt_price_limit_x96=params.sqrt_price_limit_x96,
                recipient=params.recipient,
                payer=payer,
            )

        logger.debug(
            f"{self}: exact output swap {amount_in} {params.token_in} -> {amount_out} {params.token_out}"  # noqa: E501
        )
        return amount_in

    def quote_exact_input(self, params: QuoteParams) -> int:
        """
        The output amount an exact input swap of `params.amount` would receive at current pool
        states. Nothing is executed.
        """

        _, amount_out = self._route(
            params.token_in,
            params.token_out,
            params.index_path,
            params.amount,
            params.sqrt_price_limit_x96,
            self._simulator(),
        )
        return amount_out

    def quote_exact_output(self, params: QuoteParams) -> int:
        """
        The input amount an exact output swap for `params.amount` would pay at current pool states.
        Nothing is executed.
        """

        amount_in, _ = self._route(
            params.token_in,
            params.token_out,
            params.index_path,
            -params.amount,
            params.sqrt_price_limit_x96,
            self._simulator(),
        )
        return amount_in
