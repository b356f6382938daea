import contextlib
import dataclasses
from collections.abc import Iterator
from threading import RLock
from typing import Any
from weakref import WeakSet

from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.exceptions import (
    EVMRevertError,
    InsufficientFunding,
    InsufficientPositionLiquidity,
    InvalidLiquidityAmount,
    InvalidPriceLimit,
    InvalidSwapAmount,
    LiquidityPoolError,
    PoolAlreadyInitialized,
    PoolNotInitialized,
    PriceOutOfRange,
    RangepoolValueError,
)
from rangepool.functions import generate_pool_address
from rangepool.libraries.constants import FEE_DENOMINATOR
from rangepool.libraries.liquidity_amounts import get_amounts_for_liquidity_delta
from rangepool.libraries.liquidity_math import add_delta
from rangepool.libraries.swap_math import compute_swap_step
from rangepool.libraries.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from rangepool.logging import logger
from rangepool.pool.types import (
    Burn,
    Collect,
    Mint,
    MintCallback,
    PoolDeployer,
    Position,
    RangePoolSimulationResult,
    RangePoolState,
    RangePoolStateUpdated,
    Swap,
    SwapCallback,
)
from rangepool.registry import pool_registry
from rangepool.types import AbstractLiquidityPool, AbstractPublisherMessage, PublisherMixin
from rangepool.types.aliases import Liquidity, SqrtPriceX96, Tick
from rangepool.types.concrete import Subscriber


class RangePool(PublisherMixin, AbstractLiquidityPool):
    """
    A concentrated liquidity pool where all liquidity shares a single price range fixed at creation.

    The pool reads its identity from the deployer's `parameters` while it is being constructed, so
    every pool is built the same way and its address depends only on the deployer and that identity.
    Token custody is held in the deployer's ledger: mint and swap ask the caller to fund the pool
    through a callback, then verify the pool's own balance afterwards.
    """

    type PoolState = RangePoolState
    _state: PoolState

    def __init__(
        self,
        deployer: PoolDeployer,
        *,
        silent: bool = False,
    ) -> None:
        parameters = deployer.parameters

        self.factory = parameters.factory
        self.token0 = parameters.token0
        self.token1 = parameters.token1
        self.fee = parameters.fee
        self.tick_lower = parameters.tick_lower
        self.tick_upper = parameters.tick_upper

        self.deployer_address = get_checksum_address(deployer.address)
        self.init_hash = deployer.pool_init_hash
        self.ledger = deployer.ledger
        self.address = generate_pool_address(
            deployer_address=self.deployer_address,
            token0=self.token0,
            token1=self.token1,
            tick_lower=self.tick_lower,
            tick_upper=self.tick_upper,
            fee=self.fee,
            init_hash=self.init_hash,
        )

        self.sqrt_ratio_lower_x96 = get_sqrt_ratio_at_tick(self.tick_lower)
        self.sqrt_ratio_upper_x96 = get_sqrt_ratio_at_tick(self.tick_upper)

        self.name = f"{self.token0}-{self.token1} ({self.__class__.__name__}, {100 * self.fee / FEE_DENOMINATOR:.2f}%, [{self.tick_lower}, {self.tick_upper}))"  # noqa: E501

        self._state = self.PoolState.__value__(address=self.address)
        self._positions: dict[ChecksumAddress, Position] = {}
        self._state_lock = RLock()
        self._entered = False
        self._subscribers: WeakSet[Subscriber] = WeakSet()

        pool_registry.add(pool=self, pool_address=self.address)

        if not silent:  # pragma: no branch
            logger.info(self.name)
            logger.info(f"• Address: {self.address}")
            logger.info(f"• Token 0: {self.token0}")
            logger.info(f"• Token 1: {self.token1}")
            logger.info(f"• Fee: {self.fee}")
            logger.info(f"• Range: [{self.tick_lower}, {self.tick_upper})")

    def __getstate__(self) -> dict[str, Any]:
        # Remove attributes that cannot be pickled, they are recreated by __setstate__
        dropped_attributes = {
            "_state_lock",
            "_subscribers",
        }

        with self._state_lock:
            return {k: v for k, v in self.__dict__.items() if k not in dropped_attributes}

    def __setstate__(self, state: dict[str, Any]) -> None:
        state["_state_lock"] = RLock()
        state["_subscribers"] = WeakSet()
        self.__dict__ = state

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(address={self.address}, token0={self.token0}, token1={self.token1}, fee={100 * self.fee / FEE_DENOMINATOR:.2f}%, tick_lower={self.tick_lower}, tick_upper={self.tick_upper})"  # noqa:E501

    @contextlib.contextmanager
    def _exclusive(self) -> Iterator[None]:
        """
        Serialize state-changing calls. Other threads wait for the lock, while a call made from
        inside a funding callback on the same thread is rejected.
        """

        with self._state_lock:
            if self._entered:
                raise LiquidityPoolError(message="LOK")
            self._entered = True
            try:
                yield
            finally:
                self._entered = False

    def _publish(self, *messages: AbstractPublisherMessage) -> None:
        for message in messages:
            logger.debug(f"{self}: {message}")
            self._notify_subscribers(message)

    def _balance(self, token: ChecksumAddress) -> int:
        return self.ledger.balance_of(self.address, token)

    @property
    def fee_growth_global0_x128(self) -> int:
        return int(self._state.fee_growth_global0_x128)

    @property
    def fee_growth_global1_x128(self) -> int:
        return int(self._state.fee_growth_global1_x128)

    @property
    def liquidity(self) -> Liquidity:
        return self._state.liquidity

    @property
    def sqrt_price_x96(self) -> SqrtPriceX96:
        return self._state.sqrt_price_x96

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def tick(self) -> Tick:
        return self._state.tick

    @property
    def tokens(self) -> tuple[ChecksumAddress, ChecksumAddress]:
        return self.token0, self.token1

    def get_position(self, owner: str) -> Position:
        """
        Get the position held by `owner`. An owner that never minted holds an empty position.
        """

        return self._positions.get(get_checksum_address(owner), Position())

    def initialize(self, sqrt_price_x96: SqrtPriceX96) -> None:
        """
        Set the starting price. The price must map to a tick inside the pool's range.
        """

        with self._exclusive():
            if self._state.initialized:
                raise PoolAlreadyInitialized

            try:
                tick = get_tick_at_sqrt_ratio(sqrt_price_x96)
            except EVMRevertError as e:
                raise PriceOutOfRange(
                    tick=None, tick_lower=self.tick_lower, tick_upper=self.tick_upper
                ) from e

            if not (self.tick_lower <= tick < self.tick_upper):
                raise PriceOutOfRange(
                    tick=tick, tick_lower=self.tick_lower, tick_upper=self.tick_upper
                )

            self._state = dataclasses.replace(
                self._state,
                sqrt_price_x96=sqrt_price_x96,
                tick=tick,
            )

        logger.debug(f"{self} initialized at sqrt price {sqrt_price_x96}, tick {tick}")
        self._publish(RangePoolStateUpdated(self._state))

    def _modify_position(
        self,
        state: PoolState,
        owner: ChecksumAddress,
        liquidity_delta: int,
    ) -> tuple[PoolState, Position, int, int]:
        """
        Settle the owner's fees earned since their last snapshot, then apply the liquidity delta to
        the position and the pool. Returns the updated state & position with the signed token
        amounts for the delta.
        """

        position = self.get_position(owner)

        tokens_owed0 = position.tokens_owed0 + state.fee_growth_global0_x128.earned(
            position.fee_growth_inside0_last_x128, position.liquidity
        )
        tokens_owed1 = position.tokens_owed1 + state.fee_growth_global1_x128.earned(
            position.fee_growth_inside1_last_x128, position.liquidity
        )

        amount0, amount1 = get_amounts_for_liquidity_delta(
            sqrt_price_x96=state.sqrt_price_x96,
            sqrt_ratio_a_x96=self.sqrt_ratio_lower_x96,
            sqrt_ratio_b_x96=self.sqrt_ratio_upper_x96,
            liquidity_delta=liquidity_delta,
        )

        return (
            dataclasses.replace(state, liquidity=add_delta(state.liquidity, liquidity_delta)),
            Position(
                liquidity=add_delta(position.liquidity, liquidity_delta),
                fee_growth_inside0_last_x128=int(state.fee_growth_global0_x128),
                fee_growth_inside1_last_x128=int(state.fee_growth_global1_x128),
                tokens_owed0=tokens_owed0,
                tokens_owed1=tokens_owed1,
            ),
            amount0,
            amount1,
        )

    def mint(
        self,
        recipient: str,
        amount: Liquidity,
        *,
        payer: MintCallback,
        data: bytes = b"",
    ) -> tuple[int, int]:
        """
        Add `amount` liquidity to the position owned by `recipient`.

        The payer's `mint_callback` is called with the token amounts owed, and must transfer them to
        the pool before returning. Returns the amounts of token0 and token1 paid.
        """

        if amount <= 0:
            raise InvalidLiquidityAmount(amount=amount)

        _recipient = get_checksum_address(recipient)

        with self._exclusive(), self.ledger.atomic():
            if not self._state.initialized:
                raise PoolNotInitialized

            try:
                state, position, amount0, amount1 = self._modify_position(
                    self._state, _recipient, amount
                )
            except EVMRevertError as e:
                raise LiquidityPoolError(message=f"Mint reverted: {e}") from e

            balance0_before = self._balance(self.token0)
            balance1_before = self._balance(self.token1)

            payer.mint_callback(amount0, amount1, data)

            for token, amount_owed, balance_before, reason in (
                (self.token0, amount0, balance0_before, "M0"),
                (self.token1, amount1, balance1_before, "M1"),
            ):
                received = self._balance(token) - balance_before
                if amount_owed > 0 and received < amount_owed:
                    raise InsufficientFunding(
                        token=token, expected=amount_owed, received=received, reason=reason
                    )

            self._positions[_recipient] = position
            self._state = state

        self._publish(
            Mint(
                sender=get_checksum_address(payer.address),
                owner=_recipient,
                amount=amount,
                amount0=amount0,
                amount1=amount1,
            ),
            RangePoolStateUpdated(self._state),
        )
        return amount0, amount1

    def burn(
        self,
        amount: Liquidity,
        *,
        sender: str,
    ) -> tuple[int, int]:
        """
        Remove `amount` liquidity from the sender's position. The token amounts are credited to the
        position's owed balances, and must be withdrawn with `collect`.
        """

        if amount <= 0:
            raise InvalidLiquidityAmount(amount=amount)

        owner = get_checksum_address(sender)

        with self._exclusive():
            available = self.get_position(owner).liquidity
            if amount > available:
                raise InsufficientPositionLiquidity(requested=amount, available=available)

            try:
                state, position, amount0, amount1 = self._modify_position(
                    self._state, owner, -amount
                )
            except EVMRevertError as e:
                raise LiquidityPoolError(message=f"Burn reverted: {e}") from e

            # Removal amounts are negative, rounded down in favor of the pool
            amount0, amount1 = -amount0, -amount1
            self._positions[owner] = position._replace(
                tokens_owed0=position.tokens_owed0 + amount0,
                tokens_owed1=position.tokens_owed1 + amount1,
            )
            self._state = state

        self._publish(
            Burn(owner=owner, amount=amount, amount0=amount0, amount1=amount1),
            RangePoolStateUpdated(self._state),
        )
        return amount0, amount1

    def collect(
        self,
        recipient: str,
        amount0_requested: int,
        amount1_requested: int,
        *,
        sender: str,
    ) -> tuple[int, int]:
        """
        Withdraw up to the requested amounts from the sender's owed balances to `recipient`.
        """

        if amount0_requested < 0 or amount1_requested < 0:
            raise RangepoolValueError(message="Requested amounts cannot be negative.")

        owner = get_checksum_address(sender)
        _recipient = get_checksum_address(recipient)

        with self._exclusive(), self.ledger.atomic():
            position = self.get_position(owner)
            amount0 = min(amount0_requested, position.tokens_owed0)
            amount1 = min(amount1_requested, position.tokens_owed1)

            if amount0 > 0:
                self.ledger.transfer(
                    token=self.token0, amount=amount0, from_addr=self.address, to_addr=_recipient
                )
            if amount1 > 0:
                self.ledger.transfer(
                    token=self.token1, amount=amount1, from_addr=self.address, to_addr=_recipient
                )

            if owner in self._positions:
                self._positions[owner] = position._replace(
                    tokens_owed0=position.tokens_owed0 - amount0,
                    tokens_owed1=position.tokens_owed1 - amount1,
                )

        self._publish(Collect(owner=owner, recipient=_recipient, amount0=amount0, amount1=amount1))
        return amount0, amount1

    def _calculate_swap(
        self,
        state: PoolState,
        *,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: SqrtPriceX96,
    ) -> tuple[PoolState, int, int, int]:
        """
        Calculate the result of a swap against `state`. Returns the final state, the signed token
        amounts (positive values are owed to the pool), and the fee taken.

        Liquidity is uniform across the pool's range, so a single swap step always completes the
        swap. The price stops at the price limit or the range boundary, whichever is closer.
        """

        if amount_specified == 0:
            raise InvalidSwapAmount
        if not state.initialized:
            raise PoolNotInitialized

        sqrt_price_start_x96 = state.sqrt_price_x96
        if zero_for_one:
            limit_is_valid = MIN_SQRT_RATIO < sqrt_price_limit_x96 < sqrt_price_start_x96
            # The lower bound of the range is inclusive
            sqrt_price_target_x96 = max(sqrt_price_limit_x96, self.sqrt_ratio_lower_x96)
        else:
            limit_is_valid = sqrt_price_start_x96 < sqrt_price_limit_x96 < MAX_SQRT_RATIO
            # The upper bound of the range is exclusive
            sqrt_price_target_x96 = min(sqrt_price_limit_x96, self.sqrt_ratio_upper_x96 - 1)

        if not limit_is_valid:
            raise InvalidPriceLimit(
                sqrt_price_limit_x96=sqrt_price_limit_x96, sqrt_price_x96=sqrt_price_start_x96
            )

        exact_input = amount_specified > 0

        try:
            sqrt_price_next_x96, amount_in, amount_out, fee_amount = compute_swap_step(
                sqrt_ratio_x96_current=sqrt_price_start_x96,
                sqrt_ratio_x96_target=sqrt_price_target_x96,
                liquidity=state.liquidity,
                amount_remaining=amount_specified,
                fee_pips=self.fee,
            )
            tick = get_tick_at_sqrt_ratio(sqrt_price_next_x96)
        except EVMRevertError as e:
            raise LiquidityPoolError(message=f"Swap reverted: {e}") from e

        if exact_input:
            amount_specified_remaining = amount_specified - (amount_in + fee_amount)
            amount_calculated = -amount_out
        else:
            amount_specified_remaining = amount_specified + amount_out
            amount_calculated = amount_in + fee_amount

        amount0, amount1 = (
            (amount_specified - amount_specified_remaining, amount_calculated)
            if zero_for_one == exact_input
            else (amount_calculated, amount_specified - amount_specified_remaining)
        )

        fee_growth_global0_x128 = state.fee_growth_global0_x128
        fee_growth_global1_x128 = state.fee_growth_global1_x128
        if state.liquidity > 0:
            if zero_for_one:
                fee_growth_global0_x128 = fee_growth_global0_x128.accrue(
                    fee_amount, state.liquidity
                )
            else:
                fee_growth_global1_x128 = fee_growth_global1_x128.accrue(
                    fee_amount, state.liquidity
                )

        return (
            dataclasses.replace(
                state,
                sqrt_price_x96=sqrt_price_next_x96,
                tick=tick,
                fee_growth_global0_x128=fee_growth_global0_x128,
                fee_growth_global1_x128=fee_growth_global1_x128,
            ),
            amount0,
            amount1,
            fee_amount,
        )

    def swap(
        self,
        recipient: str,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: SqrtPriceX96,
        *,
        payer: SwapCallback,
        data: bytes = b"",
    ) -> tuple[int, int]:
        """
        Swap token0 for token1 (`zero_for_one=True`), or token1 for token0.

        A positive `amount_specified` is an exact input, a negative value an exact output. The
        payer's `swap_callback` receives the signed token amounts and must transfer the positive
        (input) amount to the pool. The output amount is then sent to `recipient`.
        """

        _recipient = get_checksum_address(recipient)

        with self._exclusive(), self.ledger.atomic():
            state, amount0, amount1, _ = self._calculate_swap(
                self._state,
                zero_for_one=zero_for_one,
                amount_specified=amount_specified,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
            )

            token_in, amount_in, token_out, amount_out = (
                (self.token0, amount0, self.token1, -amount1)
                if zero_for_one
                else (self.token1, amount1, self.token0, -amount0)
            )

            balance_before = self._balance(token_in)
            payer.swap_callback(amount0, amount1, data)
            received = self._balance(token_in) - balance_before
            if received < amount_in:
                raise InsufficientFunding(
                    token=token_in, expected=amount_in, received=received, reason="IIA"
                )

            if amount_out > 0:
                self.ledger.transfer(
                    token=token_out, amount=amount_out, from_addr=self.address, to_addr=_recipient
                )

            self._state = state

        self._publish(
            Swap(
                sender=get_checksum_address(payer.address),
                recipient=_recipient,
                amount0=amount0,
                amount1=amount1,
                sqrt_price_x96=state.sqrt_price_x96,
                liquidity=state.liquidity,
                tick=state.tick,
            ),
            RangePoolStateUpdated(state),
        )
        return amount0, amount1

    def simulate_swap(
        self,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: SqrtPriceX96 | None = None,
        override_state: PoolState | None = None,
    ) -> RangePoolSimulationResult:
        """
        Calculate a swap without executing it. No callbacks are made and the pool state is not
        changed. An unset price limit allows the price to move to the range boundary.
        """

        initial_state = override_state if override_state is not None else self._state

        final_state, amount0_delta, amount1_delta, fee_amount = self._calculate_swap(
            initial_state,
            zero_for_one=zero_for_one,
            amount_specified=amount_specified,
            sqrt_price_limit_x96=(
                sqrt_price_limit_x96
                if sqrt_price_limit_x96 is not None
                else (MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1)
            ),
        )
        return RangePoolSimulationResult(
            amount0_delta=amount0_delta,
            amount1_delta=amount1_delta,
            fee_amount=fee_amount,
            initial_state=initial_state,
            final_state=final_state,
        )

    def calculate_tokens_out_from_tokens_in(
        self,
        token_in: str,
        token_in_quantity: int,
        override_state: PoolState | None = None,
    ) -> int:
        """
        Calculate the number of tokens withdrawn (out) for a given number of tokens deposited (in),
        with the price free to move to the range boundary.

        The swap may fill only partially if the boundary is reached first, so the input consumed can
        be less than `token_in_quantity`.
        """

        _token_in = get_checksum_address(token_in)
        if _token_in not in self.tokens:
            raise RangepoolValueError(message=f"Unknown token {token_in}")

        zero_for_one = _token_in == self.token0
        result = self.simulate_swap(
            zero_for_one=zero_for_one,
            amount_specified=token_in_quantity,
            override_state=override_state,
        )
        return -result.amount1_delta if zero_for_one else -result.amount0_delta

    def calculate_tokens_in_from_tokens_out(
        self,
        token_out: str,
        token_out_quantity: int,
        override_state: PoolState | None = None,
    ) -> int:
        """
        Calculate the number of tokens deposited (in) for a given number of tokens withdrawn (out),
        with the price free to move to the range boundary.
        """

        _token_out = get_checksum_address(token_out)
        if _token_out not in self.tokens:
            raise RangepoolValueError(message=f"Unknown token {token_out}")

        zero_for_one = _token_out == self.token1
        result = self.simulate_swap(
            zero_for_one=zero_for_one,
            amount_specified=-token_out_quantity,
            override_state=override_state,
        )
        return result.amount0_delta if zero_for_one else result.amount1_delta
