import copy
import pickle

import hypothesis
import hypothesis.strategies
import pytest

from rangepool.erc20 import TokenLedger
from rangepool.exceptions import (
    EVMRevertError,
    InsufficientFunding,
    InsufficientPositionLiquidity,
    InvalidLiquidityAmount,
    InvalidPriceLimit,
    InvalidSwapAmount,
    LiquidityPoolError,
    ParametersUnavailable,
    PoolAlreadyInitialized,
    PoolNotInitialized,
    PriceOutOfRange,
    RangepoolValueError,
)
from rangepool.functions import generate_pool_address
from rangepool.libraries.constants import Q128
from rangepool.libraries.full_math import muldiv
from rangepool.libraries.swap_math import compute_swap_step
from rangepool.libraries.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    get_sqrt_ratio_at_tick,
)
from rangepool.pool import (
    Burn,
    Collect,
    Mint,
    PoolFactory,
    Position,
    RangePool,
    RangePoolStateUpdated,
    Swap,
)
from rangepool.registry import pool_registry
from tests.conftest import (
    ALICE,
    BOB,
    FACTORY_ADDRESS,
    FEE,
    INITIAL_BALANCE,
    TICK_LOWER,
    TICK_UPPER,
    TOKEN0,
    TOKEN1,
    FakeSubscriber,
    Payer,
    callback_data,
)

PRICE_AT_TICK_0 = 2**96
LIQUIDITY = 10**18
NO_LIMIT_ZERO_FOR_ONE = MIN_SQRT_RATIO + 1
NO_LIMIT_ONE_FOR_ZERO = MAX_SQRT_RATIO - 1


def mint(pool: RangePool, payer: Payer, amount: int) -> tuple[int, int]:
    return pool.mint(payer.address, amount, payer=payer, data=callback_data(pool))


def swap(
    pool: RangePool,
    payer: Payer,
    zero_for_one: bool,
    amount_specified: int,
    sqrt_price_limit_x96: int | None = None,
) -> tuple[int, int]:
    if sqrt_price_limit_x96 is None:
        sqrt_price_limit_x96 = NO_LIMIT_ZERO_FOR_ONE if zero_for_one else NO_LIMIT_ONE_FOR_ZERO
    return pool.swap(
        payer.address,
        zero_for_one,
        amount_specified,
        sqrt_price_limit_x96,
        payer=payer,
        data=callback_data(pool),
    )


@pytest.fixture
def initialized_pool(pool: RangePool) -> RangePool:
    pool.initialize(PRICE_AT_TICK_0)
    return pool


@pytest.fixture
def funded_pool(initialized_pool: RangePool, alice: Payer) -> RangePool:
    mint(initialized_pool, alice, LIQUIDITY)
    return initialized_pool


def test_identity(pool: RangePool, factory: PoolFactory):
    assert pool.factory == FACTORY_ADDRESS
    assert pool.tokens == (TOKEN0, TOKEN1)
    assert pool.fee == FEE
    assert (pool.tick_lower, pool.tick_upper) == (TICK_LOWER, TICK_UPPER)
    assert pool.sqrt_ratio_lower_x96 == get_sqrt_ratio_at_tick(TICK_LOWER)
    assert pool.sqrt_ratio_upper_x96 == get_sqrt_ratio_at_tick(TICK_UPPER)
    assert pool.address == generate_pool_address(
        deployer_address=FACTORY_ADDRESS,
        token0=TOKEN0,
        token1=TOKEN1,
        tick_lower=TICK_LOWER,
        tick_upper=TICK_UPPER,
        fee=FEE,
        init_hash=factory.pool_init_hash,
    )
    assert pool_registry.get(pool.address) is pool
    assert pool == pool.address
    assert pool == pool.address.lower()


def test_new_pool_is_uninitialized(pool: RangePool):
    assert pool.state.initialized is False
    assert pool.sqrt_price_x96 == 0
    assert pool.liquidity == 0
    assert pool.fee_growth_global0_x128 == 0
    assert pool.fee_growth_global1_x128 == 0


def test_construction_outside_of_deployment(factory: PoolFactory):
    with pytest.raises(ParametersUnavailable):
        RangePool(deployer=factory)


def test_initialize(pool: RangePool, fake_subscriber: FakeSubscriber):
    fake_subscriber.subscribe(pool)
    pool.initialize(PRICE_AT_TICK_0)

    assert pool.state.initialized
    assert pool.sqrt_price_x96 == PRICE_AT_TICK_0
    assert pool.tick == 0

    (received,) = fake_subscriber.inbox
    assert received["from"] is pool
    assert isinstance(received["message"], RangePoolStateUpdated)
    assert received["message"].state == pool.state

    with pytest.raises(PoolAlreadyInitialized):
        pool.initialize(PRICE_AT_TICK_0)


def test_initialize_at_range_boundaries(pool: RangePool):
    # The lower bound is inclusive
    pool.initialize(get_sqrt_ratio_at_tick(TICK_LOWER))
    assert pool.tick == TICK_LOWER


@pytest.mark.parametrize(
    ("sqrt_price_x96", "tick"),
    [
        # The upper bound is exclusive
        (get_sqrt_ratio_at_tick(TICK_UPPER), TICK_UPPER),
        (get_sqrt_ratio_at_tick(TICK_LOWER) - 1, TICK_LOWER - 1),
        (get_sqrt_ratio_at_tick(TICK_UPPER + 100), TICK_UPPER + 100),
    ],
)
def test_initialize_outside_of_range(pool: RangePool, sqrt_price_x96: int, tick: int):
    with pytest.raises(PriceOutOfRange) as exc_info:
        pool.initialize(sqrt_price_x96)
    assert exc_info.value.tick == tick
    assert not pool.state.initialized


@pytest.mark.parametrize("sqrt_price_x96", [0, MIN_SQRT_RATIO - 1, MAX_SQRT_RATIO])
def test_initialize_outside_of_global_bounds(pool: RangePool, sqrt_price_x96: int):
    with pytest.raises(PriceOutOfRange) as exc_info:
        pool.initialize(sqrt_price_x96)
    assert exc_info.value.tick is None
    assert isinstance(exc_info.value.__cause__, EVMRevertError)
    assert not pool.state.initialized


def test_mint_before_initialization(pool: RangePool, alice: Payer):
    with pytest.raises(PoolNotInitialized):
        mint(pool, alice, LIQUIDITY)
    assert alice.calls == []


@pytest.mark.parametrize("amount", [0, -1])
def test_mint_invalid_amount(initialized_pool: RangePool, alice: Payer, amount: int):
    with pytest.raises(InvalidLiquidityAmount):
        mint(initialized_pool, alice, amount)


def test_mint_and_burn_round_trip(initialized_pool: RangePool, alice: Payer):
    pool = initialized_pool

    amount0, amount1 = mint(pool, alice, 1000)
    assert amount0 > 0
    assert amount1 > 0
    assert alice.calls == [(amount0, amount1)]
    assert pool.liquidity == 1000
    assert pool.get_position(ALICE) == Position(liquidity=1000)
    assert pool.ledger.balance_of(pool.address, TOKEN0) == amount0
    assert pool.ledger.balance_of(pool.address, TOKEN1) == amount1

    burned0, burned1 = pool.burn(1000, sender=ALICE)
    assert burned0 <= amount0
    assert burned1 <= amount1
    assert amount0 - burned0 <= 1
    assert amount1 - burned1 <= 1
    assert pool.liquidity == 0

    liquidity, *_, tokens_owed0, tokens_owed1 = pool.get_position(ALICE)
    assert liquidity == 0
    assert (tokens_owed0, tokens_owed1) == (burned0, burned1)

    # Burning does not transfer tokens
    assert pool.ledger.balance_of(pool.address, TOKEN0) == amount0

    assert pool.collect(ALICE, burned0, burned1, sender=ALICE) == (burned0, burned1)
    assert pool.ledger.balance_of(ALICE, TOKEN0) == INITIAL_BALANCE - amount0 + burned0
    assert pool.ledger.balance_of(ALICE, TOKEN1) == INITIAL_BALANCE - amount1 + burned1


@hypothesis.given(
    sqrt_price_x96=hypothesis.strategies.integers(
        min_value=get_sqrt_ratio_at_tick(TICK_LOWER),
        max_value=get_sqrt_ratio_at_tick(TICK_UPPER) - 1,
    ),
    liquidity=hypothesis.strategies.integers(min_value=1, max_value=10**24),
)
def test_burn_returns_at_most_one_unit_less_than_mint_paid(sqrt_price_x96: int, liquidity: int):
    pool_registry._all_pools.clear()
    PoolFactory.instances.clear()

    ledger = TokenLedger()
    for token in (TOKEN0, TOKEN1):
        ledger.mint(token=token, to_addr=ALICE, amount=INITIAL_BALANCE)
    factory = PoolFactory(FACTORY_ADDRESS, ledger=ledger)
    factory.create_pool(TOKEN0, TOKEN1, TICK_LOWER, TICK_UPPER, FEE, silent=True)
    pool = factory.get_pool_object(TOKEN0, TOKEN1, 0)
    pool.initialize(sqrt_price_x96)

    amount0, amount1 = mint(pool, Payer(ALICE, ledger), liquidity)
    burned0, burned1 = pool.burn(liquidity, sender=ALICE)

    assert 0 <= amount0 - burned0 <= 1
    assert 0 <= amount1 - burned1 <= 1
    assert pool.collect(ALICE, burned0, burned1, sender=ALICE) == (burned0, burned1)
    assert pool.ledger.balance_of(pool.address, TOKEN0) == amount0 - burned0
    assert pool.ledger.balance_of(pool.address, TOKEN1) == amount1 - burned1


def test_mint_at_lower_bound_is_token0_only(pool: RangePool, alice: Payer):
    # At the lower bound, the position is held entirely in token0
    pool.initialize(get_sqrt_ratio_at_tick(TICK_LOWER))
    amount0, amount1 = mint(pool, alice, LIQUIDITY)
    assert amount0 > 0
    assert amount1 == 0


def test_liquidity_is_sum_of_positions(initialized_pool: RangePool, alice: Payer, bob: Payer):
    pool = initialized_pool
    mint(pool, alice, 1000)
    mint(pool, bob, 2000)
    mint(pool, alice, 500)
    assert pool.liquidity == 3500
    assert pool.get_position(ALICE).liquidity == 1500
    assert pool.get_position(BOB).liquidity == 2000

    pool.burn(700, sender=BOB)
    assert pool.liquidity == 2800
    assert pool.liquidity == sum(pool.get_position(owner).liquidity for owner in (ALICE, BOB))


def test_untouched_position_is_empty(initialized_pool: RangePool):
    assert initialized_pool.get_position(BOB) == Position(0, 0, 0, 0, 0)


def test_burn_invalid_amounts(funded_pool: RangePool):
    with pytest.raises(InvalidLiquidityAmount):
        funded_pool.burn(0, sender=ALICE)

    with pytest.raises(InsufficientPositionLiquidity):
        funded_pool.burn(LIQUIDITY + 1, sender=ALICE)

    with pytest.raises(InsufficientPositionLiquidity) as exc_info:
        funded_pool.burn(1, sender=BOB)
    assert exc_info.value.available == 0

    assert funded_pool.liquidity == LIQUIDITY


def test_underfunded_mint_is_rolled_back(initialized_pool: RangePool, alice: Payer):
    pool = initialized_pool
    state_before = pool.state
    alice.underpay = True

    with pytest.raises(InsufficientFunding) as exc_info:
        mint(pool, alice, LIQUIDITY)
    assert exc_info.value.reason == "M0"
    assert exc_info.value.token == TOKEN0

    assert pool.state == state_before
    assert pool.get_position(ALICE) == Position()
    assert pool.ledger.balance_of(ALICE, TOKEN0) == INITIAL_BALANCE
    assert pool.ledger.balance_of(ALICE, TOKEN1) == INITIAL_BALANCE
    assert pool.ledger.balance_of(pool.address, TOKEN0) == 0


def test_swap_accrues_fee_growth(funded_pool: RangePool, bob: Payer):
    pool = funded_pool
    state_before = pool.state

    expected_price, _, _, fee_amount = compute_swap_step(
        pool.sqrt_price_x96, pool.sqrt_ratio_lower_x96, LIQUIDITY, 100, FEE
    )

    amount0, amount1 = swap(pool, bob, zero_for_one=True, amount_specified=100)

    assert amount0 == 100
    assert amount1 < 0
    assert pool.sqrt_price_x96 == expected_price
    assert pool.sqrt_price_x96 < state_before.sqrt_price_x96
    assert fee_amount > 0
    assert pool.fee_growth_global0_x128 == muldiv(fee_amount, Q128, LIQUIDITY)
    assert pool.fee_growth_global1_x128 == 0

    assert pool.ledger.balance_of(BOB, TOKEN0) == INITIAL_BALANCE - 100
    assert pool.ledger.balance_of(BOB, TOKEN1) == INITIAL_BALANCE - amount1


def test_exact_output_swap(funded_pool: RangePool, bob: Payer):
    pool = funded_pool
    quote = pool.simulate_swap(zero_for_one=False, amount_specified=-1000)

    amount0, amount1 = swap(pool, bob, zero_for_one=False, amount_specified=-1000)

    assert amount0 == -1000
    assert amount1 > 0
    assert (amount0, amount1) == (quote.amount0_delta, quote.amount1_delta)
    assert pool.state == quote.final_state
    assert pool.sqrt_price_x96 > quote.initial_state.sqrt_price_x96
    assert pool.fee_growth_global1_x128 > 0
    assert pool.fee_growth_global0_x128 == 0


def test_collect_returns_exactly_what_is_owed(funded_pool: RangePool, alice: Payer, bob: Payer):
    pool = funded_pool
    swap(pool, bob, zero_for_one=True, amount_specified=10**15)

    # Fees are settled into the owed balances when the position is touched
    assert pool.collect(ALICE, 2**128, 2**128, sender=ALICE) == (0, 0)
    pool.burn(LIQUIDITY // 2, sender=ALICE)

    *_, tokens_owed0, tokens_owed1 = pool.get_position(ALICE)
    assert tokens_owed0 > 0
    assert tokens_owed1 > 0

    assert pool.collect(ALICE, 2**128, 2**128, sender=ALICE) == (tokens_owed0, tokens_owed1)
    assert pool.get_position(ALICE).tokens_owed0 == 0
    assert pool.get_position(ALICE).tokens_owed1 == 0
    assert pool.collect(ALICE, 2**128, 2**128, sender=ALICE) == (0, 0)


def test_partial_collect(funded_pool: RangePool):
    pool = funded_pool
    burned0, burned1 = pool.burn(LIQUIDITY, sender=ALICE)

    assert pool.collect(BOB, 1, 0, sender=ALICE) == (1, 0)
    assert pool.ledger.balance_of(BOB, TOKEN0) == INITIAL_BALANCE + 1
    assert pool.get_position(ALICE).tokens_owed0 == burned0 - 1
    assert pool.get_position(ALICE).tokens_owed1 == burned1


def test_collect_rejects_negative_amounts(funded_pool: RangePool):
    with pytest.raises(RangepoolValueError):
        funded_pool.collect(ALICE, -1, 0, sender=ALICE)


def test_later_provider_earns_less(initialized_pool: RangePool, alice: Payer, bob: Payer):
    pool = initialized_pool

    mint(pool, alice, LIQUIDITY)
    swap(pool, bob, zero_for_one=True, amount_specified=10**15)
    mint(pool, bob, LIQUIDITY)

    fees = {}
    for owner in (ALICE, BOB):
        burned0, burned1 = pool.burn(LIQUIDITY, sender=owner)
        collected0, collected1 = pool.collect(owner, 2**128, 2**128, sender=owner)
        fees[owner] = (collected0 - burned0, collected1 - burned1)

    assert fees[BOB] == (0, 0)
    assert fees[ALICE][0] > fees[BOB][0]
    assert fees[ALICE][1] == 0


def test_providers_share_fees_pro_rata(initialized_pool: RangePool, alice: Payer, bob: Payer):
    pool = initialized_pool
    mint(pool, alice, LIQUIDITY)
    mint(pool, bob, 3 * LIQUIDITY)

    swap(pool, alice, zero_for_one=False, amount_specified=10**15)
    fee_growth = pool.fee_growth_global1_x128

    owed = {}
    for owner, liquidity in ((ALICE, LIQUIDITY), (BOB, 3 * LIQUIDITY)):
        _, burned1 = pool.burn(liquidity, sender=owner)
        owed[owner] = pool.get_position(owner).tokens_owed1 - burned1
        assert owed[owner] == muldiv(fee_growth, liquidity, Q128)

    assert owed[ALICE] <= owed[BOB] // 3 + 1


@pytest.mark.parametrize(
    ("zero_for_one", "sqrt_price_limit_x96"),
    [
        (True, PRICE_AT_TICK_0),
        (True, PRICE_AT_TICK_0 + 1),
        (True, MIN_SQRT_RATIO),
        (False, PRICE_AT_TICK_0),
        (False, PRICE_AT_TICK_0 - 1),
        (False, MAX_SQRT_RATIO),
    ],
)
def test_invalid_price_limit(
    funded_pool: RangePool, bob: Payer, zero_for_one: bool, sqrt_price_limit_x96: int
):
    state_before = funded_pool.state
    with pytest.raises(InvalidPriceLimit):
        swap(funded_pool, bob, zero_for_one, 1000, sqrt_price_limit_x96)
    assert funded_pool.state == state_before
    assert bob.calls == []


def test_zero_swap_amount(funded_pool: RangePool, bob: Payer):
    with pytest.raises(InvalidSwapAmount):
        swap(funded_pool, bob, zero_for_one=True, amount_specified=0)


def test_swap_before_initialization(pool: RangePool, bob: Payer):
    with pytest.raises(PoolNotInitialized):
        swap(pool, bob, zero_for_one=True, amount_specified=1000)


def test_swap_stops_at_price_limit(funded_pool: RangePool, bob: Payer):
    limit = get_sqrt_ratio_at_tick(-10)
    amount0, _ = swap(
        funded_pool, bob, zero_for_one=True, amount_specified=10**20, sqrt_price_limit_x96=limit
    )
    assert funded_pool.sqrt_price_x96 == limit
    assert funded_pool.tick == -10
    assert amount0 < 10**20


def test_swap_stops_at_range_boundaries(funded_pool: RangePool, bob: Payer):
    pool = funded_pool

    amount0, amount1 = swap(pool, bob, zero_for_one=True, amount_specified=10**24)
    assert pool.sqrt_price_x96 == pool.sqrt_ratio_lower_x96
    assert pool.tick == TICK_LOWER
    assert 0 < amount0 < 10**24
    assert amount1 < 0

    # Nothing further can be swapped in the same direction
    assert swap(pool, bob, zero_for_one=True, amount_specified=10**24) == (0, 0)
    assert pool.tick == TICK_LOWER

    swap(pool, bob, zero_for_one=False, amount_specified=10**24)
    assert pool.sqrt_price_x96 == pool.sqrt_ratio_upper_x96 - 1
    assert pool.tick == TICK_UPPER - 1

    assert swap(pool, bob, zero_for_one=False, amount_specified=10**24) == (0, 0)


def test_swap_with_no_liquidity(initialized_pool: RangePool, bob: Payer):
    pool = initialized_pool

    assert swap(pool, bob, zero_for_one=True, amount_specified=1000) == (0, 0)
    assert pool.sqrt_price_x96 == pool.sqrt_ratio_lower_x96
    assert pool.fee_growth_global0_x128 == 0


def test_underfunded_swap_is_rolled_back(funded_pool: RangePool, bob: Payer):
    pool = funded_pool
    state_before = pool.state
    balances_before = copy.deepcopy(pool.ledger.balances)
    bob.underpay = True

    with pytest.raises(InsufficientFunding) as exc_info:
        swap(pool, bob, zero_for_one=True, amount_specified=10**15)
    assert exc_info.value.reason == "IIA"

    assert pool.state == state_before
    assert pool.ledger.balances == balances_before


def test_reentrant_call_is_rejected(funded_pool: RangePool, bob: Payer):
    pool = funded_pool
    state_before = pool.state
    bob.reenter = lambda: swap(pool, bob, zero_for_one=True, amount_specified=1)

    with pytest.raises(LiquidityPoolError, match="LOK"):
        swap(pool, bob, zero_for_one=True, amount_specified=1000)
    assert pool.state == state_before

    # The guard is released after the failed call
    bob.reenter = None
    swap(pool, bob, zero_for_one=True, amount_specified=1000)
    assert pool.sqrt_price_x96 < state_before.sqrt_price_x96


def test_fee_growth_never_decreases(funded_pool: RangePool, alice: Payer, bob: Payer):
    pool = funded_pool
    last = (pool.fee_growth_global0_x128, pool.fee_growth_global1_x128)

    for i in range(10):
        swap(pool, bob, zero_for_one=bool(i % 2), amount_specified=(i + 1) * 10**14)
        if i == 5:
            mint(pool, alice, LIQUIDITY)
        if i == 7:
            pool.burn(LIQUIDITY // 3, sender=ALICE)

        current = (pool.fee_growth_global0_x128, pool.fee_growth_global1_x128)
        assert current[0] >= last[0]
        assert current[1] >= last[1]
        assert pool.sqrt_ratio_lower_x96 <= pool.sqrt_price_x96 < pool.sqrt_ratio_upper_x96
        assert TICK_LOWER <= pool.tick < TICK_UPPER
        last = current


def test_events(initialized_pool: RangePool, alice: Payer, fake_subscriber: FakeSubscriber):
    pool = initialized_pool
    fake_subscriber.subscribe(pool)

    amount0, amount1 = mint(pool, alice, LIQUIDITY)
    mint_message, state_message = (received["message"] for received in fake_subscriber.inbox)
    assert mint_message == Mint(
        sender=ALICE, owner=ALICE, amount=LIQUIDITY, amount0=amount0, amount1=amount1
    )
    assert isinstance(state_message, RangePoolStateUpdated)
    assert state_message.state.liquidity == LIQUIDITY

    fake_subscriber.inbox.clear()
    swap0, swap1 = swap(pool, alice, zero_for_one=True, amount_specified=1000)
    swap_message, _ = (received["message"] for received in fake_subscriber.inbox)
    assert swap_message == Swap(
        sender=ALICE,
        recipient=ALICE,
        amount0=swap0,
        amount1=swap1,
        sqrt_price_x96=pool.sqrt_price_x96,
        liquidity=LIQUIDITY,
        tick=pool.tick,
    )

    fake_subscriber.inbox.clear()
    burned0, burned1 = pool.burn(LIQUIDITY, sender=ALICE)
    burn_message, _ = (received["message"] for received in fake_subscriber.inbox)
    assert burn_message == Burn(owner=ALICE, amount=LIQUIDITY, amount0=burned0, amount1=burned1)

    fake_subscriber.inbox.clear()
    collected0, collected1 = pool.collect(BOB, 2**128, 2**128, sender=ALICE)
    (collect_message,) = (received["message"] for received in fake_subscriber.inbox)
    assert collect_message == Collect(
        owner=ALICE, recipient=BOB, amount0=collected0, amount1=collected1
    )

    fake_subscriber.inbox.clear()
    fake_subscriber.unsubscribe(pool)
    mint(pool, alice, LIQUIDITY)
    assert fake_subscriber.inbox == []


def test_failed_operations_publish_nothing(
    funded_pool: RangePool, bob: Payer, fake_subscriber: FakeSubscriber
):
    fake_subscriber.subscribe(funded_pool)
    bob.underpay = True

    with pytest.raises(InsufficientFunding):
        swap(funded_pool, bob, zero_for_one=True, amount_specified=1000)
    assert fake_subscriber.inbox == []


def test_simulate_swap_does_not_change_state(funded_pool: RangePool, bob: Payer):
    pool = funded_pool
    state_before = pool.state

    result = pool.simulate_swap(zero_for_one=True, amount_specified=10**15)
    assert pool.state == state_before
    assert result.initial_state == state_before
    assert result.amount0_delta == 10**15
    assert bob.calls == []

    assert swap(pool, bob, zero_for_one=True, amount_specified=10**15) == (
        result.amount0_delta,
        result.amount1_delta,
    )
    assert pool.state == result.final_state


def test_simulate_swap_with_override_state(funded_pool: RangePool):
    pool = funded_pool
    override_state = pool.simulate_swap(zero_for_one=True, amount_specified=10**15).final_state

    result = pool.simulate_swap(
        zero_for_one=False, amount_specified=10**15, override_state=override_state
    )
    assert result.initial_state is override_state
    assert result.final_state.sqrt_price_x96 > override_state.sqrt_price_x96


def test_calculate_tokens(funded_pool: RangePool):
    pool = funded_pool

    amount_out = pool.calculate_tokens_out_from_tokens_in(TOKEN0, 10**15)
    assert amount_out == -pool.simulate_swap(True, 10**15).amount1_delta
    assert amount_out > 0

    amount_in = pool.calculate_tokens_in_from_tokens_out(TOKEN0, 10**15)
    assert amount_in == pool.simulate_swap(False, -(10**15)).amount1_delta
    assert amount_in > 10**15

    with pytest.raises(RangepoolValueError):
        pool.calculate_tokens_out_from_tokens_in(ALICE, 10**15)
    with pytest.raises(RangepoolValueError):
        pool.calculate_tokens_in_from_tokens_out(BOB, 10**15)


def test_pickle(funded_pool: RangePool, bob: Payer):
    swap(funded_pool, bob, zero_for_one=True, amount_specified=10**15)

    unpickled = pickle.loads(pickle.dumps(funded_pool))
    assert unpickled.state == funded_pool.state
    assert unpickled.get_position(ALICE) == funded_pool.get_position(ALICE)
    assert unpickled.address == funded_pool.address
