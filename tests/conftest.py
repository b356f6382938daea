import logging
from typing import Any

import eth_abi.abi
import pytest
from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.erc20 import TokenLedger
from rangepool.logging import logger
from rangepool.pool import PoolFactory, RangePool
from rangepool.registry import pool_registry
from rangepool.types.concrete import AbstractPublisherMessage, Publisher

FACTORY_ADDRESS = get_checksum_address("0x0227628f3F023bb0B980b67D528571c95c6DaC1c")
TOKEN0 = get_checksum_address("0x1000000000000000000000000000000000000001")
TOKEN1 = get_checksum_address("0x2000000000000000000000000000000000000002")
ALICE = get_checksum_address("0xA11CE00000000000000000000000000000000001")
BOB = get_checksum_address("0xB0B0000000000000000000000000000000000002")

# Funding for each test account, in each token
INITIAL_BALANCE = 10**30

TICK_LOWER = -600
TICK_UPPER = 600
FEE = 3_000


@pytest.fixture(autouse=True)
def _initialize_and_reset_after_each_test():
    """
    Before each test, clear/reset global values and singletons
    """
    pool_registry._all_pools.clear()
    PoolFactory.instances.clear()


@pytest.fixture(scope="session", autouse=True)
def _set_rangepool_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


class FakeSubscriber:
    """
    This subscriber class provides a record of received messages, and can be used to test that
    publisher/subscriber methods operate as expected.
    """

    def __init__(self) -> None:
        self.inbox: list[dict[str, Any]] = []

    def notify(self, publisher: Publisher, message: AbstractPublisherMessage) -> None:
        self.inbox.append(
            {
                "from": publisher,
                "message": message,
            }
        )

    def subscribe(self, publisher: Publisher) -> None:
        publisher.subscribe(self)

    def unsubscribe(self, publisher: Publisher) -> None:
        publisher.unsubscribe(self)


class Payer:
    """
    A funding callback target that pays a pool from its own ledger balance.

    Setting `underpay` pays half of each amount owed to simulate an under-funding caller, and a
    `reenter` hook can be set to call back into the pool during the callback.
    """

    def __init__(self, address: str, ledger: TokenLedger) -> None:
        self.address: ChecksumAddress = get_checksum_address(address)
        self.ledger = ledger
        self.underpay = False
        self.reenter: Any = None
        self.calls: list[tuple[int, int]] = []

    def _pay(self, data: bytes, amount0: int, amount1: int) -> None:
        pool_address, token0, token1 = eth_abi.abi.decode(
            types=("address", "address", "address"), data=data
        )
        for token, amount in ((token0, amount0), (token1, amount1)):
            if amount > 0:
                self.ledger.transfer(
                    token=token,
                    amount=amount // 2 if self.underpay else amount,
                    from_addr=self.address,
                    to_addr=pool_address,
                )

    def mint_callback(self, amount0_owed: int, amount1_owed: int, data: bytes) -> None:
        self.calls.append((amount0_owed, amount1_owed))
        if self.reenter is not None:
            self.reenter()
        self._pay(data, amount0_owed, amount1_owed)

    def swap_callback(self, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        self.calls.append((amount0_delta, amount1_delta))
        if self.reenter is not None:
            self.reenter()
        self._pay(data, amount0_delta, amount1_delta)


def callback_data(pool: RangePool) -> bytes:
    return eth_abi.abi.encode(
        types=("address", "address", "address"),
        args=(pool.address, pool.token0, pool.token1),
    )


@pytest.fixture
def ledger() -> TokenLedger:
    ledger = TokenLedger()
    for account in (ALICE, BOB):
        for token in (TOKEN0, TOKEN1):
            ledger.mint(token=token, to_addr=account, amount=INITIAL_BALANCE)
    return ledger


@pytest.fixture
def factory(ledger: TokenLedger) -> PoolFactory:
    return PoolFactory(FACTORY_ADDRESS, ledger=ledger)


@pytest.fixture
def pool(factory: PoolFactory) -> RangePool:
    """
    An uninitialized pool covering [-600, 600) with a 0.3% fee
    """
    factory.create_pool(TOKEN0, TOKEN1, TICK_LOWER, TICK_UPPER, FEE, silent=True)
    return factory.get_pool_object(TOKEN0, TOKEN1, 0)


@pytest.fixture
def alice(ledger: TokenLedger) -> Payer:
    return Payer(ALICE, ledger)


@pytest.fixture
def bob(ledger: TokenLedger) -> Payer:
    return Payer(BOB, ledger)


@pytest.fixture
def fake_subscriber() -> FakeSubscriber:
    return FakeSubscriber()
