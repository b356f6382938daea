import contextlib
from collections.abc import Iterator
from threading import Lock
from typing import Any, ClassVar, Self
from weakref import WeakSet, WeakValueDictionary

from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.config import settings
from rangepool.constants import ZERO_ADDRESS
from rangepool.erc20 import TokenLedger
from rangepool.exceptions import (
    IdenticalAddresses,
    InvalidPoolParameters,
    ParametersUnavailable,
    PoolNotFound,
    RegistryAlreadyInitialized,
    ZeroAddressToken,
)
from rangepool.functions import sort_tokens
from rangepool.libraries.constants import FEE_DENOMINATOR
from rangepool.libraries.tick_math import MAX_TICK, MIN_TICK
from rangepool.logging import logger
from rangepool.pool.range_pool import RangePool
from rangepool.pool.types import PoolCreated, PoolParameters
from rangepool.types import AbstractManager, PublisherMixin
from rangepool.types.aliases import Pip, Tick
from rangepool.types.concrete import Subscriber


class PoolFactory(PublisherMixin, AbstractManager):
    """
    Creates and tracks fixed-range pools. Each (token pair, tick range, fee) identity maps to exactly
    one pool, and each token pair may hold any number of pools, addressed by the order in which they
    were created.

    One factory may exist for a given address. Access an existing one with `get_instance`.
    """

    instances: ClassVar[WeakValueDictionary[ChecksumAddress, Any]] = WeakValueDictionary()
    pool_class: type[RangePool] = RangePool

    def __init_subclass__(cls, *, pool_class: type[RangePool] | None = None, **kwargs: Any) -> None:
        if pool_class is not None:
            cls.pool_class = pool_class
        super().__init_subclass__(**kwargs)

    @classmethod
    def get_instance(cls, address: str) -> Self | None:
        return cls.instances.get(get_checksum_address(address))

    def __init__(
        self,
        address: str,
        *,
        ledger: TokenLedger,
        pool_init_hash: str | None = None,
    ) -> None:
        self.address = get_checksum_address(address)
        if self.address in self.instances:
            raise RegistryAlreadyInitialized(
                message="A factory has already been initialized for this address. Access it using the get_instance() class method"  # noqa:E501
            )
        self.instances[self.address] = self

        self.ledger = ledger
        self.pool_init_hash = (
            pool_init_hash if pool_init_hash is not None else settings.factory.pool_init_hash
        )

        self._lock = Lock()
        self._pools: dict[tuple[ChecksumAddress, ChecksumAddress], list[RangePool]] = {}
        self._parameters: PoolParameters | None = None
        self._subscribers: WeakSet[Subscriber] = WeakSet()

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(address={self.address})"

    @property
    def parameters(self) -> PoolParameters:
        """
        The identity of the pool currently being constructed.
        """

        if self._parameters is None:
            raise ParametersUnavailable
        return self._parameters

    @contextlib.contextmanager
    def _deploying(self, parameters: PoolParameters) -> Iterator[None]:
        self._parameters = parameters
        try:
            yield
        finally:
            self._parameters = None

    @staticmethod
    def sort_tokens(token_a: str, token_b: str) -> tuple[ChecksumAddress, ChecksumAddress]:
        """
        Order a token pair by address, rejecting identical and zero addresses.
        """

        token0, token1 = sort_tokens(token_a, token_b)
        if token0 == token1:
            raise IdenticalAddresses
        if token0 == ZERO_ADDRESS:
            raise ZeroAddressToken
        return token0, token1

    def get_pools(self, token_a: str, token_b: str) -> tuple[RangePool, ...]:
        """
        Get all pools for a token pair, in order of creation.
        """

        return tuple(self._pools.get(self.sort_tokens(token_a, token_b), ()))

    def get_pool(self, token_a: str, token_b: str, index: int) -> ChecksumAddress:
        """
        Get the address of the pool at `index` for a token pair.
        """

        return self.get_pool_object(token_a, token_b, index).address

    def get_pool_object(self, token_a: str, token_b: str, index: int) -> RangePool:
        token0, token1 = self.sort_tokens(token_a, token_b)
        pools = self._pools.get((token0, token1), [])
        if not (0 <= index < len(pools)):
            raise PoolNotFound(token0=token0, token1=token1, index=index)
        return pools[index]

    def get_pairs(self) -> list[tuple[ChecksumAddress, ChecksumAddress]]:
        """
        Get every token pair with at least one pool, in order of the pair's first pool creation.
        """

        return list(self._pools)

    def _check_pool_parameters(self, tick_lower: Tick, tick_upper: Tick, fee: Pip) -> None:
        if tick_lower >= tick_upper:
            raise InvalidPoolParameters(
                message=f"tick_lower {tick_lower} must be less than tick_upper {tick_upper}"
            )
        if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
            raise InvalidPoolParameters(
                message=f"Range [{tick_lower}, {tick_upper}) exceeds [{MIN_TICK}, {MAX_TICK}]"
            )
        if not (0 <= fee < FEE_DENOMINATOR):
            raise InvalidPoolParameters(message=f"Fee {fee} must be in [0, {FEE_DENOMINATOR})")

    def create_pool(
        self,
        token_a: str,
        token_b: str,
        tick_lower: Tick,
        tick_upper: Tick,
        fee: Pip,
        *,
        silent: bool = False,
    ) -> ChecksumAddress:
        """
        Create a pool for the token pair with the given range and fee, or return the address of the
        existing pool with that identity.
        """

        token0, token1 = self.sort_tokens(token_a, token_b)
        self._check_pool_parameters(tick_lower, tick_upper, fee)

        with self._lock:
            pools = self._pools.get((token0, token1), [])
            for pool in pools:
                if (pool.tick_lower, pool.tick_upper, pool.fee) == (tick_lower, tick_upper, fee):
                    return pool.address

            with self._deploying(
                PoolParameters(
                    factory=self.address,
                    token0=token0,
                    token1=token1,
                    tick_lower=tick_lower,
                    tick_upper=tick_upper,
                    fee=fee,
                )
            ):
                pool = self.pool_class(deployer=self, silent=silent)

            index = len(pools)
            self._pools.setdefault((token0, token1), []).append(pool)

        message = PoolCreated(
            token0=token0,
            token1=token1,
            index=index,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            fee=fee,
            pool=pool.address,
        )
        logger.debug(f"{self}: {message}")
        self._notify_subscribers(message)
        return pool.address
