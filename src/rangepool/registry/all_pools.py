from typing import Self

from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.exceptions import RangepoolValueError, RegistryAlreadyInitialized
from rangepool.types import AbstractLiquidityPool, AbstractRegistry

type Address = bytes | str


class PoolRegistry(AbstractRegistry):
    """
    Tracks every pool created by any factory, keyed by the pool's address.
    """

    instance: Self | None = None

    @classmethod
    def get_instance(cls) -> Self | None:
        return cls.instance

    def __init__(self) -> None:
        if type(self).instance is not None:
            raise RegistryAlreadyInitialized(
                message="A registry has already been initialized. Access it using the pool_registry.get_instance() class method"  # noqa:E501
            )
        type(self).instance = self

        self._all_pools: dict[ChecksumAddress, AbstractLiquidityPool] = {}

    def __contains__(self, pool_address: Address) -> bool:
        return get_checksum_address(pool_address) in self._all_pools

    def __len__(self) -> int:
        return len(self._all_pools)

    def get(self, pool_address: Address) -> AbstractLiquidityPool | None:
        return self._all_pools.get(get_checksum_address(pool_address))

    def add(self, pool: AbstractLiquidityPool, pool_address: Address) -> None:
        _pool_address = get_checksum_address(pool_address)
        if _pool_address in self._all_pools:
            raise RangepoolValueError(message="Pool is already registered")
        self._all_pools[_pool_address] = pool

    def remove(self, pool_address: Address) -> None:
        self._all_pools.pop(get_checksum_address(pool_address), None)

    def clear(self) -> None:
        self._all_pools.clear()


pool_registry = PoolRegistry()
