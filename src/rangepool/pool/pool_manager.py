from eth_typing import ChecksumAddress

from rangepool.exceptions import RangepoolValueError
from rangepool.logging import logger
from rangepool.pool.factory import PoolFactory
from rangepool.pool.types import CreateAndInitializeParams, PoolInfo


class PoolManager(PoolFactory):
    """
    A factory with helpers to create a pool and set its starting price in one call, and to list all
    pools it has created.
    """

    def create_and_initialize_pool_if_necessary(
        self,
        params: CreateAndInitializeParams,
        *,
        silent: bool = False,
    ) -> ChecksumAddress:
        """
        Create the pool described by `params` if it does not exist, and initialize it at
        `params.sqrt_price_x96` if it has no price yet. An existing price is left unchanged.
        """

        if int(params.token0, 16) >= int(params.token1, 16):
            raise RangepoolValueError(message="token0 must be less than token1")

        pool_address = self.create_pool(
            token_a=params.token0,
            token_b=params.token1,
            tick_lower=params.tick_lower,
            tick_upper=params.tick_upper,
            fee=params.fee,
            silent=silent,
        )

        pool = next(
            pool
            for pool in self.get_pools(params.token0, params.token1)
            if pool.address == pool_address
        )
        if not pool.state.initialized:
            pool.initialize(params.sqrt_price_x96)
        else:
            logger.debug(f"{pool} already initialized at sqrt price {pool.sqrt_price_x96}")

        return pool_address

    def get_all_pools(self) -> list[PoolInfo]:
        """
        Get a listing of every pool, grouped by token pair.
        """

        return [
            PoolInfo(
                pool=pool.address,
                token0=pool.token0,
                token1=pool.token1,
                index=index,
                fee=pool.fee,
                tick_lower=pool.tick_lower,
                tick_upper=pool.tick_upper,
                tick=pool.tick,
                sqrt_price_x96=pool.sqrt_price_x96,
                liquidity=pool.liquidity,
            )
            for token0, token1 in self.get_pairs()
            for index, pool in enumerate(self.get_pools(token0, token1))
        ]
