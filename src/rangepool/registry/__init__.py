from .all_pools import PoolRegistry, pool_registry

__all__ = (
    "PoolRegistry",
    "pool_registry",
)
