from .abstract import (
    AbstractLiquidityPool,
    AbstractManager,
    AbstractPoolState,
    AbstractRegistry,
    AbstractSimulationResult,
)
from .concrete import (
    AbstractPublisherMessage,
    PoolStateMessage,
    Publisher,
    PublisherMixin,
    Subscriber,
)

__all__ = (
    "AbstractLiquidityPool",
    "AbstractManager",
    "AbstractPoolState",
    "AbstractPublisherMessage",
    "AbstractRegistry",
    "AbstractSimulationResult",
    "PoolStateMessage",
    "Publisher",
    "PublisherMixin",
    "Subscriber",
)
