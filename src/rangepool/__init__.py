from .cache import get_checksum_address
from .config import settings
from .version import __version__

# isort: split

from .erc20 import TokenLedger
from .logging import logger
from .pool import (
    FeeGrowth,
    PoolFactory,
    PoolManager,
    PositionManager,
    RangePool,
    RangePoolSimulationResult,
    RangePoolState,
    RangePoolStateUpdated,
    SwapRouter,
)
from .registry import pool_registry

# isort: split

from . import (
    constants,
    erc20,
    exceptions,
    functions,
    libraries,
    pool,
    registry,
    types,
    validation,
)

__all__ = (
    "FeeGrowth",
    "PoolFactory",
    "PoolManager",
    "PositionManager",
    "RangePool",
    "RangePoolSimulationResult",
    "RangePoolState",
    "RangePoolStateUpdated",
    "SwapRouter",
    "TokenLedger",
    "__version__",
    "constants",
    "erc20",
    "exceptions",
    "functions",
    "get_checksum_address",
    "libraries",
    "logger",
    "pool",
    "pool_registry",
    "registry",
    "settings",
    "types",
    "validation",
)
