from .factory import PoolFactory
from .fee_growth import FeeGrowth
from .pool_manager import PoolManager
from .position_manager import PositionManager
from .range_pool import RangePool
from .swap_router import SwapRouter
from .types import (
    Burn,
    Collect,
    CreateAndInitializeParams,
    ExactInputParams,
    ExactOutputParams,
    Mint,
    MintParams,
    PoolCreated,
    PoolInfo,
    Position,
    PositionInfo,
    QuoteParams,
    RangePoolSimulationResult,
    RangePoolState,
    RangePoolStateUpdated,
    Swap,
)

__all__ = (
    "Burn",
    "Collect",
    "CreateAndInitializeParams",
    "ExactInputParams",
    "ExactOutputParams",
    "FeeGrowth",
    "Mint",
    "MintParams",
    "PoolCreated",
    "PoolFactory",
    "PoolInfo",
    "PoolManager",
    "Position",
    "PositionInfo",
    "PositionManager",
    "QuoteParams",
    "RangePool",
    "RangePoolSimulationResult",
    "RangePoolState",
    "RangePoolStateUpdated",
    "SwapRouter",
    "Swap",
)
