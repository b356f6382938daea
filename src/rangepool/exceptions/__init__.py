from rangepool.exceptions.base import RangepoolError, RangepoolValueError
from rangepool.exceptions.erc20 import Erc20Error, InsufficientAllowance, InsufficientBalance
from rangepool.exceptions.evm import EVMRevertError
from rangepool.exceptions.liquidity_pool import (
    FeeGrowthDecrease,
    FeeGrowthOverflow,
    InsufficientFunding,
    InsufficientPositionLiquidity,
    InvalidLiquidityAmount,
    InvalidPriceLimit,
    InvalidSwapAmount,
    LiquidityPoolError,
    PoolAlreadyInitialized,
    PoolNotInitialized,
    PriceOutOfRange,
)
from rangepool.exceptions.position import (
    DeadlineExpired,
    InvalidCallbackCaller,
    InvalidPositionId,
    NotApproved,
    PositionManagerError,
)
from rangepool.exceptions.registry import (
    IdenticalAddresses,
    InvalidPoolParameters,
    ParametersUnavailable,
    PoolNotFound,
    RegistryAlreadyInitialized,
    RegistryError,
    ZeroAddressToken,
)
from rangepool.exceptions.router import SlippageExceeded, SwapRouterError

from . import erc20, evm, liquidity_pool, position, registry, router

__all__ = (
    "DeadlineExpired",
    "EVMRevertError",
    "Erc20Error",
    "FeeGrowthDecrease",
    "FeeGrowthOverflow",
    "IdenticalAddresses",
    "InsufficientAllowance",
    "InsufficientBalance",
    "InsufficientFunding",
    "InsufficientPositionLiquidity",
    "InvalidCallbackCaller",
    "InvalidLiquidityAmount",
    "InvalidPoolParameters",
    "InvalidPositionId",
    "InvalidPriceLimit",
    "InvalidSwapAmount",
    "LiquidityPoolError",
    "NotApproved",
    "ParametersUnavailable",
    "PoolAlreadyInitialized",
    "PoolNotFound",
    "PoolNotInitialized",
    "PositionManagerError",
    "PriceOutOfRange",
    "RangepoolError",
    "RangepoolValueError",
    "RegistryAlreadyInitialized",
    "RegistryError",
    "SlippageExceeded",
    "SwapRouterError",
    "ZeroAddressToken",
    "erc20",
    "evm",
    "liquidity_pool",
    "position",
    "registry",
    "router",
)
