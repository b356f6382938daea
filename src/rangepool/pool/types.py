import dataclasses
from typing import TYPE_CHECKING, NamedTuple, Protocol

import pydantic
from eth_typing import ChecksumAddress

from rangepool.cache import get_checksum_address
from rangepool.pool.fee_growth import FeeGrowth
from rangepool.types.abstract import AbstractPoolState, AbstractSimulationResult
from rangepool.types.aliases import Liquidity, Pip, PositionId, SqrtPriceX96, Tick, X128
from rangepool.types.concrete import AbstractPublisherMessage, PoolStateMessage
from rangepool.validation.evm_values import (
    ValidatedInt24,
    ValidatedUint24,
    ValidatedUint160,
    ValidatedUint256,
)

if TYPE_CHECKING:
    from rangepool.erc20 import TokenLedger


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class RangePoolState(AbstractPoolState):
    liquidity: Liquidity = 0
    sqrt_price_x96: SqrtPriceX96 = 0
    tick: Tick = 0
    fee_growth_global0_x128: FeeGrowth = FeeGrowth()
    fee_growth_global1_x128: FeeGrowth = FeeGrowth()

    @property
    def initialized(self) -> bool:
        return self.sqrt_price_x96 != 0


@dataclasses.dataclass(slots=True, frozen=True)
class RangePoolStateUpdated(PoolStateMessage):
    state: RangePoolState


@dataclasses.dataclass(slots=True, frozen=True)
class RangePoolSimulationResult(AbstractSimulationResult):
    amount0_delta: int
    amount1_delta: int
    fee_amount: int
    initial_state: RangePoolState
    final_state: RangePoolState


class Position(NamedTuple):
    liquidity: Liquidity = 0
    fee_growth_inside0_last_x128: X128 = 0
    fee_growth_inside1_last_x128: X128 = 0
    tokens_owed0: int = 0
    tokens_owed1: int = 0


@dataclasses.dataclass(slots=True, frozen=True)
class PoolParameters:
    """
    The identity handed from a deployer to a pool while the pool is being constructed.
    """

    factory: ChecksumAddress
    token0: ChecksumAddress
    token1: ChecksumAddress
    tick_lower: Tick
    tick_upper: Tick
    fee: Pip


class PoolDeployer(Protocol):
    address: ChecksumAddress
    ledger: "TokenLedger"
    pool_init_hash: str

    @property
    def parameters(self) -> PoolParameters: ...


class MintCallback(Protocol):
    """
    Funds a pool after liquidity was added. Implementations must increase the pool's balance of
    each token by at least the given amount before returning.
    """

    address: ChecksumAddress

    def mint_callback(self, amount0_owed: int, amount1_owed: int, data: bytes) -> None: ...


class SwapCallback(Protocol):
    """
    Funds a pool during a swap. Positive deltas are owed to the pool.
    """

    address: ChecksumAddress

    def swap_callback(self, amount0_delta: int, amount1_delta: int, data: bytes) -> None: ...


# Event messages
@dataclasses.dataclass(slots=True, frozen=True)
class Mint(AbstractPublisherMessage):
    sender: ChecksumAddress
    owner: ChecksumAddress
    amount: Liquidity
    amount0: int
    amount1: int


@dataclasses.dataclass(slots=True, frozen=True)
class Burn(AbstractPublisherMessage):
    owner: ChecksumAddress
    amount: Liquidity
    amount0: int
    amount1: int


@dataclasses.dataclass(slots=True, frozen=True)
class Collect(AbstractPublisherMessage):
    owner: ChecksumAddress
    recipient: ChecksumAddress
    amount0: int
    amount1: int


@dataclasses.dataclass(slots=True, frozen=True)
class Swap(AbstractPublisherMessage):
    sender: ChecksumAddress
    recipient: ChecksumAddress
    amount0: int
    amount1: int
    sqrt_price_x96: SqrtPriceX96
    liquidity: Liquidity
    tick: Tick


@dataclasses.dataclass(slots=True, frozen=True)
class PoolCreated(AbstractPublisherMessage):
    token0: ChecksumAddress
    token1: ChecksumAddress
    index: int
    tick_lower: Tick
    tick_upper: Tick
    fee: Pip
    pool: ChecksumAddress


# Listings
@dataclasses.dataclass(slots=True, frozen=True)
class PoolInfo:
    pool: ChecksumAddress
    token0: ChecksumAddress
    token1: ChecksumAddress
    index: int
    fee: Pip
    tick_lower: Tick
    tick_upper: Tick
    tick: Tick
    sqrt_price_x96: SqrtPriceX96
    liquidity: Liquidity


@dataclasses.dataclass(slots=True, frozen=True)
class PositionInfo:
    id: PositionId
    owner: ChecksumAddress
    token0: ChecksumAddress
    token1: ChecksumAddress
    index: int
    fee: Pip
    liquidity: Liquidity
    tick_lower: Tick
    tick_upper: Tick
    tokens_owed0: int
    tokens_owed1: int
    fee_growth_inside0_last_x128: X128
    fee_growth_inside1_last_x128: X128


# Call parameters
class CreateAndInitializeParams(pydantic.BaseModel, frozen=True):
    token0: str
    token1: str
    fee: ValidatedUint24
    tick_lower: ValidatedInt24
    tick_upper: ValidatedInt24
    sqrt_price_x96: ValidatedUint160

    @pydantic.field_validator("token0", "token1", mode="after")
    @classmethod
    def checksum_address(cls, address: str) -> ChecksumAddress:
        return get_checksum_address(address)


class MintParams(pydantic.BaseModel, frozen=True):
    token0: str
    token1: str
    index: ValidatedUint256
    amount0_desired: ValidatedUint256
    amount1_desired: ValidatedUint256
    recipient: str
    deadline: ValidatedUint256

    @pydantic.field_validator("token0", "token1", "recipient", mode="after")
    @classmethod
    def checksum_address(cls, address: str) -> ChecksumAddress:
        return get_checksum_address(address)


class ExactInputParams(pydantic.BaseModel, frozen=True):
    token_in: str
    token_out: str
    index_path: tuple[ValidatedUint256, ...] = pydantic.Field(min_length=1)
    recipient: str
    deadline: ValidatedUint256
    amount_in: ValidatedUint256
    amount_out_minimum: ValidatedUint256 = 0
    sqrt_price_limit_x96: ValidatedUint160 = 0

    @pydantic.field_validator("token_in", "token_out", "recipient", mode="after")
    @classmethod
    def checksum_address(cls, address: str) -> ChecksumAddress:
        return get_checksum_address(address)


class ExactOutputParams(pydantic.BaseModel, frozen=True):
    token_in: str
    token_out: str
    index_path: tuple[ValidatedUint256, ...] = pydantic.Field(min_length=1)
    recipient: str
    deadline: ValidatedUint256
    amount_out: ValidatedUint256
    amount_in_maximum: ValidatedUint256
    sqrt_price_limit_x96: ValidatedUint160 = 0

    @pydantic.field_validator("token_in", "token_out", "recipient", mode="after")
    @classmethod
    def checksum_address(cls, address: str) -> ChecksumAddress:
        return get_checksum_address(address)


class QuoteParams(pydantic.BaseModel, frozen=True):
    """
    A routed swap to quote. `amount` is the input amount for an exact input quote, or the output
    amount for an exact output quote.
    """

    token_in: str
    token_out: str
    index_path: tuple[ValidatedUint256, ...] = pydantic.Field(min_length=1)
    amount: ValidatedUint256
    sqrt_price_limit_x96: ValidatedUint160 = 0

    @pydantic.field_validator("token_in", "token_out", mode="after")
    @classmethod
    def checksum_address(cls, address: str) -> ChecksumAddress:
        return get_checksum_address(address)
