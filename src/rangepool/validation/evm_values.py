from typing import Annotated

from pydantic import Field

from rangepool.constants import (
    MAX_INT24,
    MAX_UINT24,
    MAX_UINT160,
    MAX_UINT256,
    MIN_INT24,
    MIN_UINT24,
    MIN_UINT160,
    MIN_UINT256,
)

type ValidatedInt24 = Annotated[int, Field(strict=True, ge=MIN_INT24, le=MAX_INT24)]

type ValidatedUint24 = Annotated[int, Field(strict=True, ge=MIN_UINT24, le=MAX_UINT24)]
type ValidatedUint160 = Annotated[int, Field(strict=True, ge=MIN_UINT160, le=MAX_UINT160)]
type ValidatedUint256 = Annotated[int, Field(strict=True, ge=MIN_UINT256, le=MAX_UINT256)]
