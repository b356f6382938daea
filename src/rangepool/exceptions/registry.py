from typing import Any

from rangepool.exceptions.base import RangepoolError

"""
Exceptions defined here are raised by the pool registry and the pool factory.
"""


class RegistryError(RangepoolError):
    """
    Exception raised inside registries.
    """


class RegistryAlreadyInitialized(RegistryError):
    """
    Raised by a singleton registry if a caller attempts to recreate it.
    """


class IdenticalAddresses(RegistryError):
    def __init__(self) -> None:
        super().__init__(message="IDENTICAL_ADDRESSES")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()


class ZeroAddressToken(RegistryError):
    def __init__(self) -> None:
        super().__init__(message="ZERO_ADDRESS")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()


class InvalidPoolParameters(RegistryError):
    """
    Raised when a pool cannot be created with the given range or fee.
    """


class ParametersUnavailable(RegistryError):
    """
    Raised when a pool attempts to read its deployment parameters outside of pool construction.
    """

    def __init__(self) -> None:
        super().__init__(message="Deployment parameters are only available during pool creation.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()


class PoolNotFound(RegistryError):
    def __init__(self, token0: str, token1: str, index: int) -> None:
        self.token0 = token0
        self.token1 = token1
        self.index = index
        super().__init__(message=f"No pool at index {index} for pair {token0}-{token1}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.token0, self.token1, self.index)
