import eth_abi.abi
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes

from rangepool.cache import get_checksum_address
from rangepool.types.aliases import Pip, Tick


def create2_address(
    deployer: str | bytes,
    salt: bytes | str,
    init_code_hash: bytes | str,
) -> ChecksumAddress:
    """
    Generate the deterministic CREATE2 address for a given deployer, salt, and the keccak hash of
    the contract creation (init) bytecode.

    References:
        - https://eips.ethereum.org/EIPS/eip-1014
    """
    return get_checksum_address(
        keccak(HexBytes(0xFF) + HexBytes(deployer) + HexBytes(salt) + HexBytes(init_code_hash))[
            -20:
        ],  # Contract address is the least significant 20 bytes from the 32 byte hash
    )


def sort_tokens(
    token_a: str | bytes,
    token_b: str | bytes,
) -> tuple[ChecksumAddress, ChecksumAddress]:
    """
    Order two token addresses by their numeric value.
    """

    _token_a = get_checksum_address(token_a)
    _token_b = get_checksum_address(token_b)
    if int(_token_a, 16) < int(_token_b, 16):
        return _token_a, _token_b
    return _token_b, _token_a


def pool_salt(
    token0: ChecksumAddress,
    token1: ChecksumAddress,
    tick_lower: Tick,
    tick_upper: Tick,
    fee: Pip,
) -> HexBytes:
    """
    The CREATE2 salt identifying a pool, the hash of its ABI-encoded identity tuple.
    """

    return HexBytes(
        keccak(
            eth_abi.abi.encode(
                types=("address", "address", "int24", "int24", "uint24"),
                args=(token0, token1, tick_lower, tick_upper, fee),
            )
        )
    )


def generate_pool_address(
    deployer_address: str | bytes,
    token0: str | bytes,
    token1: str | bytes,
    tick_lower: Tick,
    tick_upper: Tick,
    fee: Pip,
    init_hash: str | bytes,
) -> ChecksumAddress:
    """
    Generate the deterministic address of a pool from its deployer and identity tuple.

    Tokens are sorted before the salt is built, so either ordering of the pair gives the same
    address.
    """

    _token0, _token1 = sort_tokens(token0, token1)
    return create2_address(
        deployer=deployer_address,
        salt=pool_salt(_token0, _token1, tick_lower, tick_upper, fee),
        init_code_hash=init_hash,
    )
