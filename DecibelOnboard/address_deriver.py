"""Deterministic object address derivation for the Aptos account model."""
import logging
from typing import Union

from aptos_sdk.account_address import AccountAddress

from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# Seed of the primary trading subaccount of an owner.
PRIMARY_SUBACCOUNT_SEED = "decibel_dex_primary"
# Seed of the collateral asset metadata object under the package.
USDC_METADATA_SEED = "USDC"


def parse_address(address: str) -> AccountAddress:
    """Parse a hex address, accepting short forms and any case.

    Short forms are left-padded with zeros by ``from_str_relaxed``.

    Raises:
        InvalidInputError: if the address is not hex or longer than 32 bytes.
    """
    if not isinstance(address, str):
        raise InvalidInputError(f"Address must be a string, got {type(address).__name__}")

    hex_part = address.strip().lower()
    if hex_part.startswith("0x"):
        hex_part = hex_part[2:]

    if not hex_part or len(hex_part) > AccountAddress.LENGTH * 2:
        raise InvalidInputError(
            f"Address {address!r} is not decodable as {AccountAddress.LENGTH} bytes"
        )

    try:
        return AccountAddress.from_str_relaxed(hex_part)
    except ValueError:
        raise InvalidInputError(f"Address {address!r} is not valid hex")


def normalize_address(address: str) -> str:
    """Return the long ``0x``-prefixed lowercase form of an address."""
    return "0x" + parse_address(address).address.hex()


def addresses_equal(left: str, right: str) -> bool:
    """Case-insensitive address comparison that tolerates short forms."""
    try:
        return parse_address(left).address == parse_address(right).address
    except InvalidInputError:
        return left.strip().lower() == right.strip().lower()


def derive_object_address(creator_address: str, seed: Union[str, bytes]) -> str:
    """Compute the address of an object created by ``creator_address`` from ``seed``.

    The address is ``sha3_256(creator || seed || 0xFE)``, as computed by
    ``AccountAddress.for_named_object``. Identical inputs always give the
    identical address.

    Args:
        creator_address: Hex address of the creating account or package
        seed: Non-empty seed, text seeds are encoded as UTF-8

    Returns:
        Derived address in long ``0x`` form

    Raises:
        InvalidInputError: if the creator address or the seed is malformed
    """
    creator = parse_address(creator_address)

    if isinstance(seed, str):
        seed_bytes = seed.encode("utf-8")
    elif isinstance(seed, (bytes, bytearray)):
        seed_bytes = bytes(seed)
    else:
        raise InvalidInputError(f"Seed must be str or bytes, got {type(seed).__name__}")

    if not seed_bytes:
        raise InvalidInputError("Seed must not be empty")

    derived = "0x" + AccountAddress.for_named_object(creator, seed_bytes).address.hex()
    logger.debug(f"Derived object address {derived} from creator 0x{creator.address.hex()} and seed {seed!r}")
    return derived
