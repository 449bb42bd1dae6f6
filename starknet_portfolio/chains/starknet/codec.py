"""Pure Starknet value helpers: felts, u256 words, selectors. No I/O."""
from __future__ import annotations

from functools import lru_cache
from typing import Sequence

from web3 import Web3

U128 = 2**128
_MASK_250 = 2**250 - 1


def to_int(value: int | str) -> int:
    """Parse a felt given as int, hex string (``0x...``) or decimal string."""
    if isinstance(value, bool):
        raise ValueError(f"Not a felt: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def u256_from_words(low: int | str, high: int | str) -> int:
    """Join the two 128-bit halves of a u256: ``high * 2**128 + low``."""
    low_i, high_i = to_int(low), to_int(high)
    if not (0 <= low_i < U128 and 0 <= high_i < U128):
        raise ValueError(f"u256 words out of range: low={low_i} high={high_i}")
    return high_i * U128 + low_i


def split_u256(value: int) -> tuple[int, int]:
    """Split an integer into ``(low, high)`` 128-bit words."""
    if not 0 <= value < U128 * U128:
        raise ValueError(f"Value does not fit in u256: {value}")
    return value % U128, value // U128


def read_u256(words: Sequence[int], offset: int = 0) -> int:
    """Read the u256 stored at ``words[offset:offset + 2]``."""
    if len(words) < offset + 2:
        raise ValueError(
            f"Expected u256 at offset {offset}, got {len(words)} word(s)"
        )
    return u256_from_words(words[offset], words[offset + 1])


@lru_cache(maxsize=None)
def get_selector(entrypoint: str) -> int:
    """Starknet entry-point selector: Keccak-256 of the name, masked to 250 bits."""
    return int.from_bytes(Web3.keccak(text=entrypoint), "big") & _MASK_250


def normalize_address(address: str) -> str:
    """Canonical form: lower-case hex, ``0x`` prefix, no leading zeros."""
    value = to_int(address) if str(address).lower().startswith("0x") else None
    if value is None or value < 0:
        raise ValueError(f"Not a hex address: {address!r}")
    return hex(value)
