"""Minimal ABI encoding/decoding for read-only contract calls."""

import re
from typing import List, Union

from Crypto.Hash import keccak

_ADDRESS = re.compile(r"0x[0-9a-fA-F]{40}")
WORD_HEX = 64


def is_address(text: object) -> bool:
    """True for a 0x-prefixed 20-byte hex address (checksum not enforced)."""
    return isinstance(text, str) and bool(_ADDRESS.fullmatch(text))


def keccak_selector(signature: str) -> str:
    """First 4 bytes of keccak-256(signature) as 8 hex chars."""
    h = keccak.new(digest_bits=256)
    h.update(signature.encode("utf-8"))
    return h.hexdigest()[:8]


def pad32(hex_str: str) -> str:
    return hex_str.rjust(WORD_HEX, "0")


def abi_encode_address(address: str) -> str:
    return pad32(address.lower().replace("0x", ""))


def abi_encode_uint(value: int) -> str:
    if value < 0:
        raise ValueError(f"uint256 argument must be >= 0, got {value}")
    return pad32(hex(value)[2:])


def encode_call(signature: str, *args: Union[int, str]) -> str:
    """Build eth_call data: selector followed by address/uint arguments."""
    parts = ["0x", keccak_selector(signature)]
    for arg in args:
        if isinstance(arg, str):
            if not is_address(arg):
                raise ValueError(f"Invalid address argument: {arg!r}")
            parts.append(abi_encode_address(arg))
        else:
            parts.append(abi_encode_uint(int(arg)))
    return "".join(parts)


def decode_words(hex_str: str) -> List[int]:
    """Split return data into 32-byte words.

    Raises:
        ValueError: On empty ("0x") or malformed return data.
    """
    if not isinstance(hex_str, str):
        raise ValueError(f"Return data must be a hex string, got {type(hex_str).__name__}")
    body = hex_str[2:] if hex_str.startswith("0x") else hex_str
    if not body:
        raise ValueError("Empty return data")
    if len(body) < WORD_HEX:
        body = pad32(body)
    elif len(body) % WORD_HEX:
        raise ValueError(f"Return data is not word aligned: {len(body)} hex chars")
    return [int(body[i:i + WORD_HEX], 16) for i in range(0, len(body), WORD_HEX)]


def decode_uint256(hex_str: str) -> int:
    """First word of the return data (tuples decode to their first field)."""
    return decode_words(hex_str)[0]


def decode_address_word(word: int) -> str:
    return "0x" + format(word, "064x")[-40:]
