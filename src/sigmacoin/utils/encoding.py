"""Encoding and decoding utilities."""

from typing import Union


def bytes_to_hex(data: Union[bytes, bytearray]) -> str:
    """
    Convert bytes to hexadecimal string.

    Args:
        data: Bytes to convert

    Returns:
        str: Hexadecimal string with '0x' prefix
    """
    return "0x" + bytes(data).hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert hexadecimal string to bytes.

    Args:
        hex_str: Hexadecimal string (with or without '0x' prefix)

    Returns:
        bytes: Decoded bytes

    Raises:
        ValueError: If hex string is invalid
    """
    if hex_str.startswith("0x"):
        hex_str = hex_str[2:]

    if len(hex_str) % 2 != 0:
        raise ValueError("Hex string must have even number of characters")

    return bytes.fromhex(hex_str)


def int_to_fixed_bytes(value: int, size: int) -> bytes:
    """Big-endian encoding of a non-negative integer into exactly ``size`` bytes."""
    if value < 0 or value.bit_length() > 8 * size:
        raise ValueError(f"Integer does not fit in {size} bytes")
    return value.to_bytes(size, byteorder="big")


def read_exact(data: Union[bytes, bytearray, memoryview], offset: int, size: int) -> bytes:
    """
    Slice exactly ``size`` bytes starting at ``offset``.

    Raises:
        ValueError: If fewer than ``size`` bytes remain
    """
    end = offset + size
    if offset < 0 or end > len(data):
        raise ValueError(
            f"Need {size} bytes at offset {offset}, buffer has {len(data)}"
        )
    return bytes(data[offset:end])
