# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
The 16-bit wraparound checksum used by discovery, command and response packets.
"""

from __future__ import annotations

from ..internal_types import *
from .constants import CHECKSUM_SEED

def checksum(data: Union[bytes, bytearray, memoryview], seed: int=CHECKSUM_SEED) -> int:
    """Returns the sum of all bytes of data plus seed, modulo 0x10000."""
    return (seed + sum(data)) & 0xffff

def checksum_with_field_zeroed(data: Union[bytes, bytearray, memoryview], offset: int) -> int:
    """Returns the checksum of data computed as if the 2-byte field at offset were zero."""
    buf = bytearray(data)
    buf[offset:offset+2] = b'\x00\x00'
    return checksum(buf)

def store_checksum(buf: bytearray, offset: int, value: int) -> None:
    """Stores a checksum little-endian at offset."""
    buf[offset:offset+2] = value.to_bytes(2, 'little')

def read_checksum(data: Union[bytes, bytearray, memoryview], offset: int) -> int:
    """Reads a little-endian checksum stored at offset."""
    return int.from_bytes(data[offset:offset+2], 'little')
