# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Parsing of the reply a device sends in answer to a discovery broadcast.
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import PacketFormatError
from ..util import format_identity
from .constants import (
    HELLO_MIN_LENGTH,
    HELLO_DEVICE_TYPE_OFFSET,
    HELLO_IDENTITY_OFFSETS,
  )

class DeviceHelloResponse:
    """A device's reply to a discovery packet.

    The 6-byte identity (the device MAC address) is stored out of order: identity
    bytes 0..5 come from reply offsets 0x3d, 0x3e, 0x3f, 0x3c, 0x3b, 0x3a. The
    device-type id is a little-endian 16-bit value at offset 0x34.
    """

    raw_data: bytes
    identity: bytes
    device_type: int

    def __init__(self, raw_data: bytes) -> None:
        if len(raw_data) < HELLO_MIN_LENGTH:
            raise PacketFormatError(
                f"Discovery reply too short ({len(raw_data)} bytes, need {HELLO_MIN_LENGTH}): {raw_data.hex(' ')}")
        self.raw_data = bytes(raw_data)
        self.identity = bytes(raw_data[i] for i in HELLO_IDENTITY_OFFSETS)
        self.device_type = int.from_bytes(raw_data[HELLO_DEVICE_TYPE_OFFSET:HELLO_DEVICE_TYPE_OFFSET+2], 'little')

    @property
    def identity_str(self) -> str:
        return format_identity(self.identity)

    def __str__(self) -> str:
        return f"DeviceHelloResponse(identity={self.identity_str}, device_type=0x{self.device_type:04x})"

    def __repr__(self) -> str:
        return str(self)
