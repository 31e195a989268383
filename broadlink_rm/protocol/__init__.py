# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Low-level protocol definitions for RM devices.

This subpackage defines the binary packet layouts, checksum and encryption used
by the devices' UDP protocol. It does not perform any I/O.
"""

from .constants import (
    CHECKSUM_SEED,
    AES_BLOCK_SIZE,
    INITIAL_KEY,
    INITIAL_IV,
    INITIAL_SESSION_ID,
    HEADER_LENGTH,
    COMMAND_PAYLOAD_LENGTH,
  )

from .checksum import checksum, checksum_with_field_zeroed
from .command_code import PacketCommand, Operation, RF_OPERATIONS
from .crypto import SessionCipher
from .discovery_packet import DiscoveryPacket
from .hello_response import DeviceHelloResponse
from .command_packet import CommandPacket
from .response_packet import ResponsePacket
