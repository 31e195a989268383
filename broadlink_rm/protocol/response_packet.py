# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Encapsulation of a packet received from a device in reply to a command packet.
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import PacketFormatError
from .command_code import PacketCommand
from .crypto import SessionCipher
from .checksum import checksum_with_field_zeroed, read_checksum
from .constants import (
    HEADER_LENGTH,
    HEADER_CHECKSUM_OFFSET,
    HEADER_ERROR_OFFSET,
    HEADER_COMMAND_OFFSET,
  )

class ResponsePacket:
    """A reply datagram split into header fields and ciphertext.

    The payload is not decrypted until decrypt() is called with the session
    cipher that is current when the packet arrives.
    """

    raw_data: bytes
    error_code: int
    command_byte: int
    ciphertext: bytes

    def __init__(self, raw_data: bytes) -> None:
        if len(raw_data) < HEADER_LENGTH:
            raise PacketFormatError(
                f"Response packet too short ({len(raw_data)} bytes, need {HEADER_LENGTH}): {raw_data.hex(' ')}")
        self.raw_data = bytes(raw_data)
        self.error_code = int.from_bytes(raw_data[HEADER_ERROR_OFFSET:HEADER_ERROR_OFFSET+2], 'little')
        self.command_byte = raw_data[HEADER_COMMAND_OFFSET]
        self.ciphertext = self.raw_data[HEADER_LENGTH:]

    @property
    def command(self) -> Optional[PacketCommand]:
        """The header command, or None if the command byte is not recognized."""
        return PacketCommand.from_byte(self.command_byte)

    @property
    def checksum_ok(self) -> bool:
        """True if the stored whole-packet checksum matches the packet contents."""
        return read_checksum(self.raw_data, HEADER_CHECKSUM_OFFSET) == checksum_with_field_zeroed(
            self.raw_data, HEADER_CHECKSUM_OFFSET)

    def decrypt(self, cipher: SessionCipher) -> bytes:
        """Returns the decrypted payload. No padding is removed.

        Raises:
            PacketFormatError: if the ciphertext is not block-aligned.
        """
        return cipher.decrypt(self.ciphertext)

    def __str__(self) -> str:
        return f"ResponsePacket(command=0x{self.command_byte:02x}, error=0x{self.error_code:04x}, ciphertext_len={len(self.ciphertext)})"

    def __repr__(self) -> str:
        return str(self)
