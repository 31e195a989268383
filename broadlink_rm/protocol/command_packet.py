# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Encapsulation of a command packet sent from the client to a device.

A command packet is a 0x38-byte header followed by the AES-128-CBC encrypted payload:

    0x00  5a a5 aa 55 5a a5 aa 55   magic
    0x20  cc cc                     whole-packet checksum (computed with this field zeroed)
    0x24  2a 27                     device type marker
    0x26  nn                        command byte (see PacketCommand)
    0x28  ss ss                     sequence counter, little-endian
    0x2a  m5 m4 m3 m2 m1 m0         device identity, reversed
    0x30  ii ii ii ii               session id
    0x34  pp pp                     checksum of the plaintext payload
    0x38  ...                       encrypted payload
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import PacketFormatError
from .checksum import checksum, checksum_with_field_zeroed, store_checksum, read_checksum
from .command_code import PacketCommand
from .crypto import SessionCipher
from .constants import (
    HEADER_LENGTH,
    HEADER_MAGIC,
    HEADER_CHECKSUM_OFFSET,
    HEADER_DEVICE_TYPE_OFFSET,
    HEADER_DEVICE_TYPE,
    HEADER_COMMAND_OFFSET,
    HEADER_COUNT_OFFSET,
    HEADER_IDENTITY_OFFSET,
    HEADER_SESSION_ID_OFFSET,
    HEADER_PAYLOAD_CHECKSUM_OFFSET,
    IDENTITY_LENGTH,
    SESSION_ID_LENGTH,
  )

class CommandPacket:
    """A fully built, encrypted command packet."""

    command: PacketCommand
    count: int
    payload: bytes
    raw_data: bytes

    def __init__(
            self,
            command: PacketCommand,
            count: int,
            identity: bytes,
            session_id: bytes,
            payload: bytes,
            cipher: SessionCipher,
          ) -> None:
        """Build and encrypt a command packet.

        Args:
            command:    The header command byte.
            count:      The 16-bit sequence counter value for this packet.
            identity:   The 6-byte device identity, in discovery order.
            session_id: The 4-byte session id.
            payload:    The plaintext payload. Must be a multiple of 16 bytes.
            cipher:     The session cipher holding the current key and IV.

        Raises:
            PacketFormatError: if a field has the wrong length.
        """
        if len(identity) != IDENTITY_LENGTH:
            raise PacketFormatError(f"Device identity must be {IDENTITY_LENGTH} bytes, got {len(identity)}")
        if len(session_id) != SESSION_ID_LENGTH:
            raise PacketFormatError(f"Session id must be {SESSION_ID_LENGTH} bytes, got {len(session_id)}")
        if not 0 <= count <= 0xffff:
            raise PacketFormatError(f"Sequence counter out of range: {count}")
        self.command = command
        self.count = count
        self.payload = bytes(payload)

        header = bytearray(HEADER_LENGTH)
        header[0:len(HEADER_MAGIC)] = HEADER_MAGIC
        header[HEADER_DEVICE_TYPE_OFFSET:HEADER_DEVICE_TYPE_OFFSET+2] = HEADER_DEVICE_TYPE
        header[HEADER_COMMAND_OFFSET] = command.value
        header[HEADER_COUNT_OFFSET:HEADER_COUNT_OFFSET+2] = count.to_bytes(2, 'little')
        header[HEADER_IDENTITY_OFFSET:HEADER_IDENTITY_OFFSET+IDENTITY_LENGTH] = identity[::-1]
        header[HEADER_SESSION_ID_OFFSET:HEADER_SESSION_ID_OFFSET+SESSION_ID_LENGTH] = session_id
        store_checksum(header, HEADER_PAYLOAD_CHECKSUM_OFFSET, checksum(self.payload))

        packet = header + cipher.encrypt(self.payload)
        store_checksum(packet, HEADER_CHECKSUM_OFFSET, checksum_with_field_zeroed(packet, HEADER_CHECKSUM_OFFSET))
        self.raw_data = bytes(packet)

    @property
    def packet_checksum(self) -> int:
        return read_checksum(self.raw_data, HEADER_CHECKSUM_OFFSET)

    @property
    def payload_checksum(self) -> int:
        return read_checksum(self.raw_data, HEADER_PAYLOAD_CHECKSUM_OFFSET)

    def __str__(self) -> str:
        return f"CommandPacket({self.command.name}, count={self.count}, payload=[{self.payload.hex(' ')}])"

    def __repr__(self) -> str:
        return str(self)
