# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Enumerations of the command bytes carried in packet headers and the operation
codes carried in the first byte of command and data-reply payloads.
"""

from __future__ import annotations

from aenum import Enum as AEnum
from ..internal_types import *

class PacketCommand(AEnum):
    """The command byte at offset 0x26 of a command or response header."""

    AUTHENTICATE                = 0x65
    """Handshake request sent by the client."""

    COMMAND                     = 0x6a
    """Outer command byte for every operation payload sent by the client."""

    HANDSHAKE_REPLY             = 0xe9
    """Handshake reply carrying the session key and session id."""

    DATA_REPLY                  = 0xee
    """Reply to an operation payload."""

    DATA_REPLY_ALT              = 0xef
    """Alternate reply to an operation payload, handled like DATA_REPLY."""

    @classmethod
    def from_byte(cls, value: int) -> Optional[PacketCommand]:
        """Returns the command for a header byte, or None if the byte is not a known command."""
        try:
            return cls(value)
        except ValueError:
            return None

class Operation(AEnum):
    """The operation code at payload byte 0 of an outer COMMAND packet, and the
       parameter id at byte 0 of the matching data reply."""

    CHECK_TEMPERATURE           = 0x01
    SEND_CODE                   = 0x02
    ENTER_LEARNING              = 0x03
    CHECK_DATA                  = 0x04
    ENTER_RF_SWEEP              = 0x19
    CHECK_RF_SWEEP              = 0x1a
    FIND_RF_PACKET              = 0x1b
    CANCEL_LEARN                = 0x1e

    @classmethod
    def from_byte(cls, value: int) -> Optional[Operation]:
        """Returns the operation for a payload byte, or None if the byte is not a known operation."""
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def requires_rf(self) -> bool:
        return self in RF_OPERATIONS

RF_OPERATIONS: FrozenSet[Operation] = frozenset([
    Operation.ENTER_RF_SWEEP,
    Operation.CHECK_RF_SWEEP,
    Operation.FIND_RF_PACKET,
  ])
"""Operations refused on devices without RF capability."""
