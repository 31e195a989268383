#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Abstraction of the discovery broadcast datagram.

A discovery packet is a 48-byte UDP datagram broadcast to port 80. Every RM device
that receives it replies to the sender's address and port with a hello response
(see hello_response.py).

Example (sent from 192.168.4.157:40212 at 2024-03-05 14:07 local time, UTC-5):

    0000   00 00 00 00 00 00 00 00 f9 ff ff ff 7c 00 07 0e   ............|...
    0010   18 02 05 02 00 00 00 00 c0 a8 04 9d 14 9d 00 00   ................
    0020   xx xx 00 00 00 00 06 00 00 00 00 00 00 00 00 00   ................

    timezone    = f9 ff ff ff = -5 hours, encoded as 0xff + tz - 1 followed by 0xff padding
    year        = 7c 00 = 124 (years since 1900, little-endian)
    minute      = 07
    hour        = 0e
    subyear     = 18 = 24 (two-digit year)
    weekday     = 02 (Sunday = 0)
    day         = 05
    month       = 02 (zero-based; March)
    address     = c0 a8 04 9d = 192.168.4.157
    port        = 14 9d = 40212 (little-endian)
    checksum    = xx xx (little-endian wraparound sum seeded with 0xbeaf, computed with this field zeroed)
    type        = 06
"""

from __future__ import annotations

import datetime
from ipaddress import IPv4Address

from ..internal_types import *
from ..exceptions import PacketFormatError
from .checksum import checksum_with_field_zeroed, store_checksum, read_checksum
from .constants import (
    DISCOVERY_PACKET_LENGTH,
    DISCOVERY_TIMEZONE_OFFSET,
    DISCOVERY_YEAR_OFFSET,
    DISCOVERY_MINUTE_OFFSET,
    DISCOVERY_HOUR_OFFSET,
    DISCOVERY_SUBYEAR_OFFSET,
    DISCOVERY_WEEKDAY_OFFSET,
    DISCOVERY_DAY_OFFSET,
    DISCOVERY_MONTH_OFFSET,
    DISCOVERY_ADDRESS_OFFSET,
    DISCOVERY_PORT_OFFSET,
    DISCOVERY_CHECKSUM_OFFSET,
    DISCOVERY_TYPE_OFFSET,
    DISCOVERY_TYPE_MARKER,
  )

class DiscoveryPacket:
    """Builder and wrapper for a raw 48-byte discovery datagram."""

    _raw_data: bytes

    def __init__(
            self,
            local_address: str,
            local_port: int,
            now: Optional[datetime.datetime]=None,
          ) -> None:
        """Build a discovery packet announcing local_address:local_port.

        Args:
            local_address: The local IPV4 address the socket is bound to.
            local_port:    The local UDP port the socket is bound to; replies are sent here.
            now:           The local time to encode. Should be timezone-aware. Defaults to
                           the current local time.
        """
        if now is None:
            now = datetime.datetime.now().astimezone()
        if not 0 <= local_port <= 0xffff:
            raise PacketFormatError(f"Invalid UDP port {local_port}")
        buf = bytearray(DISCOVERY_PACKET_LENGTH)

        tz = self.timezone_hours(now)
        if tz < 0:
            buf[DISCOVERY_TIMEZONE_OFFSET] = (0xff + tz - 1) & 0xff
            buf[DISCOVERY_TIMEZONE_OFFSET+1:DISCOVERY_TIMEZONE_OFFSET+4] = b'\xff\xff\xff'
        else:
            buf[DISCOVERY_TIMEZONE_OFFSET] = tz
        year = now.year - 1900
        buf[DISCOVERY_YEAR_OFFSET:DISCOVERY_YEAR_OFFSET+2] = year.to_bytes(2, 'little')
        buf[DISCOVERY_MINUTE_OFFSET] = now.minute
        buf[DISCOVERY_HOUR_OFFSET] = now.hour
        buf[DISCOVERY_SUBYEAR_OFFSET] = year % 100
        buf[DISCOVERY_WEEKDAY_OFFSET] = now.isoweekday() % 7
        buf[DISCOVERY_DAY_OFFSET] = now.day
        buf[DISCOVERY_MONTH_OFFSET] = now.month - 1
        buf[DISCOVERY_ADDRESS_OFFSET:DISCOVERY_ADDRESS_OFFSET+4] = IPv4Address(local_address).packed
        buf[DISCOVERY_PORT_OFFSET:DISCOVERY_PORT_OFFSET+2] = local_port.to_bytes(2, 'little')
        buf[DISCOVERY_TYPE_OFFSET] = DISCOVERY_TYPE_MARKER

        store_checksum(buf, DISCOVERY_CHECKSUM_OFFSET, checksum_with_field_zeroed(buf, DISCOVERY_CHECKSUM_OFFSET))
        self._raw_data = bytes(buf)

    @staticmethod
    def timezone_hours(now: datetime.datetime) -> int:
        """Returns the UTC offset of now in whole hours, truncated toward zero. Naive times are treated as UTC."""
        offset = now.utcoffset()
        if offset is None:
            return 0
        return int(offset.total_seconds() / 3600)

    @property
    def raw_data(self) -> bytes:
        """The raw UDP datagram contents"""
        return self._raw_data

    @property
    def checksum(self) -> int:
        """The checksum stored in the packet"""
        return read_checksum(self._raw_data, DISCOVERY_CHECKSUM_OFFSET)

    @property
    def local_address(self) -> str:
        return str(IPv4Address(self._raw_data[DISCOVERY_ADDRESS_OFFSET:DISCOVERY_ADDRESS_OFFSET+4]))

    @property
    def local_port(self) -> int:
        return int.from_bytes(self._raw_data[DISCOVERY_PORT_OFFSET:DISCOVERY_PORT_OFFSET+2], 'little')

    def __str__(self) -> str:
        return f"DiscoveryPacket([{self._raw_data.hex(' ')}], local={self.local_address}:{self.local_port})"

    def __repr__(self) -> str:
        return str(self)
