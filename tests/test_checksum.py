"""Tests for the packet checksum."""

from __future__ import annotations

import pytest

from broadlink_rm.protocol import checksum, checksum_with_field_zeroed, DiscoveryPacket
from broadlink_rm.protocol.checksum import read_checksum, store_checksum


def reference_checksum(data: bytes) -> int:
    value = 0xBEAF
    for b in data:
        value += b
        value &= 0xFFFF
    return value


class TestChecksum:
    """Tests for the wraparound checksum."""

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"\x00",
            b"\xff" * 1000,
            bytes(range(256)),
            b"broadlink" * 37,
        ],
    )
    def test_matches_reference(self, data: bytes):
        assert checksum(data) == reference_checksum(data)

    def test_empty_is_seed(self):
        assert checksum(b"") == 0xBEAF

    def test_wraps_at_16_bits(self):
        # 0xbeaf + 0x42 * 0xff == 0x1006d
        assert checksum(b"\xff" * 0x42) == 0x006D

    def test_custom_seed(self):
        assert checksum(b"\x01\x02", seed=0) == 3

    def test_field_zeroed(self):
        data = bytearray(b"\x10" * 40)
        expected = checksum(bytes(data[:0x20]) + b"\x00\x00" + bytes(data[0x22:]))
        assert checksum_with_field_zeroed(data, 0x20) == expected
        # the input is not modified
        assert data == bytearray(b"\x10" * 40)

    def test_store_and_read_little_endian(self):
        buf = bytearray(4)
        store_checksum(buf, 1, 0xBEAF)
        assert buf == bytearray(b"\x00\xaf\xbe\x00")
        assert read_checksum(buf, 1) == 0xBEAF

    def test_stored_checksum_reproduces(self):
        packet = DiscoveryPacket("10.0.0.2", 5000)
        assert checksum_with_field_zeroed(packet.raw_data, 0x20) == packet.checksum
