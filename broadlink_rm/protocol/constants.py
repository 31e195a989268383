# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Protocol-specific constants
"""

from __future__ import annotations

CHECKSUM_SEED = 0xbeaf
"""Initial value of the 16-bit wraparound checksum used by every packet."""

AES_BLOCK_SIZE = 16
"""Payloads must be a multiple of this many bytes; no padding is applied."""

INITIAL_KEY = bytes([
    0x09, 0x76, 0x28, 0x34, 0x3f, 0xe9, 0x9e, 0x23, 0x76, 0x5c, 0x15, 0x13, 0xac, 0xcf, 0x8b, 0x02])
"""Pre-shared AES-128 key used until the handshake reply supplies the session key."""

INITIAL_IV = bytes([
    0x56, 0x2e, 0x17, 0x99, 0x6d, 0x09, 0x3d, 0x28, 0xdd, 0xb3, 0xba, 0x69, 0x5a, 0x2e, 0x6f, 0x58])
"""Pre-shared AES-128-CBC initialization vector."""

INITIAL_SESSION_ID = b'\x00\x00\x00\x00'
"""Session id sent before the handshake completes."""

IDENTITY_LENGTH = 6
SESSION_ID_LENGTH = 4

# ---- Discovery packet layout

DISCOVERY_PACKET_LENGTH = 0x30
DISCOVERY_TIMEZONE_OFFSET = 0x08
DISCOVERY_YEAR_OFFSET = 0x0c
DISCOVERY_MINUTE_OFFSET = 0x0e
DISCOVERY_HOUR_OFFSET = 0x0f
DISCOVERY_SUBYEAR_OFFSET = 0x10
DISCOVERY_WEEKDAY_OFFSET = 0x11
DISCOVERY_DAY_OFFSET = 0x12
DISCOVERY_MONTH_OFFSET = 0x13
DISCOVERY_ADDRESS_OFFSET = 0x18
DISCOVERY_PORT_OFFSET = 0x1c
DISCOVERY_CHECKSUM_OFFSET = 0x20
DISCOVERY_TYPE_OFFSET = 0x26
DISCOVERY_TYPE_MARKER = 0x06

# ---- Discovery reply layout

HELLO_MIN_LENGTH = 0x40
HELLO_DEVICE_TYPE_OFFSET = 0x34
HELLO_IDENTITY_OFFSETS = (0x3d, 0x3e, 0x3f, 0x3c, 0x3b, 0x3a)
"""Reply offsets of identity bytes 0 through 5, in that order."""

# ---- Command/response packet layout

HEADER_LENGTH = 0x38
HEADER_MAGIC = bytes([0x5a, 0xa5, 0xaa, 0x55, 0x5a, 0xa5, 0xaa, 0x55])
HEADER_CHECKSUM_OFFSET = 0x20
HEADER_ERROR_OFFSET = 0x22
HEADER_DEVICE_TYPE_OFFSET = 0x24
HEADER_DEVICE_TYPE = bytes([0x2a, 0x27])
HEADER_COMMAND_OFFSET = 0x26
HEADER_COUNT_OFFSET = 0x28
HEADER_IDENTITY_OFFSET = 0x2a
HEADER_SESSION_ID_OFFSET = 0x30
HEADER_PAYLOAD_CHECKSUM_OFFSET = 0x34

# ---- Handshake

AUTH_PAYLOAD_LENGTH = 0x50
HANDSHAKE_KEY_OFFSET = 0x04
HANDSHAKE_KEY_LENGTH = 0x10
HANDSHAKE_SESSION_ID_OFFSET = 0x00

# ---- Data replies

COMMAND_PAYLOAD_LENGTH = 16
DATA_REPLY_HEADER_LENGTH = 4
"""Bytes preceding learned-code data in a data reply, and preceding code data in send-code."""
