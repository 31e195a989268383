"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Tuple

import pytest

from broadlink_rm.config import RmClientConfig
from broadlink_rm.device_types import DEFAULT_DEVICE_TYPE_TABLE
from broadlink_rm.protocol import PacketCommand, SessionCipher
from broadlink_rm.protocol.checksum import checksum_with_field_zeroed, store_checksum
from broadlink_rm.protocol.constants import (
    HEADER_LENGTH,
    HEADER_MAGIC,
    HEADER_CHECKSUM_OFFSET,
    HEADER_ERROR_OFFSET,
    HEADER_COMMAND_OFFSET,
    HELLO_DEVICE_TYPE_OFFSET,
    HELLO_IDENTITY_OFFSETS,
    HELLO_MIN_LENGTH,
)
from broadlink_rm.session import DeviceSession

DEVICE_IDENTITY = bytes([0x34, 0xea, 0x34, 0x8b, 0x2c, 0x01])
DEVICE_HOST = ("192.168.1.50", 80)

RM_DEVICE_TYPE = 0x2737
RM_PLUS_DEVICE_TYPE = 0x272A


class FakeDatagramTransport(asyncio.DatagramTransport):
    """Records datagrams instead of sending them."""

    def __init__(self, sockname: Tuple[str, int] = ("0.0.0.0", 40212), fail: bool = False):
        super().__init__()
        self.sockname = sockname
        self.fail = fail
        self.sent: List[Tuple[bytes, Tuple[str, int]]] = []
        self.closed = False

    def sendto(self, data: bytes, addr: Any = None) -> None:
        if self.fail:
            raise OSError("Network is unreachable")
        self.sent.append((bytes(data), addr))

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        if name == "sockname":
            return self.sockname
        return default

    def close(self) -> None:
        self.closed = True


def build_response(
    command: int,
    payload: bytes,
    cipher: Optional[SessionCipher] = None,
    error_code: int = 0,
) -> bytes:
    """Build a device reply datagram with a valid checksum."""
    if cipher is None:
        cipher = SessionCipher()
    header = bytearray(HEADER_LENGTH)
    header[0 : len(HEADER_MAGIC)] = HEADER_MAGIC
    header[HEADER_ERROR_OFFSET : HEADER_ERROR_OFFSET + 2] = error_code.to_bytes(2, "little")
    header[HEADER_COMMAND_OFFSET] = command
    packet = header + cipher.encrypt(payload)
    store_checksum(packet, HEADER_CHECKSUM_OFFSET, checksum_with_field_zeroed(packet, HEADER_CHECKSUM_OFFSET))
    return bytes(packet)


def build_data_reply(param: int, data: bytes = b"", cipher: Optional[SessionCipher] = None) -> bytes:
    """Build a 0xee data reply whose payload is padded to a 16-byte multiple."""
    payload = bytes([param, 0, 0, 0]) + data
    payload += bytes(-len(payload) % 16)
    return build_response(PacketCommand.DATA_REPLY.value, payload, cipher)


def build_hello(identity: bytes, device_type: int, length: int = HELLO_MIN_LENGTH) -> bytes:
    """Build a discovery reply carrying identity and device_type."""
    buf = bytearray(length)
    for i, offset in enumerate(HELLO_IDENTITY_OFFSETS):
        buf[offset] = identity[i]
    buf[HELLO_DEVICE_TYPE_OFFSET : HELLO_DEVICE_TYPE_OFFSET + 2] = device_type.to_bytes(2, "little")
    return bytes(buf)


def sent_payloads(transport: FakeDatagramTransport, cipher: Optional[SessionCipher] = None) -> List[Tuple[int, bytes]]:
    """Decode the (command byte, plaintext payload) of every recorded command packet."""
    if cipher is None:
        cipher = SessionCipher()
    return [
        (data[HEADER_COMMAND_OFFSET], cipher.decrypt(data[HEADER_LENGTH:])) for data, _ in transport.sent
    ]


def sent_operations(transport: FakeDatagramTransport, cipher: Optional[SessionCipher] = None) -> List[int]:
    """Operation codes of every recorded outer COMMAND packet, in send order."""
    return [
        payload[0] for command, payload in sent_payloads(transport, cipher) if command == PacketCommand.COMMAND.value
    ]


@pytest.fixture
def fast_config() -> RmClientConfig:
    """Config with RF and IR timings scaled down for tests."""
    return RmClientConfig(
        use_config_file=False,
        handshake_timeout_secs=0.5,
        sweep_poll_delay_secs=0.05,
        sweep_timeout_secs=0.3,
        confirm_poll_delay_secs=0.05,
        confirm_timeout_secs=0.3,
        ir_learn_timeout_secs=0.3,
        ir_learn_poll_interval_secs=0.05,
    )


def make_session(
    device_type: int = RM_PLUS_DEVICE_TYPE,
    config: Optional[RmClientConfig] = None,
    initial_count: Optional[int] = 0,
) -> Tuple[DeviceSession, FakeDatagramTransport]:
    classification = DEFAULT_DEVICE_TYPE_TABLE.classify(device_type)
    session = DeviceSession(DEVICE_IDENTITY, DEVICE_HOST, classification, config=config, initial_count=initial_count)
    transport = FakeDatagramTransport()
    session.connection_made(transport)
    return session, transport


@pytest.fixture
def rm_plus_session(fast_config: RmClientConfig) -> Tuple[DeviceSession, FakeDatagramTransport]:
    return make_session(RM_PLUS_DEVICE_TYPE, fast_config)


@pytest.fixture
def rm_session(fast_config: RmClientConfig) -> Tuple[DeviceSession, FakeDatagramTransport]:
    return make_session(RM_DEVICE_TYPE, fast_config)
