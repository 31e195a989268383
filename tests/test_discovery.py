"""Tests for RmDiscoveryEngine."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

import pytest

from broadlink_rm.config import RmClientConfig
from broadlink_rm.device_types import DeviceClassification
from broadlink_rm.discovery import RmDiscoveryEngine, RmDiscoveryProtocol, get_local_ipv4_interfaces
from broadlink_rm.discovery import util as discovery_util
from broadlink_rm.protocol import PacketCommand
from broadlink_rm.session import DeviceSession, ReadyEvent

from conftest import (
    DEVICE_HOST,
    DEVICE_IDENTITY,
    FakeDatagramTransport,
    build_hello,
    build_response,
    sent_payloads,
)

OTHER_IDENTITY = bytes([0x34, 0xea, 0x34, 0x00, 0x00, 0x02])


class FakeTransportSession(DeviceSession):
    """A DeviceSession that records packets instead of opening a socket."""

    fake_transport: FakeDatagramTransport

    async def open(self, local_address: str = "0.0.0.0") -> None:
        self.fake_transport = FakeDatagramTransport()
        self.connection_made(self.fake_transport)


def fake_session_factory(
    identity: bytes,
    host: Tuple[str, int],
    classification: DeviceClassification,
    config: RmClientConfig,
) -> DeviceSession:
    return FakeTransportSession(identity, host, classification, config=config)


def make_engine(config: Optional[RmClientConfig] = None) -> RmDiscoveryEngine:
    if config is None:
        config = RmClientConfig(use_config_file=False)
    return RmDiscoveryEngine(config=config, session_factory=fake_session_factory)


async def settle() -> None:
    for _ in range(3):
        await asyncio.sleep(0)


def handshake_reply() -> bytes:
    return build_response(PacketCommand.HANDSHAKE_REPLY.value, b"\x01\x02\x03\x04" + bytes(range(16)) + bytes(12))


class TestHelloResponses:
    """Tests for handling discovery replies."""

    @pytest.mark.asyncio
    async def test_duplicate_replies_yield_one_session(self):
        engine = make_engine()
        first = engine.on_hello_response(build_hello(DEVICE_IDENTITY, 0x272A), DEVICE_HOST)
        second = engine.on_hello_response(build_hello(DEVICE_IDENTITY, 0x272A), DEVICE_HOST)
        assert first is not None
        assert second is None
        assert list(engine.sessions) == [DEVICE_IDENTITY]
        assert engine.sessions[DEVICE_IDENTITY].is_rf_capable
        await engine.aclose()

    @pytest.mark.asyncio
    async def test_distinct_identities(self):
        engine = make_engine()
        engine.on_hello_response(build_hello(DEVICE_IDENTITY, 0x272A), DEVICE_HOST)
        engine.on_hello_response(build_hello(OTHER_IDENTITY, 0x2737), ("192.168.1.51", 80))
        assert len(engine.sessions) == 2
        assert not engine.sessions[OTHER_IDENTITY].is_rf_capable
        await engine.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("device_type", [0x7600, 0x0000, 0xFFFF])
    async def test_rejected_device_types(self, device_type: int):
        engine = make_engine()
        assert engine.on_hello_response(build_hello(DEVICE_IDENTITY, device_type), DEVICE_HOST) is None
        assert engine.sessions == {}
        await engine.aclose()

    @pytest.mark.asyncio
    async def test_short_reply_ignored(self):
        engine = make_engine()
        assert engine.on_hello_response(b"\x00" * 0x20, DEVICE_HOST) is None
        assert engine.sessions == {}

    @pytest.mark.asyncio
    async def test_new_session_authenticates(self):
        engine = make_engine()
        session = engine.on_hello_response(build_hello(DEVICE_IDENTITY, 0x2737), DEVICE_HOST)
        assert isinstance(session, FakeTransportSession)
        await settle()
        [(command, _)] = sent_payloads(session.fake_transport)
        assert command == PacketCommand.AUTHENTICATE.value
        await engine.aclose()
        assert session.fake_transport.closed

    @pytest.mark.asyncio
    async def test_ready_handlers(self):
        engine = make_engine()
        ready: List[DeviceSession] = []
        handler_id = engine.add_ready_handler(ready.append)
        session = engine.on_hello_response(build_hello(DEVICE_IDENTITY, 0x272A), DEVICE_HOST)
        assert session is not None
        await settle()
        assert engine.ready_sessions == []

        session.datagram_received(handshake_reply(), DEVICE_HOST)
        assert ready == [session]
        assert engine.ready_sessions == [session]

        engine.remove_ready_handler(handler_id)
        session.emit(ReadyEvent())
        assert ready == [session]
        await engine.aclose()


class TestDiscoveryBroadcast:
    """Tests for the discovery sockets."""

    def test_send_discovery(self):
        config = RmClientConfig(use_config_file=False, broadcast_address="192.168.1.255")
        engine = make_engine(config)
        protocol = RmDiscoveryProtocol(engine, "192.168.1.10")
        transport = FakeDatagramTransport(sockname=("192.168.1.10", 40212))
        protocol.connection_made(transport)

        [(data, addr)] = transport.sent
        assert addr == ("192.168.1.255", 80)
        assert len(data) == 48
        assert data[0x18:0x1C] == bytes([192, 168, 1, 10])
        assert int.from_bytes(data[0x1C:0x1E], "little") == 40212

    def test_configured_bind_addresses(self):
        config = RmClientConfig(use_config_file=False, bind_addresses=["10.0.0.2"])
        assert make_engine(config).get_bind_addresses() == ["10.0.0.2"]

    @pytest.mark.asyncio
    async def test_discover_over_loopback(self):
        loop = asyncio.get_running_loop()
        requests: List[bytes] = []

        class FakeDevice(asyncio.DatagramProtocol):
            transport: asyncio.DatagramTransport

            def connection_made(self, transport):
                self.transport = transport

            def datagram_received(self, data, addr):
                requests.append(data)
                self.transport.sendto(build_hello(DEVICE_IDENTITY, 0x272A), addr)
                self.transport.sendto(build_hello(DEVICE_IDENTITY, 0x272A), addr)

        device_transport, _ = await loop.create_datagram_endpoint(FakeDevice, local_addr=("127.0.0.1", 0))
        device_port = device_transport.get_extra_info("sockname")[1]
        config = RmClientConfig(
            use_config_file=False,
            broadcast_address="127.0.0.1",
            discovery_port=device_port,
            bind_addresses=["127.0.0.1"],
        )
        try:
            async with make_engine(config) as engine:
                await engine.discover()
                assert len(engine.discovery_protocols) == 1
                for _ in range(50):
                    if DEVICE_IDENTITY in engine.sessions:
                        break
                    await asyncio.sleep(0.01)
                assert list(engine.sessions) == [DEVICE_IDENTITY]
                assert len(requests[0]) == 48
                assert requests[0][0x18:0x1C] == bytes([127, 0, 0, 1])
            assert engine.discovery_protocols == []
        finally:
            device_transport.close()

    @pytest.mark.asyncio
    async def test_unbindable_address_skipped(self):
        config = RmClientConfig(use_config_file=False, bind_addresses=["203.0.113.77"])
        async with make_engine(config) as engine:
            await engine.discover()
            assert engine.discovery_protocols == []


class TestLocalInterfaces:
    """Tests for local interface enumeration."""

    @pytest.fixture
    def fake_interfaces(self, monkeypatch: pytest.MonkeyPatch) -> None:
        netifaces = discovery_util.netifaces
        addresses = {
            "lo": {netifaces.AF_INET: [{"addr": "127.0.0.1"}]},
            "wlan0": {netifaces.AF_INET: [{"addr": "10.0.0.5", "broadcast": "10.0.0.255"}]},
            "eth0": {netifaces.AF_INET: [{"addr": "192.168.1.10", "broadcast": "192.168.1.255"}]},
            "tun0": {},
        }
        monkeypatch.setattr(netifaces, "interfaces", lambda: list(addresses))
        monkeypatch.setattr(netifaces, "ifaddresses", lambda name: addresses[name])
        monkeypatch.setattr(netifaces, "gateways", lambda: {"default": {netifaces.AF_INET: ("192.168.1.1", "eth0")}})

    def test_gateway_interface_first(self, fake_interfaces):
        infos = get_local_ipv4_interfaces()
        assert [(info.address, info.interface_name) for info in infos] == [
            ("192.168.1.10", "eth0"),
            ("10.0.0.5", "wlan0"),
        ]

    def test_include_loopback(self, fake_interfaces):
        assert [info.address for info in get_local_ipv4_interfaces(include_loopback=True)][-1] == "127.0.0.1"

    def test_engine_binds_every_interface(self, fake_interfaces):
        assert make_engine().get_bind_addresses() == ["192.168.1.10", "10.0.0.5"]
