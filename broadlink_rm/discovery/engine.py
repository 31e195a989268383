# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RmDiscoveryEngine -- finds RM devices on the local network and opens sessions with them:

  1. Opens a broadcast-enabled UDP socket on every local IPV4 interface
  2. Broadcasts a discovery packet from each socket to port 80
  3. Decodes the hello responses, classifies the device types, and creates one
     DeviceSession per newly seen device identity
  4. Authenticates each new session and notifies ready handlers when its handshake completes
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..pkg_logging import logger
from ..exceptions import PacketFormatError
from ..config import RmClientConfig
from ..device_types import DeviceTypeTable, DeviceClassification, DeviceKind, DEFAULT_DEVICE_TYPE_TABLE
from ..protocol import DiscoveryPacket, DeviceHelloResponse
from ..session import DeviceSession, SessionEvent, ReadyEvent
from .util import get_local_ipv4_addresses

SessionFactory = Callable[[bytes, HostAndPort, DeviceClassification, RmClientConfig], DeviceSession]
"""Creates a DeviceSession for (identity, host, classification, config)."""

ReadyHandler = Callable[[DeviceSession], None]
"""A callback for sessions that have completed their handshake."""

class RmDiscoveryProtocol(asyncio.DatagramProtocol):
    """The datagram protocol of one discovery socket."""

    engine: RmDiscoveryEngine
    bind_address: str
    transport: Optional[asyncio.DatagramTransport] = None

    def __init__(self, engine: RmDiscoveryEngine, bind_address: str) -> None:
        self.engine = engine
        self.bind_address = bind_address

    @property
    def local_port(self) -> int:
        assert self.transport is not None
        return self.transport.get_extra_info('sockname')[1]

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = cast(asyncio.DatagramTransport, transport)
        self.engine.send_discovery(self)

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        self.engine.on_hello_response(data, addr)

    def error_received(self, exc: Exception) -> None:
        logger.warning(f"{self}: transport error: {exc}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"{self}: socket closed, exc={exc}")
        self.transport = None

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()

    def __str__(self) -> str:
        return f"RmDiscoveryProtocol({self.bind_address})"

    def __repr__(self) -> str:
        return str(self)

def default_session_factory(
        identity: bytes,
        host: HostAndPort,
        classification: DeviceClassification,
        config: RmClientConfig,
      ) -> DeviceSession:
    return DeviceSession(identity, host, classification, config=config)

class RmDiscoveryEngine(AsyncContextManager['RmDiscoveryEngine']):
    """Discovers RM devices and maintains one DeviceSession per device identity.

    Usage:
        async with RmDiscoveryEngine() as engine:
            engine.add_ready_handler(lambda session: print(f"{session} is ready"))
            await engine.discover()
            await asyncio.sleep(5.0)
    """

    config: RmClientConfig
    device_types: DeviceTypeTable
    session_factory: SessionFactory

    sessions: Dict[bytes, DeviceSession]
    """Known sessions, indexed by 6-byte device identity. Only mutated by on_hello_response()."""

    discovery_protocols: List[RmDiscoveryProtocol]
    """The open discovery sockets."""

    ready_handlers: Dict[int, ReadyHandler]
    i_next_ready_handler: int = 0

    _session_tasks: Set[asyncio.Task[None]]

    def __init__(
            self,
            config: Optional[RmClientConfig]=None,
            device_types: Optional[DeviceTypeTable]=None,
            session_factory: Optional[SessionFactory]=None,
          ) -> None:
        self.config = RmClientConfig() if config is None else config
        self.device_types = DEFAULT_DEVICE_TYPE_TABLE if device_types is None else device_types
        self.session_factory = default_session_factory if session_factory is None else session_factory
        self.sessions = {}
        self.discovery_protocols = []
        self.ready_handlers = {}
        self._session_tasks = set()

    def add_ready_handler(self, handler: ReadyHandler) -> int:
        """Adds a handler to be called when a discovered session completes its handshake."""
        i = self.i_next_ready_handler
        self.i_next_ready_handler += 1
        self.ready_handlers[i] = handler
        return i

    def remove_ready_handler(self, i: int) -> None:
        """Removes a previously added ready handler."""
        del self.ready_handlers[i]

    @property
    def ready_sessions(self) -> List[DeviceSession]:
        return [ session for session in self.sessions.values() if session.is_ready ]

    def get_bind_addresses(self) -> List[str]:
        """Returns the configured bind addresses, or every local IPV4 interface address if none are configured."""
        if len(self.config.bind_addresses) > 0:
            return list(self.config.bind_addresses)
        return get_local_ipv4_addresses(include_loopback=self.config.include_loopback)

    async def discover(self) -> None:
        """Opens one discovery socket per local interface and broadcasts a discovery packet from each.

        Replies are processed as they arrive, for as long as the sockets stay open. Calling
        discover() again closes the previous discovery sockets first; known sessions are kept.
        """
        self.close_discovery_sockets()
        loop = asyncio.get_running_loop()
        bind_addresses = self.get_bind_addresses()
        if len(bind_addresses) == 0:
            logger.warning("No local IPV4 interfaces found; nothing to discover on")
        for bind_address in bind_addresses:
            protocol = RmDiscoveryProtocol(self, bind_address)
            try:
                await loop.create_datagram_endpoint(
                    lambda: protocol,
                    local_addr=(bind_address, 0),
                    allow_broadcast=True,
                  )
            except OSError as e:
                logger.warning(f"Unable to bind discovery socket to {bind_address}: {e}")
                continue
            self.discovery_protocols.append(protocol)

    def send_discovery(self, protocol: RmDiscoveryProtocol) -> None:
        """Broadcasts a discovery packet from a newly bound discovery socket."""
        assert protocol.transport is not None
        packet = DiscoveryPacket(protocol.bind_address, protocol.local_port)
        logger.info(f"Listening for RM devices on {protocol.bind_address}:{protocol.local_port} (UDP)")
        logger.debug(f"Sending {packet}")
        try:
            protocol.transport.sendto(packet.raw_data, (self.config.broadcast_address, self.config.discovery_port))
        except OSError as e:
            logger.warning(f"Discovery broadcast from {protocol.bind_address} failed: {e}")

    def classify(self, device_type: int) -> DeviceClassification:
        return self.device_types.classify(device_type)

    def on_hello_response(self, data: bytes, addr: HostAndPort) -> Optional[DeviceSession]:
        """Handles a reply to a discovery broadcast.

        Returns the new session if the reply came from a new, supported device; otherwise None.
        """
        try:
            hello = DeviceHelloResponse(data)
        except PacketFormatError as e:
            logger.debug(f"Ignoring datagram from {addr}: {e}")
            return None

        if hello.identity in self.sessions:
            return None

        logger.info(f"Discovered device {hello.identity_str} of type 0x{hello.device_type:04x} at {addr[0]}:{addr[1]}")
        classification = self.classify(hello.device_type)
        if classification.kind in (DeviceKind.UNSUPPORTED, DeviceKind.OEM_UNSUPPORTED):
            logger.info(f"Ignoring unsupported {classification.description} at {addr[0]}:{addr[1]}")
            return None
        elif classification.kind == DeviceKind.UNKNOWN:
            logger.info(f"Ignoring unknown {classification.description} at {addr[0]}:{addr[1]}")
            return None

        logger.info(f"Found {classification.description} at {addr[0]}:{addr[1]}")
        session = self.session_factory(hello.identity, addr, classification, self.config)
        self.sessions[hello.identity] = session

        def on_session_event(event: SessionEvent) -> None:
            if isinstance(event, ReadyEvent):
                self._notify_ready(session)

        session.add_event_handler(on_session_event)
        task = asyncio.ensure_future(self._start_session(session))
        self._session_tasks.add(task)
        task.add_done_callback(self._session_tasks.discard)
        return session

    async def _start_session(self, session: DeviceSession) -> None:
        try:
            await session.open()
        except OSError as e:
            logger.warning(f"{session}: unable to open session socket: {e}")
            return
        session.authenticate()

    def _notify_ready(self, session: DeviceSession) -> None:
        for handler in list(self.ready_handlers.values()):
            try:
                handler(session)
            except Exception:
                logger.warning(f"Ready handler failed for {session}", exc_info=True)

    async def wait_for_devices(self, wait_time: Optional[float]=None) -> List[DeviceSession]:
        """Runs discovery and returns the sessions that completed their handshake within wait_time
           seconds (by default config.discovery_wait_secs)."""
        if wait_time is None:
            wait_time = self.config.discovery_wait_secs
        await self.discover()
        await asyncio.sleep(wait_time)
        return self.ready_sessions

    def close_discovery_sockets(self) -> None:
        for protocol in self.discovery_protocols:
            protocol.close()
        self.discovery_protocols = []

    async def aclose(self) -> None:
        """Closes the discovery sockets and every session's socket."""
        self.close_discovery_sockets()
        for task in list(self._session_tasks):
            task.cancel()
        if len(self._session_tasks) > 0:
            await asyncio.wait(list(self._session_tasks))
        for session in self.sessions.values():
            session.close()

    async def __aenter__(self) -> RmDiscoveryEngine:
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> None:
        await self.aclose()

    def __str__(self) -> str:
        return f"RmDiscoveryEngine(sessions={len(self.sessions)}, sockets={len(self.discovery_protocols)})"

    def __repr__(self) -> str:
        return str(self)
