# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DeviceSession -- the encrypted UDP session with a single RM device.

A session owns one UDP socket and the device's encryption material. It starts out
with the pre-shared key and IV; authenticate() sends the handshake request, and
the handshake reply replaces the key and session id for the rest of the session's
life.

Replies are decoded in datagram_received() and delivered as SessionEvents to
handlers registered with add_event_handler(), or to a SessionEventSubscriber.
"""

from __future__ import annotations

import asyncio
import random

from ..internal_types import *
from ..pkg_logging import logger
from ..exceptions import BroadlinkRmError, PacketFormatError
from ..config import RmClientConfig
from ..device_types import DeviceClassification
from ..util import format_identity
from ..protocol import (
    PacketCommand,
    SessionCipher,
    CommandPacket,
    ResponsePacket,
    INITIAL_SESSION_ID,
  )
from ..protocol.constants import (
    AUTH_PAYLOAD_LENGTH,
    HANDSHAKE_KEY_OFFSET,
    HANDSHAKE_KEY_LENGTH,
    HANDSHAKE_SESSION_ID_OFFSET,
    SESSION_ID_LENGTH,
    IDENTITY_LENGTH,
  )
from .events import (
    SessionEvent,
    SessionEventKind,
    SessionEventHandler,
    ReadyEvent,
    DeviceErrorEvent,
    RawDataEvent,
    TemperatureEvent,
  )
from .event_subscriber import SessionEventSubscriber
from .dispatcher import RmCommandDispatcher
from .rf_learning import RfLearningStateMachine

def build_auth_payload() -> bytes:
    """Returns the 0x50-byte handshake request payload."""
    payload = bytearray(AUTH_PAYLOAD_LENGTH)
    payload[0x04:0x13] = b'1' * 15
    payload[0x1e] = 0x01
    payload[0x2d] = 0x01
    payload[0x30:0x37] = b'Test  1'
    return bytes(payload)

class DeviceSession(asyncio.DatagramProtocol):
    """An authenticated, encrypted session with one RM device."""

    identity: bytes
    """The 6-byte device identity (MAC address) in discovery order."""

    host: HostAndPort
    """The device's (address, port), as seen in its discovery reply."""

    classification: DeviceClassification
    config: RmClientConfig

    cipher: SessionCipher
    session_id: bytes
    count: int
    """The 16-bit sequence counter. Incremented before each packet is built."""

    transport: Optional[asyncio.DatagramTransport] = None
    is_ready: bool = False
    """True once the handshake reply has been received."""

    event_handlers: Dict[int, SessionEventHandler]
    i_next_event_handler: int = 0

    dispatcher: RmCommandDispatcher
    rf: RfLearningStateMachine

    def __init__(
            self,
            identity: bytes,
            host: HostAndPort,
            classification: DeviceClassification,
            config: Optional[RmClientConfig]=None,
            initial_count: Optional[int]=None,
          ) -> None:
        if len(identity) != IDENTITY_LENGTH:
            raise BroadlinkRmError(f"Device identity must be {IDENTITY_LENGTH} bytes, got {len(identity)}")
        self.identity = bytes(identity)
        self.host = host
        self.classification = classification
        self.config = RmClientConfig() if config is None else config
        self.cipher = SessionCipher()
        self.session_id = INITIAL_SESSION_ID
        self.count = random.randrange(0x10000) if initial_count is None else initial_count & 0xffff
        self.event_handlers = {}
        self.dispatcher = RmCommandDispatcher(self)
        self.rf = RfLearningStateMachine(self)

    # ============================================================
    # Properties

    @property
    def identity_str(self) -> str:
        return format_identity(self.identity)

    @property
    def device_type(self) -> int:
        return self.classification.device_type

    @property
    def model_name(self) -> Optional[str]:
        return self.classification.model_name

    @property
    def is_rf_capable(self) -> bool:
        return self.classification.is_rf_capable

    # ============================================================
    # Transport lifecycle

    async def open(self, local_address: str='0.0.0.0') -> None:
        """Creates the session's UDP socket, bound to an ephemeral port."""
        assert self.transport is None
        loop = asyncio.get_running_loop()
        await loop.create_datagram_endpoint(lambda: self, local_addr=(local_address, 0))

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = cast(asyncio.DatagramTransport, transport)
        logger.debug(f"{self}: socket bound to {transport.get_extra_info('sockname')}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"{self}: socket closed, exc={exc}")
        self.transport = None

    def error_received(self, exc: Exception) -> None:
        logger.warning(f"{self}: transport error: {exc}")

    def close(self) -> None:
        """Closes the session's socket. Pending RF learning steps will time out."""
        if self.transport is not None:
            transport = self.transport
            self.transport = None
            transport.close()

    # ============================================================
    # Events

    def add_event_handler(self, handler: SessionEventHandler) -> int:
        """Adds a handler to be called for every event emitted by this session. Returns an
           id that can be passed to remove_event_handler()."""
        i = self.i_next_event_handler
        self.i_next_event_handler += 1
        self.event_handlers[i] = handler
        return i

    def remove_event_handler(self, i: int) -> None:
        """Removes a previously added event handler."""
        del self.event_handlers[i]

    def subscribe(self, kinds: Optional[Iterable[SessionEventKind]]=None) -> SessionEventSubscriber:
        """Returns an async context manager that queues this session's events while entered."""
        return SessionEventSubscriber(self, kinds)

    def emit(self, event: SessionEvent) -> None:
        logger.debug(f"{self}: emitting {event}")
        for handler in list(self.event_handlers.values()):
            try:
                handler(event)
            except Exception:
                logger.warning(f"{self}: event handler failed for {event}", exc_info=True)

    # ============================================================
    # Send path

    def next_count(self) -> int:
        self.count = (self.count + 1) & 0xffff
        return self.count

    def send_packet(self, command: PacketCommand, payload: bytes) -> bool:
        """Builds, encrypts and sends a command packet.

        Send failures are logged and the packet dropped; there is no retry.

        Returns True if the packet was handed to the transport.

        Raises:
            PacketFormatError: if the payload is not a multiple of 16 bytes.
        """
        packet = CommandPacket(
            command,
            self.next_count(),
            self.identity,
            self.session_id,
            payload,
            self.cipher,
          )
        if self.transport is None:
            logger.warning(f"{self}: no socket; dropping {packet}")
            return False
        logger.debug(f"{self}: sending {packet}: {packet.raw_data.hex(' ')}")
        try:
            self.transport.sendto(packet.raw_data, self.host)
        except OSError as e:
            logger.warning(f"{self}: send failed, {packet} dropped: {e}")
            return False
        return True

    def authenticate(self) -> bool:
        """Sends the handshake request. A ReadyEvent is emitted when the reply arrives."""
        logger.debug(f"{self}: sending handshake request")
        return self.send_packet(PacketCommand.AUTHENTICATE, build_auth_payload())

    async def wait_ready(self, timeout: Optional[float]=None) -> None:
        """Waits for the handshake to complete.

        Raises asyncio.TimeoutError if it does not complete within timeout seconds
        (by default config.handshake_timeout_secs).
        """
        if self.is_ready:
            return
        if timeout is None:
            timeout = self.config.handshake_timeout_secs
        async with self.subscribe([SessionEventKind.READY]) as subscriber:
            if not self.is_ready:
                await subscriber.wait_for(SessionEventKind.READY, timeout)

    # ============================================================
    # Receive path

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        try:
            packet = ResponsePacket(data)
        except PacketFormatError as e:
            logger.debug(f"{self}: ignoring datagram from {addr}: {e}")
            return
        if not packet.checksum_ok:
            logger.debug(f"{self}: ignoring {packet} from {addr} with bad checksum")
            return
        if packet.error_code != 0:
            logger.debug(f"{self}: device reported error 0x{packet.error_code:04x} in {packet}")
            self.emit(DeviceErrorEvent(packet.error_code))
            return
        try:
            payload = packet.decrypt(self.cipher)
        except PacketFormatError as e:
            logger.debug(f"{self}: ignoring undecryptable {packet}: {e}")
            return
        logger.debug(f"{self}: received {packet}: [{payload.hex(' ')}]")

        command = packet.command
        if command == PacketCommand.HANDSHAKE_REPLY:
            self._on_handshake_reply(payload)
        elif command in (PacketCommand.DATA_REPLY, PacketCommand.DATA_REPLY_ALT):
            event = self.dispatcher.decode_data_reply(payload)
            if event is not None:
                self.emit(event)
        else:
            logger.info(f"{self}: unhandled command 0x{packet.command_byte:02x} ignored")

    def _on_handshake_reply(self, payload: bytes) -> None:
        key_end = HANDSHAKE_KEY_OFFSET + HANDSHAKE_KEY_LENGTH
        if len(payload) < key_end:
            logger.debug(f"{self}: truncated handshake reply ignored: {payload.hex(' ')}")
            return
        self.cipher.set_key(payload[HANDSHAKE_KEY_OFFSET:key_end])
        self.session_id = bytes(payload[HANDSHAKE_SESSION_ID_OFFSET:HANDSHAKE_SESSION_ID_OFFSET+SESSION_ID_LENGTH])
        self.is_ready = True
        logger.info(f"{self}: handshake complete")
        self.emit(ReadyEvent())

    # ============================================================
    # Operations

    def send_code(self, code: bytes) -> bool:
        """Transmits a previously learned IR or RF code."""
        return self.dispatcher.send_code(code)

    def enter_learning(self) -> bool:
        return self.dispatcher.enter_learning()

    def check_temperature(self) -> bool:
        return self.dispatcher.check_temperature()

    def check_data(self) -> bool:
        return self.dispatcher.check_data()

    def cancel_learn(self) -> bool:
        return self.dispatcher.cancel_learn()

    def sweep_frequency(self) -> asyncio.Future[None]:
        """Starts (or joins) the RF sweep step. See RfLearningStateMachine.sweep_frequency()."""
        return self.rf.sweep_frequency()

    def confirm_frequency(self) -> asyncio.Future[bytes]:
        """Starts (or joins) the RF confirm step. See RfLearningStateMachine.confirm_frequency()."""
        return self.rf.confirm_frequency()

    async def get_temperature(self, timeout: Optional[float]=None) -> float:
        """Requests and waits for a temperature reading.

        Raises asyncio.TimeoutError if no reading arrives within timeout seconds
        (by default config.handshake_timeout_secs).
        """
        if timeout is None:
            timeout = self.config.handshake_timeout_secs
        async with self.subscribe([SessionEventKind.TEMPERATURE]) as subscriber:
            self.check_temperature()
            event = await subscriber.wait_for(SessionEventKind.TEMPERATURE, timeout)
        assert isinstance(event, TemperatureEvent)
        return event.value

    async def learn_ir_code(self, timeout: Optional[float]=None, poll_interval: Optional[float]=None) -> bytes:
        """Enters IR learning mode and polls until the device returns a learned code.

        Raises asyncio.TimeoutError if no code arrives within timeout seconds
        (by default config.ir_learn_timeout_secs). Learning is cancelled on the
        device in that case.
        """
        if timeout is None:
            timeout = self.config.ir_learn_timeout_secs
        if poll_interval is None:
            poll_interval = self.config.ir_learn_poll_interval_secs
        loop = asyncio.get_running_loop()
        end_time = loop.time() + timeout
        async with self.subscribe([SessionEventKind.RAW_DATA]) as subscriber:
            self.enter_learning()
            while True:
                remaining_time = end_time - loop.time()
                if remaining_time <= 0.0:
                    self.cancel_learn()
                    raise asyncio.TimeoutError(f"{self}: no IR code received within {timeout} seconds")
                try:
                    event = await subscriber.wait_for(SessionEventKind.RAW_DATA, min(poll_interval, remaining_time))
                except asyncio.TimeoutError:
                    self.check_data()
                    continue
                assert isinstance(event, RawDataEvent)
                return event.data

    def __str__(self) -> str:
        return f"DeviceSession({self.identity_str}@{self.host[0]}:{self.host[1]}, {self.classification.description})"

    def __repr__(self) -> str:
        return str(self)
