# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Building of operation payloads and decoding of data replies.

Every operation is sent as a PacketCommand.COMMAND packet whose 16-byte payload
carries the operation code in byte 0. Data replies echo the operation code in
byte 0 of the decrypted payload; result data starts at byte 4.
"""

from __future__ import annotations

from ..internal_types import *
from ..pkg_logging import logger
from ..protocol import PacketCommand, Operation, COMMAND_PAYLOAD_LENGTH
from ..protocol.constants import DATA_REPLY_HEADER_LENGTH
from .events import (
    SessionEvent,
    TemperatureEvent,
    RawDataEvent,
    SweepResultEvent,
    RfDataEvent,
  )

if TYPE_CHECKING:
    from .device_session import DeviceSession

TEMPERATURE_REPLY_MIN_LENGTH = 6
SWEEP_REPLY_MIN_LENGTH = DATA_REPLY_HEADER_LENGTH + 1

class RmCommandDispatcher:
    """Sends operations through a DeviceSession and decodes its data replies."""

    session: DeviceSession

    def __init__(self, session: DeviceSession) -> None:
        self.session = session

    @staticmethod
    def build_payload(operation: Operation) -> bytes:
        """Returns the zero-filled 16-byte payload for an operation."""
        payload = bytearray(COMMAND_PAYLOAD_LENGTH)
        payload[0] = operation.value
        return bytes(payload)

    @staticmethod
    def build_send_code_payload(code: bytes) -> bytes:
        """Returns the send-code payload: a 4-byte operation header followed by the raw code bytes.

        The result is not padded. A code returned by check-data already makes the
        payload block-aligned.
        """
        header = bytearray(DATA_REPLY_HEADER_LENGTH)
        header[0] = Operation.SEND_CODE.value
        return bytes(header) + bytes(code)

    def send_operation(self, operation: Operation, payload: Optional[bytes]=None) -> bool:
        """Sends an operation to the device.

        RF operations are refused without sending anything if the device lacks RF
        capability.

        Returns True if the packet was handed to the transport.
        """
        if operation.requires_rf and not self.session.is_rf_capable:
            logger.warning(f"{self.session}: {operation.name} refused; device has no RF capability")
            return False
        if payload is None:
            payload = self.build_payload(operation)
        logger.debug(f"{self.session}: sending {operation.name}")
        return self.session.send_packet(PacketCommand.COMMAND, payload)

    def check_data(self) -> bool:
        return self.send_operation(Operation.CHECK_DATA)

    def send_code(self, code: bytes) -> bool:
        return self.send_operation(Operation.SEND_CODE, self.build_send_code_payload(code))

    def enter_learning(self) -> bool:
        return self.send_operation(Operation.ENTER_LEARNING)

    def check_temperature(self) -> bool:
        return self.send_operation(Operation.CHECK_TEMPERATURE)

    def cancel_learn(self) -> bool:
        return self.send_operation(Operation.CANCEL_LEARN)

    def enter_rf_sweep(self) -> bool:
        return self.send_operation(Operation.ENTER_RF_SWEEP)

    def check_rf_sweep(self) -> bool:
        return self.send_operation(Operation.CHECK_RF_SWEEP)

    def find_rf_packet(self) -> bool:
        return self.send_operation(Operation.FIND_RF_PACKET)

    def decode_data_reply(self, payload: bytes) -> Optional[SessionEvent]:
        """Decodes a decrypted data reply into an event.

        Returns None for replies that carry no reportable data, including unknown
        parameter ids and truncated payloads.
        """
        if len(payload) == 0:
            logger.debug(f"{self.session}: empty data reply ignored")
            return None
        param = Operation.from_byte(payload[0])
        data = payload[DATA_REPLY_HEADER_LENGTH:]

        if param is None:
            logger.debug(f"{self.session}: data reply with unknown parameter 0x{payload[0]:02x} ignored")
            return None
        elif param == Operation.CHECK_TEMPERATURE:
            if len(payload) < TEMPERATURE_REPLY_MIN_LENGTH:
                logger.debug(f"{self.session}: truncated temperature reply ignored: {payload.hex(' ')}")
                return None
            return TemperatureEvent((payload[4] * 10 + payload[5]) / 10.0)
        elif param == Operation.CHECK_DATA:
            return RawDataEvent(data)
        elif param == Operation.CHECK_RF_SWEEP:
            if len(payload) < SWEEP_REPLY_MIN_LENGTH:
                logger.debug(f"{self.session}: truncated sweep reply ignored: {payload.hex(' ')}")
                return None
            return SweepResultEvent(data[0] == 1)
        elif param == Operation.FIND_RF_PACKET:
            return RfDataEvent(data)
        else:
            # Acknowledgements of SEND_CODE, ENTER_LEARNING, ENTER_RF_SWEEP and CANCEL_LEARN
            logger.debug(f"{self.session}: {param.name} acknowledged")
            return None

    def __str__(self) -> str:
        return f"RmCommandDispatcher({self.session})"

    def __repr__(self) -> str:
        return str(self)
