# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Events emitted by a DeviceSession.

The set of event kinds is closed; every event delivered to a session's handlers
is one of the SessionEvent subclasses defined here.
"""

from __future__ import annotations

from aenum import Enum as AEnum
from ..internal_types import *

class SessionEventKind(AEnum):
    READY                       = "ready"
    """The handshake completed; the session key and session id are established."""

    TEMPERATURE                 = "temperature"
    """A temperature reading arrived."""

    RAW_DATA                    = "raw_data"
    """A learned code arrived in reply to check-data."""

    SWEEP_RESULT                = "sweep_result"
    """The device reported the result of an RF frequency sweep."""

    RF_DATA                     = "rf_data"
    """The device replied to find-RF-packet."""

    DEVICE_ERROR                = "device_error"
    """A reply carried a nonzero device error code."""

class SessionEvent:
    """Base class for all session events."""

    kind: SessionEventKind

    def _fields_str(self) -> str:
        return ""

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self._fields_str()})"

    def __repr__(self) -> str:
        return str(self)

class ReadyEvent(SessionEvent):
    kind = SessionEventKind.READY

class TemperatureEvent(SessionEvent):
    kind = SessionEventKind.TEMPERATURE

    value: float
    """Temperature in degrees Celsius, to one decimal place."""

    def __init__(self, value: float) -> None:
        self.value = value

    def _fields_str(self) -> str:
        return f"{self.value}"

class RawDataEvent(SessionEvent):
    kind = SessionEventKind.RAW_DATA

    data: bytes

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)

    def _fields_str(self) -> str:
        return f"[{self.data.hex(' ')}]"

class SweepResultEvent(SessionEvent):
    kind = SessionEventKind.SWEEP_RESULT

    success: bool

    def __init__(self, success: bool) -> None:
        self.success = success

    def _fields_str(self) -> str:
        return f"success={self.success}"

class RfDataEvent(SessionEvent):
    kind = SessionEventKind.RF_DATA

    data: bytes

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)

    def _fields_str(self) -> str:
        return f"[{self.data.hex(' ')}]"

class DeviceErrorEvent(SessionEvent):
    kind = SessionEventKind.DEVICE_ERROR

    code: int
    """The 16-bit error code from the reply header."""

    def __init__(self, code: int) -> None:
        self.code = code

    def _fields_str(self) -> str:
        return f"0x{self.code:04x}"

SessionEventHandler = Callable[[SessionEvent], None]
"""A synchronous callback for session events. Called from the event loop's datagram callback."""
