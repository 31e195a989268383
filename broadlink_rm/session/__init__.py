# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Encrypted sessions with individual RM devices: framing, handshake, command
dispatch and RF learning.
"""

from .events import (
    SessionEventKind,
    SessionEvent,
    SessionEventHandler,
    ReadyEvent,
    TemperatureEvent,
    RawDataEvent,
    SweepResultEvent,
    RfDataEvent,
    DeviceErrorEvent,
  )
from .event_subscriber import SessionEventSubscriber
from .dispatcher import RmCommandDispatcher
from .rf_learning import (
    RfLearningState,
    RfLearningStep,
    RfSweepStep,
    RfConfirmStep,
    RfLearningStateMachine,
  )
from .device_session import DeviceSession, build_auth_payload
