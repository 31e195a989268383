# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package broadlink_rm provides a command-line tool and asyncio API for discovering
Broadlink RM infrared/RF remotes on the local network, and for learning and sending
codes over their encrypted UDP protocol.
"""

from .version import __version__

from .pkg_logging import logger

from .internal_types import Jsonable, JsonableDict, HostAndPort

from .exceptions import (
    BroadlinkRmError,
    PacketFormatError,
    RfLearningError,
    RfNotSupportedError,
    RfSweepFailedError,
    RfSweepTimeoutError,
    RfConfirmTimeoutError,
  )

from .constants import (
    DISCOVERY_PORT,
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_DISCOVERY_WAIT_TIME,
    RF_SWEEP_POLL_DELAY,
    RF_SWEEP_TIMEOUT,
    RF_CONFIRM_POLL_DELAY,
    RF_CONFIRM_TIMEOUT,
  )

from .config import RmClientConfig

from .device_types import (
    DeviceKind,
    DeviceClassification,
    DeviceTypeTable,
    DEFAULT_DEVICE_TYPE_TABLE,
  )

from .protocol import (
    PacketCommand,
    Operation,
    SessionCipher,
    DiscoveryPacket,
    DeviceHelloResponse,
    CommandPacket,
    ResponsePacket,
    checksum,
  )

from .session import (
    DeviceSession,
    SessionEventKind,
    SessionEvent,
    ReadyEvent,
    TemperatureEvent,
    RawDataEvent,
    SweepResultEvent,
    RfDataEvent,
    DeviceErrorEvent,
    SessionEventSubscriber,
    RmCommandDispatcher,
    RfLearningState,
    RfLearningStateMachine,
  )

from .discovery import RmDiscoveryEngine

from .util import (
    full_class_name,
    full_name_of_class,
    format_identity,
  )
