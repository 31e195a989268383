# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RM client configuration.

Provides a general config object for discovery, sessions, and learning timeouts.
"""

from __future__ import annotations

import os
import json

from .internal_types import *
from .exceptions import BroadlinkRmError
from .constants import (
    DISCOVERY_PORT,
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_DISCOVERY_WAIT_TIME,
    DEFAULT_HANDSHAKE_TIMEOUT,
    RF_SWEEP_POLL_DELAY,
    RF_SWEEP_TIMEOUT,
    RF_CONFIRM_POLL_DELAY,
    RF_CONFIRM_TIMEOUT,
    IR_LEARN_TIMEOUT,
    IR_LEARN_POLL_INTERVAL,
  )

CONFIG_FILE_ENV_VAR = 'BROADLINK_RM_CONFIG_FILE'
BROADCAST_ADDRESS_ENV_VAR = 'BROADLINK_RM_BROADCAST_ADDRESS'
BIND_ADDRESSES_ENV_VAR = 'BROADLINK_RM_BIND_ADDRESSES'

_FLOAT_FIELDS = (
    'discovery_wait_secs',
    'handshake_timeout_secs',
    'sweep_poll_delay_secs',
    'sweep_timeout_secs',
    'confirm_poll_delay_secs',
    'confirm_timeout_secs',
    'ir_learn_timeout_secs',
    'ir_learn_poll_interval_secs',
  )

class RmClientConfig:
    """RM client configuration."""
    broadcast_address: str
    discovery_port: int
    bind_addresses: List[str]
    include_loopback: bool
    discovery_wait_secs: float
    handshake_timeout_secs: float
    sweep_poll_delay_secs: float
    sweep_timeout_secs: float
    confirm_poll_delay_secs: float
    confirm_timeout_secs: float
    ir_learn_timeout_secs: float
    ir_learn_poll_interval_secs: float

    def __init__(
            self,
            broadcast_address: Optional[str]=None,
            *,
            discovery_port: Optional[int]=None,
            bind_addresses: Optional[Iterable[str]]=None,
            include_loopback: Optional[bool]=None,
            discovery_wait_secs: Optional[float]=None,
            handshake_timeout_secs: Optional[float]=None,
            sweep_poll_delay_secs: Optional[float]=None,
            sweep_timeout_secs: Optional[float]=None,
            confirm_poll_delay_secs: Optional[float]=None,
            confirm_timeout_secs: Optional[float]=None,
            ir_learn_timeout_secs: Optional[float]=None,
            ir_learn_poll_interval_secs: Optional[float]=None,
            base_config: Optional[RmClientConfig]=None,
            use_config_file: bool = True,
          ) -> None:
        """Creates a configuration for RM discovery and sessions.

           Args:
             broadcast_address: The address discovery packets are sent to. If None,
                   the BROADLINK_RM_BROADCAST_ADDRESS environment variable is used, and
                   failing that 255.255.255.255.
             discovery_port: The UDP port discovery packets are sent to. Defaults to 80.
             bind_addresses: The local IPV4 addresses to broadcast from, one socket each.
                   If None, BROADLINK_RM_BIND_ADDRESSES (comma-separated) is used. If that
                   is empty, every non-loopback IPV4 interface address is used.
             include_loopback: If True, loopback addresses are included when enumerating
                   interfaces. Defaults to False.
             discovery_wait_secs: How long the command-line tool waits for devices
                   to answer and complete their handshake.
             handshake_timeout_secs: How long wait_ready() waits by default.
             sweep_poll_delay_secs, sweep_timeout_secs:
                   Timings of the RF sweep step (defaults 10 and 30 seconds).
             confirm_poll_delay_secs, confirm_timeout_secs:
                   Timings of the RF confirm step (defaults 5 and 10 seconds).
             ir_learn_timeout_secs, ir_learn_poll_interval_secs:
                   Timings of IR learning.
             base_config:
                   An optional base configuration to use instead of the defaults.
             use_config_file:
                   If True and no base_config is given, the JSON file named by
                   BROADLINK_RM_CONFIG_FILE is applied over the defaults.
        """
        if base_config is None:
            self.init_from_defaults(use_config_file=use_config_file)
        else:
            self.init_from_base_config(base_config)

        if broadcast_address is not None and broadcast_address != '':
            self.broadcast_address = broadcast_address

        if discovery_port is not None and discovery_port > 0:
            self.discovery_port = discovery_port

        if bind_addresses is not None:
            self.bind_addresses = list(bind_addresses)

        if include_loopback is not None:
            self.include_loopback = include_loopback

        overrides = dict(
            discovery_wait_secs=discovery_wait_secs,
            handshake_timeout_secs=handshake_timeout_secs,
            sweep_poll_delay_secs=sweep_poll_delay_secs,
            sweep_timeout_secs=sweep_timeout_secs,
            confirm_poll_delay_secs=confirm_poll_delay_secs,
            confirm_timeout_secs=confirm_timeout_secs,
            ir_learn_timeout_secs=ir_learn_timeout_secs,
            ir_learn_poll_interval_secs=ir_learn_poll_interval_secs,
          )
        for name, value in overrides.items():
            if value is not None:
                setattr(self, name, float(value))

        if self.sweep_poll_delay_secs > self.sweep_timeout_secs:
            raise BroadlinkRmError(
                f"RF sweep poll delay {self.sweep_poll_delay_secs} exceeds sweep timeout {self.sweep_timeout_secs}")
        if self.confirm_poll_delay_secs > self.confirm_timeout_secs:
            raise BroadlinkRmError(
                f"RF confirm poll delay {self.confirm_poll_delay_secs} exceeds confirm timeout {self.confirm_timeout_secs}")

    def init_from_defaults(self, use_config_file: bool=True) -> None:
        """Initializes the configuration from defaults."""
        self.broadcast_address = DEFAULT_BROADCAST_ADDRESS
        self.discovery_port = DISCOVERY_PORT
        self.bind_addresses = []
        self.include_loopback = False
        self.discovery_wait_secs = DEFAULT_DISCOVERY_WAIT_TIME
        self.handshake_timeout_secs = DEFAULT_HANDSHAKE_TIMEOUT
        self.sweep_poll_delay_secs = RF_SWEEP_POLL_DELAY
        self.sweep_timeout_secs = RF_SWEEP_TIMEOUT
        self.confirm_poll_delay_secs = RF_CONFIRM_POLL_DELAY
        self.confirm_timeout_secs = RF_CONFIRM_TIMEOUT
        self.ir_learn_timeout_secs = IR_LEARN_TIMEOUT
        self.ir_learn_poll_interval_secs = IR_LEARN_POLL_INTERVAL

        if use_config_file:
            config_file = os.environ.get(CONFIG_FILE_ENV_VAR)
            if config_file is not None and config_file != '':
                with open(config_file, 'r') as f:
                    config_jsonable = json.load(f)
                self.update_from_jsonable(config_jsonable)

        broadcast_address = os.environ.get(BROADCAST_ADDRESS_ENV_VAR)
        if broadcast_address is not None and broadcast_address != '':
            self.broadcast_address = broadcast_address
        bind_addresses = os.environ.get(BIND_ADDRESSES_ENV_VAR)
        if bind_addresses is not None and bind_addresses != '':
            self.bind_addresses = [ x.strip() for x in bind_addresses.split(',') if x.strip() != '' ]

    def init_from_base_config(self, base_config: RmClientConfig) -> None:
        """Initializes the configuration from a base configuration."""
        self.broadcast_address = base_config.broadcast_address
        self.discovery_port = base_config.discovery_port
        self.bind_addresses = list(base_config.bind_addresses)
        self.include_loopback = base_config.include_loopback
        for name in _FLOAT_FIELDS:
            setattr(self, name, getattr(base_config, name))

    def to_jsonable(self) -> JsonableDict:
        """Returns a JSON-serializable representation of the configuration."""
        result: JsonableDict = dict(
            broadcast_address=self.broadcast_address,
            discovery_port=self.discovery_port,
            bind_addresses=list(self.bind_addresses),
            include_loopback=self.include_loopback,
          )
        for name in _FLOAT_FIELDS:
            result[name] = getattr(self, name)
        return result

    def to_json(self) -> str:
        """Returns a JSON representation of the configuration."""
        return json.dumps(self.to_jsonable())

    def update_from_jsonable(self, jsonable: JsonableDict) -> None:
        """Updates the configuration from a JSON-serializable representation."""
        broadcast_address = jsonable.get('broadcast_address')
        if broadcast_address is not None and broadcast_address != '':
            self.broadcast_address = str(broadcast_address)
        discovery_port = jsonable.get('discovery_port')
        if discovery_port is not None and discovery_port != '':
            self.discovery_port = int(cast(Union[int, str], discovery_port))
        bind_addresses = jsonable.get('bind_addresses')
        if bind_addresses is not None:
            if isinstance(bind_addresses, str):
                bind_addresses = [ x.strip() for x in bind_addresses.split(',') if x.strip() != '' ]
            if not isinstance(bind_addresses, list):
                raise BroadlinkRmError(f"bind_addresses must be a list of strings: {bind_addresses!r}")
            self.bind_addresses = [ str(x) for x in bind_addresses ]
        include_loopback = jsonable.get('include_loopback')
        if include_loopback is not None and include_loopback != '':
            self.include_loopback = bool(include_loopback)
        for name in _FLOAT_FIELDS:
            value = jsonable.get(name)
            if value is not None and value != '':
                setattr(self, name, float(cast(Union[int, float, str], value)))

    @classmethod
    def from_jsonable(cls, jsonable: JsonableDict, use_config_file: bool=True) -> RmClientConfig:
        """Creates a configuration from a JSON-serializable representation."""
        result = cls(use_config_file=use_config_file)
        result.update_from_jsonable(jsonable)
        return result

    @classmethod
    def from_json(cls, json_str: str, use_config_file: bool=True) -> RmClientConfig:
        """Creates a configuration from a JSON representation."""
        jsonable = json.loads(json_str)
        return cls.from_jsonable(jsonable, use_config_file=use_config_file)

    @classmethod
    def from_config_file(cls, filename: str) -> RmClientConfig:
        """Creates a configuration from a JSON-serialized config file."""
        with open(filename, 'r') as f:
            jsonable: JsonableDict = json.load(f)

        result = cls.from_jsonable(jsonable, use_config_file=False)
        return result

    def __str__(self) -> str:
        return (
            f"RmClientConfig("
            f"broadcast_address={self.broadcast_address}, "
            f"discovery_port={self.discovery_port}, "
            f"bind_addresses={self.bind_addresses!r})"
          )

    def __repr__(self) -> str:
        return str(self)
