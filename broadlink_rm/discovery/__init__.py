# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Discovery of RM devices on the local network via UDP broadcast.
"""

from .util import (
    LocalInterfaceAddress,
    get_default_ipv4_gateway_interface,
    get_local_ipv4_interfaces,
    get_local_ipv4_addresses,
  )
from .engine import (
    RmDiscoveryEngine,
    RmDiscoveryProtocol,
    SessionFactory,
    ReadyHandler,
    default_session_factory,
  )
