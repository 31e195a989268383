#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Local network interface enumeration used to pick the addresses discovery broadcasts from.
"""

from __future__ import annotations

import netifaces
from ipaddress import IPv4Address

from ..internal_types import *

class LocalInterfaceAddress:
    """An IPV4 address assigned to a local network interface."""

    address: str
    interface_name: str

    def __init__(self, address: str, interface_name: str) -> None:
        self.address = address
        self.interface_name = interface_name

    def __str__(self) -> str:
        return f"LocalInterfaceAddress({self.address} on {self.interface_name})"

    def __repr__(self) -> str:
        return str(self)

def get_default_ipv4_gateway_interface() -> Optional[str]:
    """Returns the name of the interface carrying the default IPV4 gateway, or None if there is none."""
    gws = netifaces.gateways()
    if "default" in gws:
        default_gateway_infos = gws["default"]
        if netifaces.AF_INET in default_gateway_infos:
            _, gw_interface_name = default_gateway_infos[netifaces.AF_INET][:2]
            return gw_interface_name
    return None

def get_local_ipv4_interfaces(include_loopback: bool=False) -> List[LocalInterfaceAddress]:
    """Returns the IPV4 addresses of the local host, one entry per address.

    The result is sorted so that addresses on the default gateway interface come first,
    then other non-loopback addresses, then (if requested) loopback addresses.
    """
    result_with_priority: List[Tuple[int, str, LocalInterfaceAddress]] = []
    default_gateway_ifname = get_default_ipv4_gateway_interface()
    for ifname in netifaces.interfaces():
        ifinfo = netifaces.ifaddresses(ifname)
        for addrinfo in ifinfo.get(netifaces.AF_INET, []):
            ip_str = addrinfo.get('addr')
            if not isinstance(ip_str, str):
                continue
            if IPv4Address(ip_str).is_loopback:
                if not include_loopback:
                    continue
                priority = 2
            elif ifname == default_gateway_ifname:
                priority = 0
            else:
                priority = 1
            info = LocalInterfaceAddress(ip_str, ifname)
            result_with_priority.append((priority, ip_str, info))
    return [ info for _, _, info in sorted(result_with_priority, key=lambda x: (x[0], x[1])) ]

def get_local_ipv4_addresses(include_loopback: bool=False) -> List[str]:
    """Returns the IPV4 addresses of the local host, ordered as by get_local_ipv4_interfaces()."""
    return [ info.address for info in get_local_ipv4_interfaces(include_loopback=include_loopback) ]
