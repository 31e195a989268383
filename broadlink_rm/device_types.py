# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Classification of the numeric device-type ids reported by devices in their
discovery replies.

The tables here are static data. A DeviceTypeTable is immutable and is handed to
the discovery engine at construction, so alternate tables can be used for testing
or for newly released hardware without touching module state.
"""

from __future__ import annotations

from aenum import Enum as AEnum

from .internal_types import *

class DeviceKind(AEnum):
    RM                          = "rm"
    """A supported remote without RF capability (infrared only)."""

    RM_PLUS                     = "rm_plus"
    """A supported remote with both infrared and RF capability."""

    UNSUPPORTED                 = "unsupported"
    """A known device type from the same vendor that is not a remote."""

    OEM_UNSUPPORTED             = "oem_unsupported"
    """A device type inside the range used by OEM-branded non-RM hardware."""

    UNKNOWN                     = "unknown"
    """A device type that appears in none of the tables."""

class DeviceClassification:
    """The result of classifying a device-type id."""

    device_type: int
    kind: DeviceKind
    model_name: Optional[str]

    def __init__(self, device_type: int, kind: DeviceKind, model_name: Optional[str]=None) -> None:
        self.device_type = device_type
        self.kind = kind
        self.model_name = model_name

    @property
    def is_supported(self) -> bool:
        """True if a session should be created for a device of this type."""
        return self.kind in (DeviceKind.RM, DeviceKind.RM_PLUS)

    @property
    def is_rf_capable(self) -> bool:
        """True if the device can learn and send RF codes."""
        return self.kind == DeviceKind.RM_PLUS

    @property
    def description(self) -> str:
        if self.model_name is None:
            return f"device type 0x{self.device_type:04x}"
        return f"{self.model_name} (0x{self.device_type:04x})"

    def __str__(self) -> str:
        return f"DeviceClassification(0x{self.device_type:04x}, {self.kind.name}, model_name={self.model_name!r})"

    def __repr__(self) -> str:
        return str(self)

RM_DEVICE_TYPES: Mapping[int, str] = MappingProxyType({
    0x2737: "Broadlink RM Mini",
    0x27c7: "Broadlink RM Mini 3 A",
    0x27c2: "Broadlink RM Mini 3 B",
    0x27de: "Broadlink RM Mini 3 C",
    0x5f36: "Broadlink RM Mini 3 D",
    0x273d: "Broadlink RM Pro Phicomm",
    0x2712: "Broadlink RM2",
    0x2783: "Broadlink RM2 Home Plus",
    0x277c: "Broadlink RM2 Home Plus GDT",
    0x278f: "Broadlink RM Mini Shate",
  })
"""Supported remotes without RF support."""

RM_PLUS_DEVICE_TYPES: Mapping[int, str] = MappingProxyType({
    0x272a: "Broadlink RM2 Pro Plus",
    0x2787: "Broadlink RM2 Pro Plus v2",
    0x278b: "Broadlink RM2 Pro Plus BL",
    0x2797: "Broadlink RM2 Pro Plus HYC",
    0x27a1: "Broadlink RM2 Pro Plus R1",
    0x27a6: "Broadlink RM2 Pro PP",
    0x279d: "Broadlink RM3 Pro Plus",
    0x27a9: "Broadlink RM3 Pro Plus v2",  # model RM 3422
    0x27c3: "Broadlink RM3 Pro",
  })
"""Supported remotes with RF support."""

UNSUPPORTED_DEVICE_TYPES: Mapping[int, str] = MappingProxyType({
    0x0000: "Broadlink SP1",
    0x2711: "Broadlink SP2",
    0x2719: "Honeywell SP2",
    0x7919: "Honeywell SP2",
    0x271a: "Honeywell SP2",
    0x791a: "Honeywell SP2",
    0x2733: "OEM Branded SP Mini",
    0x273e: "OEM Branded SP Mini",
    0x2720: "Broadlink SP Mini",
    0x7d07: "Broadlink SP Mini",
    0x753e: "Broadlink SP 3",
    0x2728: "Broadlink SPMini 2",
    0x2736: "Broadlink SPMini Plus",
    0x2714: "Broadlink A1",
    0x4eb5: "Broadlink MP1",
    0x2722: "Broadlink S1 (SmartOne Alarm Kit)",
    0x4e4d: "Dooya DT360E (DOOYA_CURTAIN_V2) or Hysen Heating Controller",
    0x4ead: "Dooya DT360E (DOOYA_CURTAIN_V2) or Hysen Heating Controller",
    0x947a: "BroadLink Outlet",
  })
"""Known device types that are not remotes."""

OEM_UNSUPPORTED_RANGE: Tuple[int, int] = (0x7530, 0x7918)
"""Inclusive range of device types used by OEM-branded SPMini2 plugs."""

class DeviceTypeTable:
    """An immutable set of device-type tables used to classify discovered devices."""

    rm_types: Mapping[int, str]
    rm_plus_types: Mapping[int, str]
    unsupported_types: Mapping[int, str]
    oem_unsupported_range: Tuple[int, int]

    def __init__(
            self,
            rm_types: Optional[Mapping[int, str]]=None,
            rm_plus_types: Optional[Mapping[int, str]]=None,
            unsupported_types: Optional[Mapping[int, str]]=None,
            oem_unsupported_range: Optional[Tuple[int, int]]=None,
          ) -> None:
        self.rm_types = MappingProxyType(dict(RM_DEVICE_TYPES if rm_types is None else rm_types))
        self.rm_plus_types = MappingProxyType(dict(RM_PLUS_DEVICE_TYPES if rm_plus_types is None else rm_plus_types))
        self.unsupported_types = MappingProxyType(
            dict(UNSUPPORTED_DEVICE_TYPES if unsupported_types is None else unsupported_types))
        self.oem_unsupported_range = OEM_UNSUPPORTED_RANGE if oem_unsupported_range is None else oem_unsupported_range

    def classify(self, device_type: int) -> DeviceClassification:
        """Classify a device-type id.

        The exact-match unsupported table is consulted first, then the OEM range, then
        the two supported tables. A type found in neither supported table is UNKNOWN.
        """
        if device_type in self.unsupported_types:
            return DeviceClassification(device_type, DeviceKind.UNSUPPORTED, self.unsupported_types[device_type])
        low, high = self.oem_unsupported_range
        if low <= device_type <= high:
            return DeviceClassification(device_type, DeviceKind.OEM_UNSUPPORTED)
        if device_type in self.rm_types:
            return DeviceClassification(device_type, DeviceKind.RM, self.rm_types[device_type])
        if device_type in self.rm_plus_types:
            return DeviceClassification(device_type, DeviceKind.RM_PLUS, self.rm_plus_types[device_type])
        return DeviceClassification(device_type, DeviceKind.UNKNOWN)

    def __str__(self) -> str:
        return (
            f"DeviceTypeTable(rm={len(self.rm_types)}, rm_plus={len(self.rm_plus_types)}, "
            f"unsupported={len(self.unsupported_types)}, "
            f"oem_range=0x{self.oem_unsupported_range[0]:04x}-0x{self.oem_unsupported_range[1]:04x})"
          )

    def __repr__(self) -> str:
        return str(self)

DEFAULT_DEVICE_TYPE_TABLE = DeviceTypeTable()
"""The built-in device classification tables."""
