# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Common type hints used throughout this package. Intended to be star-imported.
"""

from __future__ import annotations

from typing import (
    Dict,
    List,
    Optional,
    Union,
    Any,
    TypeVar,
    Tuple,
    Type,
    Callable,
    Awaitable,
    Iterable,
    Iterator,
    AsyncIterable,
    AsyncIterator,
    AsyncContextManager,
    Mapping,
    Sequence,
    Set,
    FrozenSet,
    cast,
    TYPE_CHECKING,
  )

from types import TracebackType, MappingProxyType

from typing_extensions import TypeAlias

Jsonable: TypeAlias = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
"""A type that can be serialized to JSON by json.dumps()"""

JsonableDict: TypeAlias = Dict[str, Jsonable]
"""A JSON-serializable dictionary"""

HostAndPort: TypeAlias = Tuple[str, int]
"""An IPV4 (host, port) address tuple, as used by socket and asyncio datagram APIs"""
