#
# Licensed to the Apache Software Foundation (ASF) under one or more
# contributor license agreements.  See the NOTICE file distributed with
# this work for additional information regarding copyright ownership.
# The ASF licenses this file to You under the Apache License, Version 2.0
# (the "License"); you may not use this file except in compliance with
# the License.  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
import socket
import sys
from collections.abc import Sequence
from ipaddress import IPv4Address, IPv6Address
from typing import NamedTuple, Union

if sys.version_info >= (3, 10):
    from typing import TypeAlias
else:
    from typing_extensions import TypeAlias


__all__ = ["TypeAlias", "StrOrBytes", "BytesLike", "HostLike", "SocketAddr", "AddressLike"]


StrOrBytes = Union[str, bytes, bytearray, memoryview]
BytesLike = Union[bytes, bytearray, memoryview]

HostLike = Union[str, IPv4Address, IPv6Address]


class SocketAddr(NamedTuple):
    """
    An IP socket address: a host literal and a port.

    Compares equal to the plain ``(host, port)`` tuples the ``socket`` module
    works with, so it can be passed straight to ``bind``/``connect``.
    """

    host: str
    port: int

    @property
    def family(self) -> socket.AddressFamily:
        """AF_INET6 for IPv6 literals, AF_INET otherwise."""
        return socket.AF_INET6 if ":" in self.host else socket.AF_INET

    @property
    def is_ipv6(self) -> bool:
        return self.family == socket.AF_INET6

    @classmethod
    def from_sockaddr(cls, sockaddr: tuple) -> "SocketAddr":
        """
        Build from the address tuple returned by getsockname/getpeername/getaddrinfo.

        IPv6 tuples carry flow info and scope id, which are dropped.
        """
        return cls(str(sockaddr[0]), int(sockaddr[1]))

    def __str__(self) -> str:
        if self.is_ipv6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


AddressLike: TypeAlias = Union[
    str,
    tuple[HostLike, int],
    SocketAddr,
    Sequence[Union[str, tuple[HostLike, int], SocketAddr]],
]
