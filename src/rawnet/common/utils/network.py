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
import ipaddress
import socket
from collections.abc import Sequence
from typing import Union

import psutil

from rawnet.common.types import AddressLike, SocketAddr
from rawnet.exceptions import ResolutionError

# Valid port range is [0, 65535]; 0 asks the OS for an ephemeral port
MIN_PORT = 0
MAX_PORT = 65535

# Define constants for IP versions
IPV4_VERSION = 4
IPV6_VERSION = 6

# Host used when an address leaves it empty, e.g. ":8080"
WILDCARD_HOST = "0.0.0.0"
WILDCARD_HOST_V6 = "::"


def is_valid_host(host: str) -> bool:
    """Check if the provided host is an IP address literal."""
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def is_valid_port(port: int) -> bool:
    """Check if ``port`` is an int within [MIN_PORT, MAX_PORT]."""
    return isinstance(port, int) and not isinstance(port, bool) and MIN_PORT <= port <= MAX_PORT


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` string into its host and port.

    IPv6 literals must be bracketed (``[::1]:8080``). An empty host means the
    IPv4 wildcard address.

    Args:
        address: The address string.

    Returns:
        A ``(host, port)`` tuple; the host is not resolved.

    Raises:
        ResolutionError: If the string is not a valid ``host:port`` pair.

    Example:
        parse_address("localhost:8080")  # ("localhost", 8080)
        parse_address("[::1]:0")  # ("::1", 0)
    """
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ResolutionError(f"Invalid socket address: {address!r}")
        port_str = rest[1:]
    else:
        host, sep, port_str = address.rpartition(":")
        if not sep:
            raise ResolutionError(f"Invalid socket address (missing port): {address!r}")
        if ":" in host:
            raise ResolutionError(f"IPv6 addresses must be bracketed: {address!r}")

    try:
        port = int(port_str)
    except ValueError:
        raise ResolutionError(f"Invalid port in socket address: {address!r}") from None

    if not is_valid_port(port):
        raise ResolutionError(f"Port out of range in socket address: {address!r}")

    return host or WILDCARD_HOST, port


def _split_candidate(candidate: Union[str, tuple, SocketAddr]) -> tuple[str, int]:
    if isinstance(candidate, str):
        return parse_address(candidate)

    if isinstance(candidate, tuple) and len(candidate) >= 2:
        host, port = candidate[0], candidate[1]
        if not is_valid_port(port):
            raise ResolutionError(f"Invalid port: {port!r}")
        return str(host) or WILDCARD_HOST, port

    raise ResolutionError(f"Unsupported socket address: {candidate!r}")


def _lookup(host: str, port: int) -> list[SocketAddr]:
    # Literals skip getaddrinfo so that they never depend on the resolver
    if is_valid_host(host):
        return [SocketAddr(str(ipaddress.ip_address(host)), port)]

    try:
        infos = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(f"Failed to resolve {host!r}: {e}") from e

    return [
        SocketAddr.from_sockaddr(sockaddr)
        for family, _, _, _, sockaddr in infos
        if family in (socket.AF_INET, socket.AF_INET6)
    ]


def _is_candidate_tuple(address: tuple) -> bool:
    return bool(address) and isinstance(address[0], tuple)


def resolve_addresses(address: AddressLike) -> list[SocketAddr]:
    """Resolve an address into the ordered list of socket addresses to try.

    Args:
        address: A ``host:port`` string, a ``(host, port)`` tuple, a SocketAddr,
            or a sequence of those. A tuple whose items are themselves tuples
            is a sequence of candidates. Host names are resolved with getaddrinfo.

    Returns:
        The candidates in resolution order, without duplicates.

    Raises:
        ResolutionError: If the input is malformed or yields no candidate.
    """
    if isinstance(address, str) or (isinstance(address, tuple) and not _is_candidate_tuple(address)):
        # A SocketAddr or (host, port) tuple is one candidate, not a sequence
        candidates: Sequence = [address]
    elif isinstance(address, Sequence):
        candidates = address
    else:
        raise ResolutionError(f"Unsupported socket address: {address!r}")

    resolved: list[SocketAddr] = []
    for candidate in candidates:
        host, port = _split_candidate(candidate)
        for addr in _lookup(host, port):
            if addr not in resolved:
                resolved.append(addr)

    if not resolved:
        raise ResolutionError(f"No usable socket address for {address!r}")
    return resolved


def get_local_host(ip_version: int = IPV4_VERSION) -> Union[ipaddress.IPv4Address, ipaddress.IPv6Address]:
    """Get a routable local IP address of the specified version.

    Scans all network interfaces and returns the first address that is not
    multicast, reserved, link-local or loopback.

    Args:
        ip_version: 4 for IPv4 (default) or 6 for IPv6.

    Returns:
        A local IP address object of the requested version.

    Raises:
        ValueError: If ip_version is not 4 or 6.
        OSError: If no suitable address is found.
    """
    if ip_version not in (IPV4_VERSION, IPV6_VERSION):
        raise ValueError(f"Invalid IP version: {ip_version}. Must be {IPV4_VERSION} or {IPV6_VERSION}.")

    for address_list in psutil.net_if_addrs().values():
        for address_info in address_list:
            try:
                address = ipaddress.ip_address(address_info.address)
            except ValueError:
                # MAC addresses and scoped IPv6 strings land here
                continue

            if (
                not address.is_multicast
                and not address.is_reserved
                and not address.is_link_local
                and not address.is_loopback
                and address.version == ip_version
            ):
                return address

    raise OSError(f"No available local host found for IP version {ip_version}.")
