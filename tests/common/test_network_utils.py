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

"""
Tests for network utility functions in rawnet.common.utils.network module.
"""

import ipaddress
import socket
import unittest.mock as mock

import pytest

from rawnet.common.types import SocketAddr
from rawnet.common.utils.network import (
    IPV6_VERSION,
    get_local_host,
    is_valid_host,
    is_valid_port,
    parse_address,
    resolve_addresses,
)
from rawnet.exceptions import ResolutionError


class TestValidation:
    """
    Tests for host and port validation.
    """

    def test_is_valid_host(self):
        """
        Test is_valid_host with IPv4, IPv6 and invalid addresses.

        :return: None
        """
        assert is_valid_host("127.0.0.1") is True
        assert is_valid_host("0.0.0.0") is True
        assert is_valid_host("::1") is True
        assert is_valid_host("2001:db8::1") is True

        assert is_valid_host("") is False
        assert is_valid_host("localhost") is False
        assert is_valid_host("256.256.256.256") is False
        assert is_valid_host("2001:db8::xyz") is False

    @pytest.mark.parametrize("port, valid", [(0, True), (80, True), (65535, True), (-1, False), (65536, False)])
    def test_is_valid_port(self, port, valid):
        assert is_valid_port(port) is valid

    def test_is_valid_port_rejects_non_integers(self):
        assert is_valid_port("80") is False
        assert is_valid_port(True) is False
        assert is_valid_port(80.0) is False


class TestParseAddress:
    """
    Tests for parse_address.
    """

    def test_ipv4(self):
        assert parse_address("127.0.0.1:8080") == ("127.0.0.1", 8080)

    def test_hostname(self):
        assert parse_address("localhost:0") == ("localhost", 0)

    def test_bracketed_ipv6(self):
        assert parse_address("[::1]:443") == ("::1", 443)

    def test_empty_host_means_wildcard(self):
        assert parse_address(":9000") == ("0.0.0.0", 9000)

    @pytest.mark.parametrize(
        "address",
        ["127.0.0.1", "127.0.0.1:", "127.0.0.1:http", "127.0.0.1:70000", "::1:80", "[::1]80", "[::1"],
    )
    def test_invalid(self, address):
        with pytest.raises(ResolutionError):
            parse_address(address)


class TestResolveAddresses:
    """
    Tests for resolve_addresses.
    """

    def test_literal_string(self):
        assert resolve_addresses("127.0.0.1:80") == [SocketAddr("127.0.0.1", 80)]

    def test_tuple_and_socket_addr(self):
        assert resolve_addresses(("127.0.0.1", 80)) == [("127.0.0.1", 80)]
        assert resolve_addresses(SocketAddr("::1", 80)) == [SocketAddr("::1", 80)]

    def test_tuple_of_candidates(self):
        """A tuple of address tuples is a candidate list, like a list of them."""
        candidates = (("127.0.0.1", 0), SocketAddr("::1", 0))
        assert resolve_addresses(candidates) == [("127.0.0.1", 0), ("::1", 0)]
        assert resolve_addresses(candidates) == resolve_addresses(list(candidates))

    def test_empty_tuple(self):
        with pytest.raises(ResolutionError):
            resolve_addresses(())

    def test_ip_address_object_host(self):
        assert resolve_addresses((ipaddress.IPv4Address("10.1.2.3"), 5)) == [("10.1.2.3", 5)]

    def test_literals_are_normalized(self):
        assert resolve_addresses("[0:0:0:0:0:0:0:1]:80") == [SocketAddr("::1", 80)]

    def test_list_keeps_order_and_drops_duplicates(self):
        result = resolve_addresses(["127.0.0.2:1", ("127.0.0.1", 2), "127.0.0.2:1"])
        assert result == [("127.0.0.2", 1), ("127.0.0.1", 2)]

    def test_hostname_uses_getaddrinfo_order(self):
        """
        Resolution order determines bind order; IPv6 answers are kept.

        :return: None
        """
        infos = [
            (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("::1", 8080, 0, 0)),
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", 8080)),
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", 8080)),
        ]
        with mock.patch("socket.getaddrinfo", return_value=infos) as mock_getaddrinfo:
            result = resolve_addresses("localhost:8080")

        mock_getaddrinfo.assert_called_once()
        assert result == [SocketAddr("::1", 8080), SocketAddr("127.0.0.1", 8080)]

    def test_lookup_failure(self):
        with mock.patch("socket.getaddrinfo", side_effect=socket.gaierror(-2, "Name or service not known")):
            with pytest.raises(ResolutionError) as excinfo:
                resolve_addresses("nowhere.invalid:80")
        assert "nowhere.invalid" in str(excinfo.value)

    def test_no_candidates(self):
        with pytest.raises(ResolutionError):
            resolve_addresses([])

    def test_unsupported_input(self):
        with pytest.raises(ResolutionError):
            resolve_addresses(8080)


class TestLocalHostFunction:
    """
    Tests for get_local_host function.
    """

    @staticmethod
    def _addr(address):
        return mock.MagicMock(address=address)

    def test_get_local_host_skips_unusable_addresses(self):
        interfaces = {
            "lo": [self._addr("127.0.0.1"), self._addr("::1")],
            "eth0": [self._addr("00:11:22:33:44:55"), self._addr("fe80::1"), self._addr("192.168.1.20")],
        }
        with mock.patch("psutil.net_if_addrs", return_value=interfaces):
            assert get_local_host() == ipaddress.IPv4Address("192.168.1.20")

    def test_get_local_host_ipv6(self):
        interfaces = {"eth0": [self._addr("192.168.1.20"), self._addr("2001:db8::20")]}
        with mock.patch("psutil.net_if_addrs", return_value=interfaces):
            assert get_local_host(IPV6_VERSION) == ipaddress.IPv6Address("2001:db8::20")

    def test_get_local_host_none_found(self):
        with mock.patch("psutil.net_if_addrs", return_value={"lo": [self._addr("127.0.0.1")]}):
            with pytest.raises(OSError):
                get_local_host()

    def test_get_local_host_invalid_version(self):
        with pytest.raises(ValueError):
            get_local_host(5)
