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
from socket import SHUT_RDWR
from typing import Optional

from rawnet import logger
from rawnet.common import constants
from rawnet.common.types import AddressLike, BytesLike, SocketAddr, StrOrBytes
from rawnet.common.utils import network as net_utils
from rawnet.common.utils.common import to_bytes
from rawnet.exceptions import SocketError

from ._socket import Socket

__all__ = ["TcpStream"]


class TcpStream:
    """
    A connected TCP byte stream.

    ``read`` and ``write`` map one-to-one onto the underlying socket calls:
    reads may return fewer bytes than requested, writes may be partial, and a
    read of 0 bytes means the peer has shut down its sending side. No
    buffering is added, so :meth:`flush` has nothing to do.
    """

    __slots__ = ("_inner",)

    def __init__(self, inner: Socket) -> None:
        """
        :param inner: A connected socket; the stream takes ownership of it.
        """
        self._inner = inner

    @classmethod
    def connect(cls, address: AddressLike) -> "TcpStream":
        """
        Open a connection to ``address``.

        Each resolved candidate is tried in order; the first successful
        connection is returned.

        :param address: Anything :func:`resolve_addresses` accepts.
        :return: The connected stream.
        :raises ResolutionError: If ``address`` yields no candidate.
        :raises SocketError: The last candidate's error if none connects.
        """
        _logger = logger.get_instance()
        last_error: Optional[SocketError] = None
        for addr in net_utils.resolve_addresses(address):
            try:
                sock = Socket.new(addr.family)
            except SocketError as e:
                _logger.debug(f"Cannot create a socket for {addr}: {e}")
                last_error = e
                continue

            try:
                sock.connect(addr)
            except SocketError as e:
                sock.close()
                _logger.debug(f"Connect to {addr} failed: {e}")
                last_error = e
                continue
            return cls(sock)

        assert last_error is not None
        raise last_error

    @property
    def socket(self) -> Socket:
        """The owned socket."""
        return self._inner

    @property
    def closed(self) -> bool:
        return self._inner.closed

    def fileno(self) -> int:
        return self._inner.fileno()

    def read(self, buf) -> int:
        """Read into ``buf``; returns the byte count, 0 at end of stream."""
        return self._inner.read(buf)

    def write(self, buf: BytesLike) -> int:
        """Write some of ``buf``; returns how many bytes were sent."""
        return self._inner.write(buf)

    def flush(self) -> None:
        """Do nothing: the stream holds no buffered data."""

    def recv(self, max_bytes: int = constants.DEFAULT_MAX_BYTES) -> bytes:
        """
        Read up to ``max_bytes`` and return them.

        :return: The bytes read; ``b""`` at end of stream.
        """
        buf = bytearray(max_bytes)
        n = self.read(buf)
        return bytes(buf[:n])

    def write_all(self, data: StrOrBytes) -> None:
        """
        Write all of ``data``, looping over partial writes.

        ``str`` input is encoded as UTF-8.
        """
        view = memoryview(to_bytes(data))
        while view:
            n = self.write(view)
            view = view[n:]

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes.

        :raises EOFError: If the peer shuts down before ``size`` bytes arrive.
        """
        buf = bytearray(size)
        view = memoryview(buf)
        while view:
            n = self.read(view)
            if n == 0:
                raise EOFError(f"Connection closed after {size - len(view)} of {size} bytes")
            view = view[n:]
        return bytes(buf)

    def peer_addr(self) -> SocketAddr:
        return self._inner.get_peer_name()

    def local_addr(self) -> SocketAddr:
        return self._inner.get_sock_name()

    def shutdown(self, how: int = SHUT_RDWR) -> None:
        """Shut down the read side, the write side (``SHUT_WR``) or both."""
        self._inner.shutdown(how)

    def close(self) -> None:
        self._inner.close()

    def __enter__(self) -> "TcpStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._inner!r}>"
