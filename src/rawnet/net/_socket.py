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
import errno
import socket
import threading
from typing import Callable, TypeVar

from rawnet.common.types import BytesLike, SocketAddr
from rawnet.common.utils.common import to_writable_buffer
from rawnet.exceptions import ExceptionMapping, SocketError, map_exceptions

__all__ = ["Socket"]

_T = TypeVar("_T")

_EXC_MAP: ExceptionMapping = {OSError: SocketError}


def _retry_on_interrupt(op: Callable[[], _T]) -> _T:
    """Run ``op`` again for as long as the OS reports EINTR."""
    while True:
        try:
            return op()
        except InterruptedError:
            continue


class Socket:
    """
    Owner of exactly one OS stream socket descriptor.

    Every OS failure surfaces as :class:`SocketError`. The descriptor is
    released exactly once, by :meth:`close` or by leaving a ``with`` block.
    Once closed, every operation fails with ``EBADF``; repeated closes do
    nothing.

    Example:
        with Socket.new() as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen(128)
            conn = sock.accept()
    """

    __slots__ = ("_sock", "_fd", "_closed", "_close_lock")

    def __init__(self, sock: socket.socket) -> None:
        """
        Take ownership of an already created OS socket.

        :param sock: The socket; nothing else may close or use it afterwards.
        """
        self._sock = sock
        self._fd = sock.fileno()
        self._closed = False
        self._close_lock = threading.Lock()

    @classmethod
    def new(cls, family: socket.AddressFamily = socket.AF_INET) -> "Socket":
        """
        Allocate a new TCP socket.

        :param family: AF_INET or AF_INET6.
        :return: The new, unbound socket.
        :raises SocketError: If the OS refuses to allocate it.
        """
        with map_exceptions(_EXC_MAP):
            return cls(socket.socket(family, socket.SOCK_STREAM, socket.IPPROTO_TCP))

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def family(self) -> socket.AddressFamily:
        return self._sock.family

    def fileno(self) -> int:
        """
        Return the owned descriptor number.

        The number stays readable after close so it can be logged, but it must
        not be used: the OS may have handed it to another resource.
        """
        return self._fd

    def _check_open(self) -> None:
        if self._closed:
            raise SocketError(errno.EBADF, "Socket is closed")

    def set_reuse_address(self, enabled: bool = True) -> None:
        """Toggle SO_REUSEADDR."""
        self._check_open()
        with map_exceptions(_EXC_MAP):
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, int(enabled))

    def bind(self, addr: tuple) -> SocketAddr:
        """
        Bind to a local address.

        :param addr: ``(host, port)``; port 0 lets the OS pick one.
        :return: The address the OS actually bound.
        :raises SocketError: e.g. address in use, permission denied.
        """
        self._check_open()
        with map_exceptions(_EXC_MAP):
            self._sock.bind(tuple(addr))
        return self.get_sock_name()

    def listen(self, backlog: int) -> None:
        self._check_open()
        with map_exceptions(_EXC_MAP):
            self._sock.listen(backlog)

    def accept(self) -> "Socket":
        """
        Block until a connection is pending and take ownership of it.

        :return: A new Socket owning the connection's descriptor.
        :raises SocketError: If accept fails, including because this socket was
            closed from another thread while waiting.
        """
        self._check_open()
        with map_exceptions(_EXC_MAP):
            conn, _ = _retry_on_interrupt(self._sock.accept)
        return Socket(conn)

    def connect(self, addr: tuple) -> None:
        self._check_open()
        with map_exceptions(_EXC_MAP):
            self._sock.connect(tuple(addr))

    def get_peer_name(self) -> SocketAddr:
        self._check_open()
        with map_exceptions(_EXC_MAP):
            return SocketAddr.from_sockaddr(self._sock.getpeername())

    def get_sock_name(self) -> SocketAddr:
        self._check_open()
        with map_exceptions(_EXC_MAP):
            return SocketAddr.from_sockaddr(self._sock.getsockname())

    def read(self, buf) -> int:
        """
        Receive into ``buf``.

        Blocks until at least one byte is available. An empty ``buf`` returns 0
        immediately.

        :param buf: A writable buffer (bytearray, memoryview, ...).
        :return: The number of bytes stored; 0 means the peer shut down its side.
        :raises SocketError: ``EBADF`` if the socket is closed, including by another
            thread while this call was blocked.
        """
        self._check_open()
        view = to_writable_buffer(buf)
        if not view:
            return 0
        with map_exceptions(_EXC_MAP):
            n = _retry_on_interrupt(lambda: self._sock.recv_into(view))
        if n == 0:
            # close() shuts the socket down first, which also wakes recv with 0
            self._check_open()
        return n

    def write(self, buf: BytesLike) -> int:
        """
        Send part or all of ``buf`` with a single send call.

        :return: The number of bytes the OS accepted, possibly fewer than ``len(buf)``.
        """
        self._check_open()
        if not buf:
            return 0
        with map_exceptions(_EXC_MAP):
            return _retry_on_interrupt(lambda: self._sock.send(buf))

    def shutdown(self, how: int = socket.SHUT_RDWR) -> None:
        self._check_open()
        with map_exceptions(_EXC_MAP):
            self._sock.shutdown(how)

    def close(self) -> None:
        """
        Release the descriptor.

        Safe to call from any thread and any number of times; only the first
        call reaches the OS. The socket is shut down before being closed so a
        thread blocked in accept or read on it returns with an error.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # ENOTCONN: never connected, or the peer is already gone
            pass
        with map_exceptions(_EXC_MAP):
            self._sock.close()

    def __enter__(self) -> "Socket":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<{type(self).__name__} fd={self._fd} family={self.family.name} {state}>"
