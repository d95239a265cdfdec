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
import time
from typing import Optional

from rawnet import logger
from rawnet.common import constants
from rawnet.common.types import AddressLike, SocketAddr
from rawnet.common.utils import network as net_utils
from rawnet.exceptions import SocketError, is_resource_exhaustion, is_transient_accept_error

from ._socket import Socket
from ._stream import TcpStream

__all__ = ["TcpListener", "Incoming"]


class TcpListener:
    """
    A bound, listening TCP socket.

    Example:
        with TcpListener.bind("127.0.0.1:0") as listener:
            for stream in listener.incoming():
                with stream:
                    stream.write_all(stream.recv())
    """

    __slots__ = ("_inner",)

    def __init__(self, inner: Socket) -> None:
        """
        :param inner: A socket already bound and listening; ownership moves to the listener.
        """
        self._inner = inner

    @classmethod
    def bind(
        cls,
        address: AddressLike,
        *,
        backlog: int = constants.DEFAULT_BACKLOG,
        reuse_address: bool = True,
    ) -> "TcpListener":
        """
        Create a listener on the first candidate of ``address`` that works.

        Candidates are tried in resolution order. For each one a socket is
        created, bound and put into listening mode; a candidate failing at any
        step has its socket closed before the next one is tried.

        :param address: Anything :func:`resolve_addresses` accepts.
        :param backlog: Pending-connection queue depth.
        :param reuse_address: Whether to set SO_REUSEADDR before binding.
        :return: The listening TcpListener.
        :raises ResolutionError: If ``address`` yields no candidate.
        :raises SocketError: The last candidate's error if every candidate fails.
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
                if reuse_address:
                    sock.set_reuse_address(True)
                local = sock.bind(addr)
                sock.listen(backlog)
            except SocketError as e:
                sock.close()
                _logger.debug(f"Cannot listen on {addr}: {e}")
                last_error = e
                continue

            _logger.debug(f"Listening on {local} (fd={sock.fileno()}, backlog={backlog})")
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

    def accept(self) -> tuple[TcpStream, SocketAddr]:
        """
        Block until a client connects.

        :return: The connected stream and the client's address.
        :raises SocketError: If accepting, or looking up the peer, fails.
        """
        conn = self._inner.accept()
        try:
            peer = conn.get_peer_name()
        except SocketError:
            # The client went away between accept and getpeername
            conn.close()
            raise
        return TcpStream(conn), peer

    def incoming(self) -> "Incoming":
        """Return an iterator accepting connections one at a time."""
        return Incoming(self)

    def local_addr(self) -> SocketAddr:
        return self._inner.get_sock_name()

    def close(self) -> None:
        """
        Stop listening and release the descriptor.

        May be called from another thread to stop a blocked :meth:`accept` or
        :class:`Incoming` loop.
        """
        self._inner.close()

    def __enter__(self) -> "TcpListener":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._inner!r}>"


class Incoming:
    """
    Endless iterator of streams accepted by a TcpListener.

    Each ``next()`` performs one fresh accept and blocks until it succeeds;
    nothing is buffered. Iteration stops when the listener is closed, whether
    before the call or while it is blocked.

    Errors that only concern the pending connection (aborted handshakes, peers
    resetting before they could be looked up) and resource exhaustion
    (EMFILE, ENFILE, ENOBUFS, ENOMEM) are logged and retried; the latter with
    an exponential back-off. Any other accept error means the listener is
    unusable: it is raised, and the iterator is exhausted from then on.
    """

    __slots__ = ("_listener", "_delay", "_exhausted")

    def __init__(self, listener: TcpListener) -> None:
        self._listener = listener
        self._delay = 0.0
        self._exhausted = False

    @property
    def listener(self) -> TcpListener:
        return self._listener

    def __iter__(self) -> "Incoming":
        return self

    def __next__(self) -> TcpStream:
        if self._exhausted:
            raise StopIteration

        while True:
            if self._listener.closed:
                self._exhausted = True
                raise StopIteration

            try:
                stream, _ = self._listener.accept()
            except SocketError as e:
                if self._listener.closed:
                    # Closed from another thread while accept was blocked
                    self._exhausted = True
                    raise StopIteration from None
                if not is_transient_accept_error(e):
                    self._exhausted = True
                    raise
                self._back_off(e)
                continue

            self._delay = 0.0
            return stream

    def _back_off(self, error: SocketError) -> None:
        _logger = logger.get_instance()
        if not is_resource_exhaustion(error):
            _logger.warning(f"Accept failed ({error}); retrying")
            return

        if self._delay:
            self._delay = min(self._delay * 2, constants.ACCEPT_RETRY_MAX_DELAY)
        else:
            self._delay = constants.ACCEPT_RETRY_MIN_DELAY
        _logger.warning(f"Accept failed ({error}); retrying in {self._delay * 1000:.0f}ms")
        time.sleep(self._delay)
