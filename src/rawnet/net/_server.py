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
import threading
from typing import Optional, Protocol, Union, runtime_checkable

from rawnet import logger
from rawnet.common.types import AddressLike, SocketAddr
from rawnet.common.utils import network as net_utils
from rawnet.config import ServerConfig
from rawnet.exceptions import SocketError
from rawnet.extension import extension_manager

from ._dispatch import Dispatcher, StreamHandlerType
from ._listener import TcpListener
from ._stream import TcpStream

__all__ = ["Handler", "HandlerLike", "Server"]


@runtime_checkable
class Handler(Protocol):
    """
    Anything with a ``handle(stream)`` method can serve connections.

    Plain callables taking a TcpStream are accepted as well, so no base class
    is ever required.
    """

    def handle(self, stream: TcpStream) -> object: ...


HandlerLike = Union[Handler, StreamHandlerType]


def _describe_address(address: SocketAddr) -> str:
    """Render a listening address, adding a routable local host for wildcard binds."""
    if address.host not in (net_utils.WILDCARD_HOST, net_utils.WILDCARD_HOST_V6):
        return str(address)

    version = net_utils.IPV6_VERSION if address.is_ipv6 else net_utils.IPV4_VERSION
    try:
        local_host = net_utils.get_local_host(version)
    except OSError:
        # No routable interface, e.g. a host with loopback only
        return str(address)
    return f"{address} (reachable at {SocketAddr(str(local_host), address.port)})"


def _as_callable(handler: HandlerLike) -> StreamHandlerType:
    if isinstance(handler, Handler):
        return handler.handle
    if callable(handler):
        return handler
    raise TypeError(f"Handler must be callable or define handle(stream), got {type(handler).__name__}")


class Server:
    """
    Accept loop dispatching every connection of a TcpListener to a handler.

    Example:
        def echo(stream: TcpStream) -> None:
            while data := stream.recv():
                stream.write_all(data)

        with Server.bind("127.0.0.1:8000") as server:
            server.serve(echo)
    """

    __slots__ = ("_listener", "_config", "_serving", "_lock")

    def __init__(self, listener: TcpListener, config: Optional[ServerConfig] = None) -> None:
        """
        :param listener: The listener to serve; the server takes ownership of it.
        :param config: Dispatch settings; defaults to sequential dispatch.
        """
        self._listener = listener
        self._config = config or ServerConfig()
        self._serving = False
        self._lock = threading.Lock()

    @classmethod
    def bind(cls, address: AddressLike, config: Optional[ServerConfig] = None) -> "Server":
        """
        Create a server listening on ``address``.

        :raises ResolutionError: If ``address`` yields no candidate.
        :raises SocketError: If no candidate could be bound.
        """
        config = config or ServerConfig()
        listener = TcpListener.bind(address, backlog=config.backlog, reuse_address=config.reuse_address)
        return cls(listener, config)

    @property
    def listener(self) -> TcpListener:
        return self._listener

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def serving(self) -> bool:
        """Whether a serve loop is currently running."""
        return self._serving

    def local_addr(self) -> SocketAddr:
        return self._listener.local_addr()

    def serve(self, handler: HandlerLike) -> None:
        """
        Accept connections and dispatch each one to ``handler`` until the server is closed.

        Each stream is closed once its handler finishes. Exceptions raised by
        the handler are logged and the loop goes on. When the loop stops,
        handlers still running on dispatcher threads are waited for.

        :param handler: A callable taking a TcpStream, or an object with ``handle(stream)``.
        :raises RuntimeError: If this server is already serving.
        :raises SocketError: If the listener fails in a way accepting cannot recover from,
            or was already closed.
        """
        handle = _as_callable(handler)

        with self._lock:
            if self._serving:
                raise RuntimeError("Server is already serving")
            self._serving = True

        _logger = logger.get_instance()
        dispatcher: Optional[Dispatcher] = None
        try:
            address = self._listener.local_addr()
            dispatcher = extension_manager.create_instance(
                Dispatcher, self._config.dispatcher, max_workers=self._config.max_workers
            )
            _logger.info(f"Serving on {_describe_address(address)} with the {self._config.dispatcher} dispatcher")

            for stream in self._listener.incoming():
                dispatcher.dispatch(handle, stream)
        except SocketError as e:
            _logger.critical(f"Listener failed, server stopped: {e}")
            raise
        finally:
            if dispatcher is not None:
                dispatcher.close()
            with self._lock:
                self._serving = False

        _logger.info(f"Server on {address} stopped")

    def close(self) -> None:
        """
        Close the listener.

        Safe to call from any thread; a running :meth:`serve` returns once its
        dispatcher has drained.
        """
        self._listener.close()

    def __enter__(self) -> "Server":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._listener!r} dispatcher={self._config.dispatcher}>"
