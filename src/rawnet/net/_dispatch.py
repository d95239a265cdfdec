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
import abc
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from rawnet import logger
from rawnet.common import constants

from ._stream import TcpStream

__all__ = ["StreamHandlerType", "Dispatcher", "SequentialDispatcher", "ThreadPoolDispatcher", "run_handler"]

StreamHandlerType = Callable[[TcpStream], object]


def run_handler(handler: StreamHandlerType, stream: TcpStream) -> None:
    """
    Run ``handler`` on ``stream``, then close the stream.

    Whatever the handler raises is logged and dropped so that one bad
    connection cannot stop the server.
    """
    try:
        with stream:
            handler(stream)
    except Exception:
        logger.get_instance().exception(f"Connection handler failed for {stream!r}")


class Dispatcher(abc.ABC):
    """
    Decides on which thread each accepted connection is handled.

    Implementations are looked up by name through the extension manager (see
    ``ServerConfig.dispatcher``) and receive the server config's keyword
    options on construction.
    """

    @abc.abstractmethod
    def dispatch(self, handler: StreamHandlerType, stream: TcpStream) -> None:
        """
        Hand ``stream`` to ``handler``.

        The dispatcher owns the stream from here on and must close it once
        the handler is done; handler exceptions must not propagate.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def close(self) -> None:
        """Wait for handlers still running and release dispatcher resources."""
        raise NotImplementedError()


class SequentialDispatcher(Dispatcher):
    """Runs each handler on the accept thread, to completion, before the next accept."""

    def __init__(self, **kwargs) -> None:
        pass

    def dispatch(self, handler: StreamHandlerType, stream: TcpStream) -> None:
        run_handler(handler, stream)

    def close(self) -> None:
        pass


class ThreadPoolDispatcher(Dispatcher):
    """
    Runs handlers on a pool of worker threads so that accepting continues
    while connections are being served.
    """

    def __init__(self, max_workers: int = constants.DEFAULT_MAX_WORKERS, **kwargs) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=f"{constants.RAWNET}-handler"
        )
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def dispatch(self, handler: StreamHandlerType, stream: TcpStream) -> None:
        try:
            future = self._executor.submit(run_handler, handler, stream)
        except RuntimeError:
            # Executor already shut down
            stream.close()
            raise

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @property
    def pending(self) -> int:
        """Number of handlers queued or running."""
        with self._lock:
            return len(self._pending)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
