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
from collections.abc import Iterator

import pytest

from rawnet import Server, ServerConfig, TcpListener


@pytest.fixture
def listener() -> Iterator[TcpListener]:
    """A listener on an OS-chosen loopback port."""
    with TcpListener.bind("127.0.0.1:0") as lst:
        yield lst


class ServerRunner:
    """Runs Server.serve on a background thread and records how it ended."""

    __test__ = False

    def __init__(self, server: Server, handler) -> None:
        self.server = server
        self.error = None
        self._thread = threading.Thread(target=self._run, args=(handler,), daemon=True)

    def _run(self, handler) -> None:
        try:
            self.server.serve(handler)
        except Exception as e:
            self.error = e

    def start(self) -> "ServerRunner":
        self._thread.start()
        return self

    def stop(self, timeout: float = 5.0) -> None:
        self.server.close()
        self._thread.join(timeout)
        assert not self._thread.is_alive(), "serve() did not return after close()"

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()


@pytest.fixture
def run_server():
    """Factory starting a loopback server with the given handler and config."""
    runners = []

    def _start(handler, config: ServerConfig = None) -> ServerRunner:
        runner = ServerRunner(Server.bind("127.0.0.1:0", config), handler).start()
        runners.append(runner)
        return runner

    yield _start

    for runner in runners:
        if runner.alive:
            runner.stop()
