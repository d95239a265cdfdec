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

from rawnet.common import constants

from ._base import BaseConfig

__all__ = ["ServerConfig"]


class ServerConfig(BaseConfig):
    """
    Configuration for a rawnet Server.
    """

    __slots__ = ("_backlog", "_reuse_address", "_dispatcher", "_max_workers")

    _backlog: int
    _reuse_address: bool
    _dispatcher: str
    _max_workers: int

    def __init__(
        self,
        *,
        backlog: int = constants.DEFAULT_BACKLOG,
        reuse_address: bool = True,
        dispatcher: str = constants.SEQUENTIAL_DISPATCHER,
        max_workers: int = constants.DEFAULT_MAX_WORKERS,
    ) -> None:
        self.backlog = backlog
        self.reuse_address = reuse_address
        self.dispatcher = dispatcher
        self.max_workers = max_workers

    @property
    def backlog(self) -> int:
        """Get the pending-connection queue depth passed to listen."""
        return self._backlog

    @backlog.setter
    def backlog(self, value: int) -> None:
        """Set the pending-connection queue depth; must be positive."""
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValueError(f"Invalid backlog: {value!r}. Must be a positive integer.")
        self._backlog = value

    @property
    def reuse_address(self) -> bool:
        """Get whether SO_REUSEADDR is set on the listening socket."""
        return self._reuse_address

    @reuse_address.setter
    def reuse_address(self, value: bool) -> None:
        self._reuse_address = bool(value)

    @property
    def dispatcher(self) -> str:
        """Get the name of the dispatcher that runs connection handlers."""
        return self._dispatcher

    @dispatcher.setter
    def dispatcher(self, value: str) -> None:
        """Set the dispatcher name; it must be registered with the extension manager."""
        # Imported here: the registry imports the net package, which imports this module
        from rawnet.extension import extension_manager
        from rawnet.net._dispatch import Dispatcher

        names = extension_manager.list_names(Dispatcher)
        if value not in names:
            raise ValueError(f"Invalid dispatcher: {value!r}. Must be one of {names}.")
        self._dispatcher = value

    @property
    def max_workers(self) -> int:
        """Get the worker thread count used by the threaded dispatcher."""
        return self._max_workers

    @max_workers.setter
    def max_workers(self, value: int) -> None:
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValueError(f"Invalid max_workers: {value!r}. Must be a positive integer.")
        self._max_workers = value
