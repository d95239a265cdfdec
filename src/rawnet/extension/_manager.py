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
from typing import Any, Final

from ._loader import ExtensionLoader
from .exceptions import ExtensionError

__all__ = ["ExtensionManager"]


class ExtensionManager:
    """Holds one ExtensionLoader per interface.

    Example:
        manager.create_instance(Dispatcher, "threaded", max_workers=4)
    """

    __slots__ = ("_loaders",)
    _loaders: Final[dict[type, ExtensionLoader]]

    def __init__(self, loaders: dict[type, ExtensionLoader]) -> None:
        self._loaders = loaders

    def get_loader(self, interface: type) -> ExtensionLoader:
        """Get the extension loader for ``interface``.

        Raises:
            ExtensionError: If no loader is registered for the interface.
        """
        if interface not in self._loaders:
            raise ExtensionError(f"No ExtensionLoader registered for interface '{interface.__name__}'.")
        return self._loaders[interface]

    def list_names(self, interface: type) -> list[str]:
        return self.get_loader(interface).list_names()

    def load_class(self, interface: type, name: str) -> type:
        return self.get_loader(interface).load_class(name)

    def create_instance(self, interface: type, name: str, *args, **kwargs) -> Any:
        return self.get_loader(interface).create_instance(name, *args, **kwargs)
