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
import importlib
import threading
from typing import Any, Optional, Union

from .exceptions import ExtensionError

__all__ = ["ExtensionLoader"]


class ExtensionLoader:
    """Registry of named implementations for one interface.

    Implementations are registered either as classes or as
    ``module.submodule:ClassName`` paths that are imported on first use.
    Every loaded class is checked against the interface and cached.
    """

    def __init__(self, interface: type, impls: Optional[dict[str, Union[str, type]]] = None) -> None:
        """
        Args:
            interface: The abstract base class implementations must extend.
            impls: Initial mapping of names to classes or import paths.
        """
        self._interface = interface
        self._impls: dict[str, Union[str, type]] = impls or {}
        self._cache: dict[str, type] = {}
        self._lock = threading.Lock()

    @property
    def interface(self) -> type:
        return self._interface

    def register(self, name: str, impl: Union[str, type]) -> None:
        """Register (or replace) the implementation stored under ``name``.

        Raises:
            ValueError: If name is empty or not a string.
            TypeError: If impl is neither a class nor a string path.

        Example:
            loader.register("inline", InlineDispatcher)
            loader.register("pooled", "myapp.dispatch:PooledDispatcher")
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Implementation name must be a non-empty string.")
        if not isinstance(impl, (str, type)):
            raise TypeError("Implementation must be a class or a string path.")

        with self._lock:
            self._impls[name] = impl
            self._cache.pop(name, None)

    def list_names(self) -> list[str]:
        return list(self._impls.keys())

    def load_class(self, name: str) -> type:
        """Resolve ``name`` to its implementation class.

        Raises:
            ExtensionError: If the name is unknown, the path cannot be imported,
                or the class does not extend the interface.
        """
        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                return cached

            impl = self._impls.get(name)
            if impl is None:
                raise ExtensionError(
                    f"No implementation registered under name '{name}' for interface '{self._interface.__name__}'. "
                    f"Available: {sorted(self._impls)}"
                )

            cls = impl if isinstance(impl, type) else self._import(name, impl)
            if not issubclass(cls, self._interface):
                raise ExtensionError(f"Class '{cls.__name__}' does not subclass '{self._interface.__name__}'.")

            self._cache[name] = cls
            return cls

    @staticmethod
    def _import(name: str, path: str) -> type:
        try:
            module_name, class_name = path.rsplit(":", 1)
        except ValueError:
            raise ExtensionError(
                f"Implementation path '{path}' for '{name}' is invalid. Expected format 'module.submodule:ClassName'."
            ) from None

        try:
            module = importlib.import_module(module_name)
            cls = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ExtensionError(f"Failed to load implementation from path '{path}'.") from e

        if not isinstance(cls, type):
            raise ExtensionError(f"'{path}' does not name a class.")
        return cls

    def create_instance(self, name: str, *args, **kwargs) -> Any:
        """Load the named implementation and instantiate it with the given arguments."""
        return self.load_class(name)(*args, **kwargs)
