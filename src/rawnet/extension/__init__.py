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

from ._loader import ExtensionLoader
from ._manager import ExtensionManager as _ExtensionManager
from .exceptions import ExtensionError

__all__ = ["ExtensionLoader", "ExtensionError", "extension_manager"]


def _load_extensions() -> _ExtensionManager:
    """
    Build the extension manager from every registry declared in ``_internal``.
    """
    from ._internal import get_all_registries

    loaders = {
        registry.interface: ExtensionLoader(registry.interface, dict(registry.impls))
        for registry in get_all_registries()
    }
    return _ExtensionManager(loaders)


extension_manager = _load_extensions()
