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

from dataclasses import dataclass
from typing import Union

from rawnet.common import constants
from rawnet.logger import RawnetLogger
from rawnet.net._dispatch import Dispatcher


@dataclass(frozen=True)
class ExtensionRegistry:
    """Named implementations of one interface.

    Args:
        interface: The abstract base class the implementations extend.
        impls: Implementation names mapped to either ``module:Class`` paths
            (imported on first use) or the classes themselves.
    """

    interface: type
    impls: dict[str, Union[str, type]]


dispatcherRegistry = ExtensionRegistry(
    interface=Dispatcher,
    impls={
        constants.SEQUENTIAL_DISPATCHER: "rawnet.net._dispatch:SequentialDispatcher",
        constants.THREADED_DISPATCHER: "rawnet.net._dispatch:ThreadPoolDispatcher",
    },
)

loggerRegistry = ExtensionRegistry(
    interface=RawnetLogger,
    impls={
        "logging": "rawnet.logger._logging:LoggingLogger",
        "loguru": "rawnet.logger._loguru:LoguruLogger",
    },
)


def get_all_registries() -> list[ExtensionRegistry]:
    """Collect every ExtensionRegistry declared at module level."""
    return [obj for obj in globals().values() if isinstance(obj, ExtensionRegistry)]
