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
from typing import Optional

from ._base import ConsoleOptions, FileOptions, LoggerLevel, RawnetLogger

__all__ = ["get_instance", "set_instance", "LoggerLevel", "ConsoleOptions", "FileOptions", "RawnetLogger"]

_instance: Optional[RawnetLogger] = None
_instance_lock = threading.RLock()


def get_instance() -> RawnetLogger:
    """
    Get the process-wide logger, creating the stdlib-logging backend on first use.

    Uses double-checked locking so concurrent first calls build one instance.

    :return: The current logger instance.
    :rtype: RawnetLogger
    """
    global _instance
    if _instance is not None:
        return _instance

    with _instance_lock:
        if _instance is None:
            # Lazy import to avoid circular dependency
            from ._logging import LoggingLogger

            _instance = LoggingLogger()

        return _instance


def set_instance(logger: RawnetLogger) -> None:
    """
    Replace the process-wide logger.

    :param logger: The new logger instance to set.
    :type logger: RawnetLogger
    :raises TypeError: If ``logger`` is not a RawnetLogger.
    """
    if not isinstance(logger, RawnetLogger):
        raise TypeError("Logger must be an instance of RawnetLogger")

    global _instance
    with _instance_lock:
        _instance = logger
