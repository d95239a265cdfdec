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
import enum
import os
from dataclasses import dataclass
from typing import Optional, Union

from rawnet.common import constants

__all__ = ["RawnetLogger", "LoggerLevel", "ConsoleOptions", "FileOptions"]


class LoggerLevel(enum.IntEnum):
    """
    Severity of a log record.

    :cvar DEBUG: Per-call detail such as individual bind attempts.
    :cvar INFO: Lifecycle events: listening, shutting down.
    :cvar WARNING: Recoverable failures, e.g. a retried accept.
    :cvar ERROR: A connection handler failed.
    :cvar CRITICAL: The listener failed and the server loop stopped.
    """

    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5


@dataclass
class ConsoleOptions:
    """
    Configuration options for console-based logging.
    """

    level: LoggerLevel = LoggerLevel.INFO
    log_format: Optional[str] = None
    date_format: Optional[str] = None
    colorize: bool = False  # Whether to use colorized output


@dataclass
class FileOptions:
    """
    Configuration options for file-based logging.

    ``rotation`` is either a size in bytes or a time specification
    ("midnight", "H" for stdlib logging; "1 day", "500 MB" for loguru).
    ``retention`` is a backup count, or a loguru duration string.
    """

    enable: bool
    path: str = os.path.join(os.getcwd(), f"{constants.RAWNET}.log")
    level: LoggerLevel = LoggerLevel.INFO
    log_format: Optional[str] = None
    date_format: Optional[str] = None
    rotation: Optional[Union[int, str]] = None
    retention: Optional[Union[int, str]] = None


class RawnetLogger(abc.ABC):
    """
    Abstract base class for the loggers rawnet writes to.

    Subclasses merge the user's options with their own defaults, then
    configure the underlying logging library.
    """

    _console_options: ConsoleOptions
    _file_options: FileOptions

    def __init__(self, console_options: Optional[ConsoleOptions] = None, file_options: Optional[FileOptions] = None):
        """
        Initialize the logger with console and file options.

        :param console_options: Options for console logging.
        :type console_options: ConsoleOptions
        :param file_options: Options for file logging.
        :type file_options: FileOptions
        """
        self._console_options = self._merge_console_options(console_options)
        self._file_options = self._merge_file_options(file_options)

    @property
    def console_options(self) -> ConsoleOptions:
        return self._console_options

    @property
    def file_options(self) -> FileOptions:
        return self._file_options

    @abc.abstractmethod
    def _merge_console_options(self, custom: Optional[ConsoleOptions]) -> ConsoleOptions:
        """
        Merge default console options with custom options.

        :param custom: Options for console logging.
        :return: Merged console options.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def _merge_file_options(self, custom: Optional[FileOptions]) -> FileOptions:
        """
        Merge default file options with custom options.

        :param custom: Options for file logging.
        :return: Merged file options.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def log(self, level: LoggerLevel, msg: str, *args, **kwargs):
        """
        Log a message with the specified severity level.

        :param level: The severity level of the message.
        :param msg: The log message.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def debug(self, msg: str, *args, **kwargs):
        raise NotImplementedError()

    @abc.abstractmethod
    def info(self, msg: str, *args, **kwargs):
        raise NotImplementedError()

    @abc.abstractmethod
    def warning(self, msg: str, *args, **kwargs):
        raise NotImplementedError()

    @abc.abstractmethod
    def error(self, msg: str, *args, **kwargs):
        raise NotImplementedError()

    @abc.abstractmethod
    def critical(self, msg: str, *args, **kwargs):
        raise NotImplementedError()

    @abc.abstractmethod
    def exception(self, msg: str, *args, **kwargs):
        """
        Log an ERROR level message with the current exception's traceback.

        Only meaningful inside an ``except`` block.

        :param msg: The error message.
        """
        raise NotImplementedError()
