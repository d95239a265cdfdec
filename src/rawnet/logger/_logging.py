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
import logging
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional

from rawnet.common import constants

from ._base import ConsoleOptions, FileOptions, LoggerLevel, RawnetLogger

__all__ = ["LoggingLogger"]


_RAWNET_TO_LOGGING = {
    LoggerLevel.DEBUG: logging.DEBUG,
    LoggerLevel.INFO: logging.INFO,
    LoggerLevel.WARNING: logging.WARNING,
    LoggerLevel.ERROR: logging.ERROR,
    LoggerLevel.CRITICAL: logging.CRITICAL,
}

_DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(module)s:%(lineno)d | %(message)s"
_DEFAULT_COLOR_LOG_FORMAT = (
    "%(green)s%(asctime)s "
    "%(red)s| "
    "%(log_color)s%(levelname)s "
    "%(red)s| "
    "%(blue)s%(threadName)s "
    "%(red)s| "
    "%(cyan)s%(module)s:%(lineno)d "
    "%(red)s- "
    "%(log_color)s%(message)s%(reset)s"
)

_DEFAULT_LOG_COLORS = {
    "DEBUG": "blue",
    "INFO": "white",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


_DEFAULT_CONSOLE_OPTIONS = ConsoleOptions(
    level=LoggerLevel.INFO, log_format=_DEFAULT_LOG_FORMAT, date_format=_DEFAULT_DATE_FORMAT, colorize=False
)

_DEFAULT_FILE_OPTIONS = FileOptions(
    enable=False,
    log_format=_DEFAULT_LOG_FORMAT,
    date_format=_DEFAULT_DATE_FORMAT,
)


class LoggingLogger(RawnetLogger):
    """
    Logger backed by the stdlib ``logging`` module (logger name ``rawnet``).

    Console output can be colorized through ``colorlog``; file output supports
    size-based or time-based rotation.
    """

    __slots__ = ("_console_options", "_file_options", "_instance")

    _instance: logging.Logger

    def __init__(self, console_options: Optional[ConsoleOptions] = None, file_options: Optional[FileOptions] = None):
        super().__init__(console_options, file_options)
        self._initialize()

    @property
    def instance(self) -> logging.Logger:
        """The underlying ``logging.Logger``."""
        return self._instance

    def _merge_console_options(self, custom: Optional[ConsoleOptions]) -> ConsoleOptions:
        if not custom:
            return _DEFAULT_CONSOLE_OPTIONS

        default_log_format = _DEFAULT_COLOR_LOG_FORMAT if custom.colorize else _DEFAULT_LOG_FORMAT

        return ConsoleOptions(
            level=custom.level or _DEFAULT_CONSOLE_OPTIONS.level,
            log_format=custom.log_format or default_log_format,
            date_format=custom.date_format or _DEFAULT_CONSOLE_OPTIONS.date_format,
            colorize=custom.colorize,
        )

    def _merge_file_options(self, custom: Optional[FileOptions]) -> FileOptions:
        if not custom:
            return _DEFAULT_FILE_OPTIONS

        return FileOptions(
            enable=custom.enable,
            path=custom.path or _DEFAULT_FILE_OPTIONS.path,
            level=custom.level or _DEFAULT_FILE_OPTIONS.level,
            log_format=custom.log_format or _DEFAULT_FILE_OPTIONS.log_format,
            date_format=custom.date_format or _DEFAULT_FILE_OPTIONS.date_format,
            rotation=custom.rotation if custom.rotation is not None else _DEFAULT_FILE_OPTIONS.rotation,
            retention=custom.retention if custom.retention is not None else _DEFAULT_FILE_OPTIONS.retention,
        )

    def _initialize(self) -> None:
        self._instance = logging.getLogger(constants.RAWNET)

        # The logger itself must let through whatever any handler wants
        min_level = min(self._console_options.level, self._file_options.level)
        if not self._file_options.enable:
            min_level = self._console_options.level
        self._instance.setLevel(_RAWNET_TO_LOGGING[min_level])

        # Re-initialization must not stack handlers
        for handler in self._instance.handlers[:]:
            self._instance.removeHandler(handler)
            handler.close()

        if self._console_options.colorize:
            self._set_color_console_handler()
        else:
            self._set_console_handler()

        if self._file_options.enable:
            self._set_file_handler()

    def _set_console_handler(self) -> None:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(_RAWNET_TO_LOGGING[self._console_options.level])
        formatter = logging.Formatter(fmt=self._console_options.log_format, datefmt=self._console_options.date_format)
        console_handler.setFormatter(formatter)
        self._instance.addHandler(console_handler)

    def _set_color_console_handler(self) -> None:
        import colorlog

        console_handler = colorlog.StreamHandler()
        console_handler.setLevel(_RAWNET_TO_LOGGING[self._console_options.level])

        formatter = colorlog.ColoredFormatter(
            fmt=self._console_options.log_format,
            datefmt=self._console_options.date_format,
            log_colors=_DEFAULT_LOG_COLORS,
            reset=True,
            style="%",
        )
        console_handler.setFormatter(formatter)
        self._instance.addHandler(console_handler)

    def _set_file_handler(self) -> None:
        """
        Attach a file handler.

        An int rotation selects size-based rotation, a str selects time-based
        rotation ("midnight", "H", ...), and None writes to a single file.
        """
        handler: logging.Handler
        if isinstance(self._file_options.rotation, int):
            handler = RotatingFileHandler(
                filename=self._file_options.path,
                maxBytes=self._file_options.rotation,
                backupCount=int(self._file_options.retention or 0),
                encoding=constants.UTF_8,
            )
        elif isinstance(self._file_options.rotation, str):
            handler = TimedRotatingFileHandler(
                filename=self._file_options.path,
                when=self._file_options.rotation,
                interval=1,
                backupCount=int(self._file_options.retention or 0),
                encoding=constants.UTF_8,
            )
        else:
            handler = logging.FileHandler(filename=self._file_options.path, encoding=constants.UTF_8)

        handler.setLevel(_RAWNET_TO_LOGGING[self._file_options.level])
        formatter = logging.Formatter(
            fmt=self._file_options.log_format,
            datefmt=self._file_options.date_format,
        )
        handler.setFormatter(formatter)

        self._instance.addHandler(handler)

    def log(self, level: LoggerLevel, msg: str, *args, **kwargs):
        kwargs["stacklevel"] = kwargs.pop("stacklevel", 0) + 2
        self._instance.log(_RAWNET_TO_LOGGING[level], msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        kwargs["stacklevel"] = kwargs.pop("stacklevel", 0) + 2
        self._instance.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        kwargs["stacklevel"] = kwargs.pop("stacklevel", 0) + 2
        self._instance.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        kwargs["stacklevel"] = kwargs.pop("stacklevel", 0) + 2
        self._instance.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        kwargs["stacklevel"] = kwargs.pop("stacklevel", 0) + 2
        self._instance.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args, **kwargs):
        kwargs["stacklevel"] = kwargs.pop("stacklevel", 0) + 2
        self._instance.critical(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs["stacklevel"] = kwargs.pop("stacklevel", 0) + 2
        self._instance.exception(msg, *args, **kwargs)
