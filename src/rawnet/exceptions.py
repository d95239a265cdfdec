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
import contextlib
import enum
import errno
import os
from collections.abc import Iterator
from typing import Optional, Union

__all__ = [
    "ErrorKind",
    "NetworkError",
    "SocketError",
    "ResolutionError",
    "ExceptionMapping",
    "map_exceptions",
    "is_transient_accept_error",
    "is_resource_exhaustion",
]

ExceptionMapping = dict[type[Exception], type[Exception]]


@contextlib.contextmanager
def map_exceptions(mapping: ExceptionMapping) -> Iterator[None]:
    """Context manager for translating exceptions to custom exception types.

    Args:
        mapping: Dictionary mapping original exception types to target types.

    Example:
        with map_exceptions({OSError: SocketError}):
            sock.bind(("127.0.0.1", 0))
    """
    try:
        yield
    except Exception as exc:
        for from_exc, to_exc in mapping.items():
            if isinstance(exc, from_exc):
                raise to_exc(exc) from exc
        raise  # Re-raise original exception if no mapping matched


class ErrorKind(enum.Enum):
    """
    Coarse category of an OS-level socket failure.

    Several errno values can map onto the same kind (e.g. ``EAGAIN`` and
    ``EWOULDBLOCK``); anything not listed falls back to :attr:`OTHER`.
    """

    ADDR_IN_USE = "address in use"
    ADDR_NOT_AVAILABLE = "address not available"
    CONNECTION_REFUSED = "connection refused"
    CONNECTION_RESET = "connection reset"
    CONNECTION_ABORTED = "connection aborted"
    NOT_CONNECTED = "not connected"
    BROKEN_PIPE = "broken pipe"
    INTERRUPTED = "interrupted"
    WOULD_BLOCK = "would block"
    PERMISSION_DENIED = "permission denied"
    TIMED_OUT = "timed out"
    BAD_DESCRIPTOR = "bad descriptor"
    INVALID_INPUT = "invalid input"
    OTHER = "other"

    @classmethod
    def from_errno(cls, code: Optional[int]) -> "ErrorKind":
        """
        Map an errno value onto its kind.

        :param code: The errno value, or None when the OS gave none.
        :return: The matching kind.
        """
        if code is None:
            return cls.OTHER
        return _ERRNO_TO_KIND.get(code, cls.OTHER)


_ERRNO_TO_KIND = {
    errno.EADDRINUSE: ErrorKind.ADDR_IN_USE,
    errno.EADDRNOTAVAIL: ErrorKind.ADDR_NOT_AVAILABLE,
    errno.ECONNREFUSED: ErrorKind.CONNECTION_REFUSED,
    errno.ECONNRESET: ErrorKind.CONNECTION_RESET,
    errno.ECONNABORTED: ErrorKind.CONNECTION_ABORTED,
    errno.ENOTCONN: ErrorKind.NOT_CONNECTED,
    errno.EPIPE: ErrorKind.BROKEN_PIPE,
    errno.EINTR: ErrorKind.INTERRUPTED,
    errno.EAGAIN: ErrorKind.WOULD_BLOCK,
    errno.EWOULDBLOCK: ErrorKind.WOULD_BLOCK,
    errno.EACCES: ErrorKind.PERMISSION_DENIED,
    errno.EPERM: ErrorKind.PERMISSION_DENIED,
    errno.ETIMEDOUT: ErrorKind.TIMED_OUT,
    errno.EBADF: ErrorKind.BAD_DESCRIPTOR,
    errno.EINVAL: ErrorKind.INVALID_INPUT,
}

# Errors an accept(2) can report for a single connection while the listener
# itself stays healthy.
_PER_CONNECTION_ACCEPT_ERRORS = frozenset(
    code
    for code in (
        errno.ECONNABORTED,
        errno.ECONNRESET,
        errno.ENOTCONN,
        errno.EPERM,
        getattr(errno, "EPROTO", None),
    )
    if code is not None
)

# Process or system resource limits; accepting again later may succeed.
_RESOURCE_EXHAUSTION_ERRORS = frozenset(
    (errno.EMFILE, errno.ENFILE, errno.ENOBUFS, errno.ENOMEM, errno.EAGAIN, errno.EWOULDBLOCK)
)


# ==== Network Exceptions ====


class NetworkError(Exception):
    """Base class for all rawnet errors."""

    __slots__ = ()

    pass


class SocketError(NetworkError):
    """
    Raised when an OS socket call fails.

    Wraps the errno reported by the OS together with its :class:`ErrorKind`.
    Instances can be built from an :class:`OSError` (which is what
    :func:`map_exceptions` does) or from a bare errno value.
    """

    __slots__ = ("errno", "strerror", "kind")

    def __init__(self, error: Union[OSError, int], message: Optional[str] = None) -> None:
        if isinstance(error, OSError):
            code = error.errno
            strerror = message or error.strerror or str(error)
        else:
            code = error
            strerror = message or os.strerror(error)

        self.errno: Optional[int] = code
        self.strerror: str = strerror
        self.kind: ErrorKind = ErrorKind.from_errno(code)
        super().__init__(f"[Errno {code}] {strerror}" if code is not None else strerror)


class ResolutionError(NetworkError):
    """Raised when an address cannot be parsed or resolves to no usable candidate."""

    __slots__ = ()

    pass


def is_transient_accept_error(error: SocketError) -> bool:
    """
    Tell whether a failed accept only concerns the pending connection.

    Such errors leave the listening socket usable, so the accept loop keeps
    going after logging them.

    :param error: The error raised by an accept attempt.
    :return: True if the listener may accept again.
    """
    return error.errno in _PER_CONNECTION_ACCEPT_ERRORS or is_resource_exhaustion(error)


def is_resource_exhaustion(error: SocketError) -> bool:
    """Tell whether the error reports a descriptor, buffer or memory limit."""
    return error.errno in _RESOURCE_EXHAUSTION_ERRORS
