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
from rawnet.common.types import StrOrBytes

__all__ = ["to_bytes", "to_writable_buffer"]


def to_bytes(data: StrOrBytes, encoding: str = constants.UTF_8) -> bytes:
    """Convert text or a bytes-like object to bytes.

    Args:
        data: Value to convert (str, bytes, bytearray, or memoryview).
        encoding: Encoding used for str input. Defaults to UTF-8.

    Returns:
        The bytes value; bytes input is returned unchanged.

    Raises:
        TypeError: If the input type is not supported.
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode(encoding)
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)

    raise TypeError(f"Expected str, bytes, bytearray, or memoryview, got {type(data).__name__}")


def to_writable_buffer(buf) -> memoryview:
    """Return a flat, writable byte view over ``buf`` for recv_into.

    Args:
        buf: A bytearray, writable memoryview or other writable buffer.

    Returns:
        A one-dimensional unsigned-byte memoryview of ``buf``.

    Raises:
        TypeError: If ``buf`` does not expose a writable buffer.
    """
    try:
        view = memoryview(buf)
    except TypeError:
        raise TypeError(f"Expected a writable buffer, got {type(buf).__name__}") from None

    if view.readonly:
        raise TypeError(f"Expected a writable buffer, got read-only {type(buf).__name__}")
    return view.cast("B")
