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

RAWNET = "rawnet"

UTF_8 = "utf-8"
US_ASCII = "ascii"

# Pending-connection queue depth used by TcpListener.bind.
DEFAULT_BACKLOG = 128

# Largest single recv issued by TcpStream.recv.
DEFAULT_MAX_BYTES = 2**16 - 1

DEFAULT_MAX_WORKERS = 10

# Accept retry back-off for resource exhaustion (seconds).
ACCEPT_RETRY_MIN_DELAY = 0.005
ACCEPT_RETRY_MAX_DELAY = 1.0

SEQUENTIAL_DISPATCHER = "sequential"
THREADED_DISPATCHER = "threaded"
