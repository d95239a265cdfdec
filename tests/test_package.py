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

import pytest

import rawnet


class TestPackage:
    """
    Tests for the public package surface.
    """

    def test_version(self):
        assert rawnet.__version__ == "0.1.0"

    @pytest.mark.parametrize("name", rawnet.__all__)
    def test_public_names_resolve(self, name):
        assert getattr(rawnet, name) is not None

    @pytest.mark.parametrize(
        "module",
        ["rawnet.net._socket", "rawnet.net._stream", "rawnet.net._listener", "rawnet.net._dispatch", "rawnet.net._server"],
    )
    def test_modules_import(self, module):
        assert importlib.import_module(module)
