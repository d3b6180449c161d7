# devmap
# Copyright (c) 2026 devmap authors
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
import pytest
from unittest.mock import MagicMock

from devmap.core.config import (GlobalConfig, resolve_config)
from devmap.core.types import (ByteOrder, IntegerType)
from devmap.driver import DeviceInterface

@pytest.fixture(scope='function')
def config_fragment():
    """@brief Config with every address type set and little endian default byte order."""
    return GlobalConfig(
            register_address_type=IntegerType.U32,
            command_address_type=IntegerType.U16,
            buffer_address_type=IntegerType.U8,
            default_byte_order=ByteOrder.LE,
            )

@pytest.fixture(scope='function')
def config(config_fragment):
    return resolve_config(config_fragment)

@pytest.fixture(scope='function')
def interface():
    return MagicMock(spec=DeviceInterface)

@pytest.fixture(autouse=True)
def debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="devmap")
