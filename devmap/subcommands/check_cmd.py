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

import argparse
import logging
from typing import List

from .base import SubcommandBase

LOG = logging.getLogger(__name__)

class CheckSubcommand(SubcommandBase):
    """@brief `devmap check` subcommand."""

    NAMES = ['check']
    HELP = "Compile a device description and report the first error."
    DEFAULT_LOG_LEVEL = logging.WARNING

    @classmethod
    def get_args(cls) -> List[argparse.ArgumentParser]:
        """@brief Add this subcommand to the subparsers object."""
        return [cls.CommonOptions.COMMON, cls.CommonOptions.MANIFEST]

    def invoke(self) -> int:
        """@brief Handle 'check' subcommand."""
        compiled = self._compile_manifest()
        LOG.debug("compiled %d containers", len(compiled.containers))
        print(f"{self._args.manifest}: OK ({len(compiled.containers)} objects, {len(compiled.enums)} enums)")
        return 0
