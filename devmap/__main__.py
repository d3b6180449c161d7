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
import sys
from typing import (List, Optional)

from . import __version__
from .core import exceptions
from .subcommands.base import SubcommandBase
from .subcommands.check_cmd import CheckSubcommand
from .subcommands.dump_cmd import DumpSubcommand

LOG = logging.getLogger("devmap.tool")

## @brief Default log format for all subcommands.
LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

class DevmapTool(SubcommandBase):
    """@brief Main class for the devmap command line tool and subcommands."""

    HELP = "Compile and inspect register, command and buffer descriptions of devices."

    SUBCOMMANDS = [
        CheckSubcommand,
        DumpSubcommand,
        ]

    def __init__(self) -> None:
        """@brief Constructor."""
        super().__init__(argparse.Namespace())
        self._parser = self.build_parser()

    def build_parser(self) -> argparse.ArgumentParser:
        """@brief Construct the command line parser with all subcommands and options."""
        parser = argparse.ArgumentParser(prog="devmap", description=self.HELP)
        parser.add_argument('-V', '--version', action='version', version=__version__)
        self.add_subcommands(parser)
        return parser

    def _setup_logging(self) -> None:
        """@brief Configure the logging module.

        The subcommand's default log level is raised or lowered one step per -q or -v.
        """
        level_offset = (self._args.verbose - self._args.quiet) * 10
        level = max(logging.DEBUG,
                min(logging.CRITICAL, self._args.command_class.DEFAULT_LOG_LEVEL - level_offset))
        logging.basicConfig(level=level, format=LOG_FORMAT)

    def invoke(self) -> int:
        """@brief Run the selected subcommand."""
        cmd = self._args.command_class(self._args)
        return cmd.invoke()

    def run(self, args: Optional[List[str]] = None) -> int:
        """@brief Main entry point for command line processing.
        @return Process status: 0 on success, 1 on a device description error, 2 if the manifest
            can't be read.
        """
        self._args = self._parser.parse_args(args)
        if 'command_class' not in self._args:
            self._parser.print_help()
            return 1

        self._setup_logging()
        show_traceback = self._args.verbose > 0
        try:
            return self.invoke()
        except KeyboardInterrupt:
            return 0
        except exceptions.Error as err:
            LOG.error("%s", err, exc_info=show_traceback)
            return 1
        except OSError as err:
            LOG.error("cannot read %s: %s", self._args.manifest, err.strerror or err, exc_info=show_traceback)
            return 2

def main() -> None:
    sys.exit(DevmapTool().run())

if __name__ == '__main__':
    main()
