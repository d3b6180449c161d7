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
import prettytable
from typing import (Any, List, Optional, Sequence, Type)

from ..core.compiler import (CompiledDevice, compile_device)
from ..manifest import load_manifest

LOG = logging.getLogger(__name__)

class SubcommandBase:
    """@brief Base class for devmap command line subcommand."""

    ## List of subcommand names.
    NAMES: List[str] = []

    ## Help string for subcommand.
    HELP: str = ""

    ## Epilog string for subcommand.
    EPILOG: Optional[str] = None

    ## Default log level for the subcommand.
    DEFAULT_LOG_LEVEL = logging.INFO

    ## Subcommands of this subcommand, if any.
    SUBCOMMANDS: List[Type["SubcommandBase"]] = []

    class CommonOptions:
        """@brief Namespace with parsers for repeated option groups."""

        # Define logging related options.
        LOGGING = argparse.ArgumentParser(description='logging', add_help=False)
        LOGGING_GROUP = LOGGING.add_argument_group("logging")
        LOGGING_GROUP.add_argument('-v', '--verbose', action='count', default=0,
            help="More logging. Can be specified multiple times.")
        LOGGING_GROUP.add_argument('-q', '--quiet', action='count', default=0,
            help="Less logging. Can be specified multiple times.")

        # Common options for all subcommands, including logging options.
        COMMON = argparse.ArgumentParser(description='common', parents=[LOGGING], add_help=False)

        # Options for subcommands that operate on a manifest.
        MANIFEST = argparse.ArgumentParser(description='manifest', add_help=False)
        MANIFEST.add_argument("manifest", metavar="MANIFEST",
            help="Device description to load (.yaml, .yml or .json).")

    @classmethod
    def add_subcommands(cls, parser: argparse.ArgumentParser) -> None:
        """@brief Add declared subcommands to the given parser."""
        if cls.SUBCOMMANDS:
            subparsers = parser.add_subparsers(title="subcommands", metavar="", dest='cmd')
            for subcmd_class in cls.SUBCOMMANDS:
                parsers = subcmd_class.get_args()
                subcmd_class.customize_subparser(subparsers, parsers)

    @classmethod
    def get_args(cls) -> List[argparse.ArgumentParser]:
        """@brief Add this subcommand to the subparsers object.
        @return List of argument parsers. The last element in the list _must_ be the parser for the
            subcommand class itself, as it is modified by setting the subcommand class as its handler.
        """
        raise NotImplementedError()

    @classmethod
    def customize_subparser(cls,
            subparsers: Any,
            parsers: Sequence[argparse.ArgumentParser]
        ) -> None:
        """@brief Create and configure the subparser for this subcommand."""
        parser = subparsers.add_parser(
                cls.NAMES[0],
                aliases=cls.NAMES[1:],
                help=cls.HELP,
                description=cls.HELP,
                epilog=cls.EPILOG,
                parents=parsers,
                formatter_class=argparse.RawDescriptionHelpFormatter,
                )
        parser.set_defaults(command_class=cls)

    def __init__(self, args: argparse.Namespace) -> None:
        """@brief Constructor.
        @param self This object.
        @param args Namespace of parsed argument values.
        """
        self._args = args

    def invoke(self) -> int:
        """@brief Run the subcommand.
        @return Process status code for the command.
        """
        raise NotImplementedError()

    def _compile_manifest(self) -> CompiledDevice:
        """@brief Load and compile the manifest named on the command line.
        @exception ManifestError The manifest couldn't be read or parsed.
        @exception devmap.core.exceptions.Error The device failed to compile.
        """
        LOG.debug("loading manifest %s", self._args.manifest)
        raw = load_manifest(self._args.manifest)
        return compile_device(raw)

    def _get_pretty_table(self, fields: List[str], header: Optional[bool] = None) -> prettytable.PrettyTable:
        """@brief Returns a PrettyTable object with formatting options set."""
        pt = prettytable.PrettyTable(fields)
        pt.align = 'l'
        if header is not None:
            pt.header = header
        elif hasattr(self._args, 'no_header'):
            pt.header = not self._args.no_header
        else:
            pt.header = True
        pt.border = True
        pt.hrules = prettytable.HEADER
        pt.vrules = prettytable.NONE
        return pt
