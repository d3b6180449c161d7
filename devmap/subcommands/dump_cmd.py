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
from ..core.compiler import (ContainerInfo, FieldSetInfo)
from ..core.conversion import EnumConversion
from ..core.model import (Command, Register)
from ..utility.tree import dump_to_str

LOG = logging.getLogger(__name__)

def _addresses(info: ContainerInfo) -> str:
    addrs = info.addresses
    if len(addrs) > 4:
        return f"{addrs[0]:#x}, {addrs[1]:#x} .. {addrs[-1]:#x} ({len(addrs)})"
    return ", ".join(f"{a:#x}" for a in addrs)

def _size(info: ContainerInfo) -> str:
    obj = info.obj
    if isinstance(obj, Register):
        return str(obj.size_bits)
    elif isinstance(obj, Command):
        return f"{obj.size_bits_in}/{obj.size_bits_out}"
    return "-"

def _conversion_kind(conv: object) -> str:
    if conv is None:
        return "-"
    elif isinstance(conv, EnumConversion):
        return "enum"
    return "external"

def _order(info: ContainerInfo) -> str:
    obj = info.obj
    if isinstance(obj, (Register, Command)):
        byte_order = obj.byte_order.value if obj.byte_order is not None else "-"
        return f"{byte_order}/{obj.bit_order.value}"
    return "-"

class DumpSubcommand(SubcommandBase):
    """@brief `devmap dump` subcommand."""

    NAMES = ['dump']
    HELP = "Print the objects of a compiled device description."
    DEFAULT_LOG_LEVEL = logging.WARNING

    @classmethod
    def get_args(cls) -> List[argparse.ArgumentParser]:
        """@brief Add this subcommand to the subparsers object."""
        parser = argparse.ArgumentParser(description=cls.HELP, add_help=False)

        group = parser.add_argument_group("dump options")
        group.add_argument('-f', '--fields', action='store_true',
            help="Also print the fields of every field set.")
        group.add_argument('-H', '--no-header', action='store_true',
            help="Don't print table headers.")
        group.add_argument('-t', '--tree', action='store_true',
            help="Print the resolved object tree instead of the container table.")

        return [cls.CommonOptions.COMMON, cls.CommonOptions.MANIFEST, parser]

    def invoke(self) -> int:
        """@brief Handle 'dump' subcommand."""
        compiled = self._compile_manifest()

        if self._args.tree:
            print(dump_to_str(compiled.device.objects), end="")
            return 0

        pt = self._get_pretty_table(["Name", "Kind", "Address", "Size", "Order", "Access", "Capabilities"])
        for path, info in compiled.containers.items():
            pt.add_row([
                path,
                info.obj.kind.value,
                _addresses(info),
                _size(info),
                _order(info),
                info.obj.access.value,
                info.capabilities.describe(),
                ])
        print(pt)

        LOG.debug("dumping %d containers", len(compiled.containers))
        if self._args.fields:
            for path, info in compiled.containers.items():
                if isinstance(info.obj, Command):
                    named = [("in", info.field_set_in), ("out", info.field_set_out)]
                else:
                    named = [("", info.field_set)]
                for direction, fs in named:
                    if fs is not None:
                        print()
                        print(f"{path} {direction}".rstrip() + f" ({fs.field_set.size_bits} bits):")
                        print(self._field_table(fs))
        return 0

    def _field_table(self, fs: FieldSetInfo) -> str:
        pt = self._get_pretty_table(["Field", "Bits", "Base", "Type", "Access", "Conversion", "Fallible"])
        for f in fs:
            conv = f.type.conversion
            pt.add_row([
                f.name,
                f"{f.field.start}..{f.field.end}",
                f.field.base.value,
                f.type.name,
                f.field.access.value,
                _conversion_kind(conv),
                "yes" if f.type.is_fallible else "no",
                ])
        return pt.get_string()
