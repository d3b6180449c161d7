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

import pytest

from devmap.core.builder import build_device
from devmap.core.compiler import compile_device
from devmap.core.config import (GlobalConfig, resolve_config)
from devmap.core.exceptions import (
    DuplicateNameError,
    FieldDefinitionError,
    MissingAddressType,
    MissingByteOrder,
    RefError,
    ValidationError,
    )
from devmap.core.model import (Block, Command, Register)
from devmap.core.raw import (
    RawBlock,
    RawBuffer,
    RawCommand,
    RawDevice,
    RawField,
    RawFieldSet,
    RawInfo,
    RawRef,
    RawRegister,
    RawRepeat,
    )
from devmap.core.types import (Access, BaseType, BitOrder, ByteOrder, IntegerType, ObjectKind)
from devmap.utility.tree import walk

def reg(name, address, size_bits=32, fields=(), access=None, **kwargs):
    return RawRegister(RawInfo(name, access=access), address, RawFieldSet(size_bits, tuple(fields)), **kwargs)

def block(name, objects, offset=0, access=None, **kwargs):
    return RawBlock(RawInfo(name, access=access), offset=offset, objects=tuple(objects), **kwargs)

def ref(name, target, **override):
    return RawRef(RawInfo(name), target, override)

def by_name(device):
    return {obj.name: obj for obj in walk(device.objects)}

@pytest.fixture
def build(config_fragment):
    def _build(*objects, fragment=None):
        fragment = fragment or config_fragment
        return build_device(RawDevice(objects=objects, config=fragment), resolve_config(fragment))
    return _build

@pytest.fixture
def compile_raw(config_fragment):
    def _compile(*objects):
        return compile_device(RawDevice(objects=objects, config=config_fragment))
    return _compile

class TestPlacement:
    def test_repeat_addresses(self, compile_raw):
        compiled = compile_raw(reg("R", 0x20, repeat=RawRepeat(count=3, stride=4)))
        assert compiled["R"].addresses == (0x20, 0x24, 0x28)

    def test_empty_repeat(self, compile_raw):
        compiled = compile_raw(reg("R", 0x20, repeat=RawRepeat(count=0, stride=4)))
        assert compiled["R"].addresses == ()

    def test_negative_repeat(self, build):
        with pytest.raises(ValidationError):
            build(reg("R", 0x20, repeat=RawRepeat(count=-1, stride=4)))

    def test_block_offsets_accumulate(self, build):
        device = build(block("Outer", [block("Inner", [reg("R", 0x4)], offset=0x20)], offset=0x100))
        objs = by_name(device)
        assert objs["Outer"].offset == 0x100
        assert objs["Inner"].offset == 0x120
        assert objs["R"].address == 0x124

    def test_repeated_block(self, compile_raw):
        compiled = compile_raw(block("B", [reg("R", 0x4, repeat=RawRepeat(2, 4))],
                offset=0x100, repeat=RawRepeat(2, 0x10)))
        assert compiled["R"].addresses == (0x104, 0x108, 0x114, 0x118)

class TestDefaults:
    def test_register_access(self, build):
        fragment = GlobalConfig(register_address_type=IntegerType.U32, default_byte_order=ByteOrder.LE,
                default_register_access=Access.READ_ONLY)
        device = build(reg("A", 0), reg("B", 4, access=Access.WRITE_ONLY), fragment=fragment)
        objs = by_name(device)
        assert objs["A"].access is Access.READ_ONLY
        assert objs["B"].access is Access.WRITE_ONLY

    def test_block_access_cascades(self, build):
        device = build(block("B", [
            reg("A", 0),
            reg("C", 4, access=Access.READ_WRITE),
            block("Inner", [reg("D", 8)]),
            ], access=Access.READ_ONLY))
        objs = by_name(device)
        assert objs["A"].access is Access.READ_ONLY
        assert objs["C"].access is Access.READ_WRITE
        assert objs["D"].access is Access.READ_ONLY

    def test_command_and_buffer_access(self, build):
        fragment = GlobalConfig(command_address_type=IntegerType.U8, buffer_address_type=IntegerType.U8,
                default_register_access=Access.READ_ONLY, default_buffer_access=Access.WRITE_ONLY)
        device = build(RawCommand(RawInfo("Cmd"), 1), RawBuffer(RawInfo("Buf"), 2), fragment=fragment)
        objs = by_name(device)
        assert objs["Cmd"].access is Access.READ_WRITE
        assert objs["Buf"].access is Access.WRITE_ONLY

    def test_field_access(self, build):
        fragment = GlobalConfig(register_address_type=IntegerType.U8, default_field_access=Access.READ_ONLY)
        device = build(reg("R", 0, 8, [RawField("a", 0, 4), RawField("b", 4, 8, access=Access.READ_WRITE)]),
                fragment=fragment)
        fs = by_name(device)["R"].field_set
        assert fs["a"].access is Access.READ_ONLY
        assert fs["b"].access is Access.READ_WRITE

    def test_orders(self, build):
        fragment = GlobalConfig(register_address_type=IntegerType.U8, default_byte_order=ByteOrder.BE,
                default_bit_order=BitOrder.MSB0)
        device = build(reg("A", 0, 16), reg("B", 2, 16, byte_order=ByteOrder.LE, bit_order=BitOrder.LSB0),
                fragment=fragment)
        objs = by_name(device)
        assert (objs["A"].byte_order, objs["A"].bit_order) == (ByteOrder.BE, BitOrder.MSB0)
        assert (objs["B"].byte_order, objs["B"].bit_order) == (ByteOrder.LE, BitOrder.LSB0)

    def test_missing_byte_order(self, build):
        fragment = GlobalConfig(register_address_type=IntegerType.U8)
        assert by_name(build(reg("A", 0, 8), fragment=fragment))["A"].byte_order is None
        with pytest.raises(MissingByteOrder):
            build(reg("A", 0, 16), fragment=fragment)

    def test_missing_address_type(self, build):
        fragment = GlobalConfig(buffer_address_type=IntegerType.U8)
        # Only kinds that are used need an address type.
        build(RawBuffer(RawInfo("Buf"), 2), fragment=fragment)
        with pytest.raises(MissingAddressType) as excinfo:
            build(RawBuffer(RawInfo("Buf"), 2), RawCommand(RawInfo("Cmd"), 1), fragment=fragment)
        assert excinfo.value.kind is ObjectKind.COMMAND

class TestFields:
    def test_bool_without_end(self, build):
        device = build(reg("R", 0, 8, [RawField("flag", 3, base=BaseType.BOOL)]))
        f = by_name(device)["R"].field_set["flag"]
        assert (f.start, f.end) == (3, 4)

    @pytest.mark.parametrize("field", [
        RawField("a", 0),
        RawField("a", 4, 4),
        RawField("a", 5, 2),
        RawField("a", -1, 2),
        RawField("a", 0, 2, base=BaseType.BOOL),
    ])
    def test_invalid_field(self, build, field):
        with pytest.raises(FieldDefinitionError):
            build(reg("R", 0, 8, [field]))

    def test_duplicate_field(self, build):
        with pytest.raises(DuplicateNameError):
            build(reg("R", 0, 8, [RawField("a", 0, 1), RawField("a", 1, 2)]))

    def test_negative_size(self, build):
        with pytest.raises(FieldDefinitionError):
            build(reg("R", 0, -8))

    def test_duplicate_object_names(self, build):
        with pytest.raises(DuplicateNameError):
            build(reg("R", 0), block("B", [reg("R", 4)]))

class TestRefs:
    @pytest.fixture
    def target(self):
        return reg("A", 0x10, 16, [RawField("x", 0, 4), RawField("y", 8, 16, base=BaseType.INT)],
                byte_order=ByteOrder.BE, bit_order=BitOrder.MSB0, reset_value=0x1234)

    def test_address_override(self, build, target):
        objs = by_name(build(target, ref("B", "A", address=0x20)))
        a, b = objs["A"], objs["B"]
        assert isinstance(b, Register)
        assert b.address == 0x20
        assert b.size_bits == a.size_bits == 16
        assert b.field_set == a.field_set
        assert (b.byte_order, b.bit_order) == (a.byte_order, a.bit_order)
        assert b.reset_value == 0x1234
        assert b.info.ref_target == "A"

    def test_overrides(self, build, target):
        b = by_name(build(target, ref("B", "A", address=0x20, access=Access.READ_ONLY,
                reset_value=0, repeat=RawRepeat(2, 2), description="copy")))["B"]
        assert b.access is Access.READ_ONLY
        assert b.reset_value == 0
        assert b.repeat.count == 2
        assert b.info.description == "copy"

    @pytest.mark.parametrize("key", ["size_bits", "fields", "byte_order", "bit_order", "allow_bit_overlap"])
    def test_field_set_override(self, build, target, key):
        with pytest.raises(RefError, match=key):
            build(target, ref("B", "A", **{key: 8}))

    def test_override_not_allowed_for_kind(self, build, target):
        with pytest.raises(RefError, match="offset"):
            build(target, ref("B", "A", offset=4))

    def test_ref_before_target(self, build, target):
        with pytest.raises(RefError, match="ref defined before its target 'A'"):
            build(ref("B", "A", address=0x30), target)

    def test_ref_before_block_target(self, build, target):
        with pytest.raises(RefError, match="before its target"):
            build(ref("Blk2", "Blk", offset=0x200), block("Blk", [target], offset=0x100))

    def test_ref_inside_block(self, build, target):
        objs = by_name(build(target, block("Blk", [ref("B", "A")], offset=0x100)))
        assert objs["B"].address == 0x110

    def test_unknown_target(self, build):
        with pytest.raises(RefError, match="unknown ref target 'Nope'"):
            build(ref("B", "Nope"))

    def test_ref_to_ref(self, build, target):
        with pytest.raises(RefError):
            build(target, ref("B", "A", address=0x20), ref("C", "B", address=0x30))

    def test_ref_to_buffer(self, build):
        with pytest.raises(RefError):
            build(RawBuffer(RawInfo("Buf"), 0), ref("B", "Buf"))

    def test_ref_to_enclosing_block(self, build):
        with pytest.raises(RefError):
            build(block("Outer", [reg("R", 0), ref("Copy", "Outer")]))

    def test_command_ref(self, build):
        cmd = RawCommand(RawInfo("Cmd"), 1, field_set_in=RawFieldSet(8, (RawField("a", 0, 8),)))
        objs = by_name(build(cmd, ref("Cmd2", "Cmd", address=2)))
        assert isinstance(objs["Cmd2"], Command)
        assert objs["Cmd2"].field_set_in == objs["Cmd"].field_set_in
        assert objs["Cmd2"].address == 2

    def test_block_ref(self, compile_raw):
        compiled = compile_raw(
            block("Chan", [reg("Cfg", 0x0), reg("Status", 0x4)], offset=0x100),
            ref("Chan2", "Chan", offset=0x200),
            )
        assert compiled["Cfg"].addresses == (0x100,)
        assert compiled["Chan2.Cfg"].addresses == (0x200,)
        assert compiled["Chan2.Status"].addresses == (0x204,)
        chan2 = compiled.device.objects[1]
        assert isinstance(chan2, Block)
        assert chan2.info.ref_target == "Chan"
