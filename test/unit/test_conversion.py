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

from devmap.core.conversion import (EnumConversion, field_type, resolve_enum)
from devmap.core.exceptions import (
    ConversionError,
    DuplicateNameError,
    DuplicateSentinel,
    DuplicateVariantValue,
    VariantValueOutOfRange,
    )
from devmap.core.model import Field
from devmap.core.raw import (ConversionRef, EnumDefinition, VariantDefinition, VariantRole)
from devmap.core.types import (Access, BaseType, IntegerType)

def make_field(start=0, end=3, base=BaseType.UINT, conversion=None):
    return Field("f", start, end, base, Access.READ_WRITE, conversion=conversion)

def value(name, v=None):
    return VariantDefinition(name, v)

def default(name, v=None):
    return VariantDefinition(name, v, VariantRole.DEFAULT)

def catch_all(name, v=None):
    return VariantDefinition(name, v, VariantRole.CATCH_ALL)

def resolve(*variants, field=None):
    return resolve_enum(EnumDefinition("E", tuple(variants)), field or make_field(), "R")

class TestResolveEnum:
    def test_default_is_infallible(self):
        enum = resolve(value("A", 0), value("B", 5), default("C"))
        assert not enum.is_fallible
        assert enum.default.name == "C"
        assert enum.default.value == 6
        assert enum.lookup(3).name == "C"
        assert enum.lookup(5).name == "B"

    def test_incomplete_is_fallible(self):
        enum = resolve(value("A", 0), value("B", 5))
        assert enum.is_fallible
        assert enum.lookup(3) is None
        assert enum.lookup(0).name == "A"

    def test_complete_is_infallible(self):
        enum = resolve(value("Off"), value("On"), field=make_field(0, 1))
        assert enum.is_complete
        assert not enum.is_fallible

    def test_catch_all(self):
        enum = resolve(value("A"), catch_all("Other"))
        assert not enum.is_fallible
        assert enum.catch_all.value == 1
        assert enum.lookup(7).name == "Other"

    def test_catch_all_wins_over_default(self):
        enum = resolve(value("A"), default("Dflt"), catch_all("Other"))
        assert enum.lookup(7).name == "Other"
        assert enum.lookup(1).name == "Dflt"

    def test_auto_values(self):
        enum = resolve(value("A"), value("B"), value("C", 5), value("D"))
        assert [v.value for v in enum.variants] == [0, 1, 5, 6]

    def test_signed_values(self):
        enum = resolve(value("Neg", -4), value("Pos", 3), field=make_field(base=BaseType.INT))
        assert enum.signed
        assert enum.lookup(-4).name == "Neg"

    @pytest.mark.parametrize("variants", [
        (value("A", 1), value("B", 1)),
        (value("A", 0), value("B"), value("C", 1)),
        (value("A", 1), default("B", 1)),
    ])
    def test_duplicate_value(self, variants):
        with pytest.raises(DuplicateVariantValue):
            resolve(*variants)

    @pytest.mark.parametrize("variants", [
        (default("A"), default("B")),
        (catch_all("A"), value("B"), catch_all("C")),
    ])
    def test_duplicate_sentinel(self, variants):
        with pytest.raises(DuplicateSentinel):
            resolve(*variants)

    @pytest.mark.parametrize(("base", "v"), [
        (BaseType.UINT, 8),
        (BaseType.UINT, -1),
        (BaseType.INT, 4),
        (BaseType.INT, -5),
    ])
    def test_out_of_range(self, base, v):
        with pytest.raises(VariantValueOutOfRange):
            resolve(value("A", v), field=make_field(base=base))

    def test_auto_value_out_of_range(self):
        with pytest.raises(VariantValueOutOfRange):
            resolve(value("A", 7), value("B"))

    def test_python_enum(self):
        enum = resolve(value("fastMode", 2), value("slow-mode"), default("other"))
        py = enum.python_enum()
        assert py.__name__ == "E"
        assert py.FAST_MODE == 2
        assert py.SLOW_MODE == 3
        assert py.OTHER == 4

    def test_python_enum_name_collision(self):
        enum = resolve(value("fastMode"), value("fast_mode"))
        with pytest.raises(DuplicateNameError):
            enum.python_enum()

class TestFieldType:
    def test_bool(self):
        t = field_type(make_field(0, 1, BaseType.BOOL), "R")
        assert t.storage is None
        assert t.name == "bool"
        assert not t.is_fallible

    def test_bool_conversion(self):
        with pytest.raises(ConversionError):
            field_type(make_field(0, 1, BaseType.BOOL, ConversionRef("Foo")), "R")

    @pytest.mark.parametrize(("width", "base", "storage"), [
        (1, BaseType.UINT, IntegerType.U8),
        (9, BaseType.UINT, IntegerType.U16),
        (8, BaseType.INT, IntegerType.I8),
        (33, BaseType.INT, IntegerType.I64),
        (128, BaseType.UINT, IntegerType.U128),
    ])
    def test_storage(self, width, base, storage):
        t = field_type(make_field(0, width, base), "R")
        assert t.storage is storage
        assert t.name == str(storage)

    def test_too_wide(self):
        with pytest.raises(ConversionError):
            field_type(make_field(0, 129), "R")

    def test_external(self):
        assert not field_type(make_field(conversion=ConversionRef("Foo")), "R").is_fallible
        t = field_type(make_field(conversion=ConversionRef("Foo", fallible=True)), "R")
        assert t.is_fallible
        assert t.name == "Foo"

    def test_enum(self):
        definition = EnumDefinition("Mode", (value("A"), value("B")))
        t = field_type(make_field(0, 2, conversion=definition), "R")
        assert isinstance(t.conversion, EnumConversion)
        assert t.name == "Mode"
        assert t.is_fallible
