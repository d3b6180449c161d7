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

from devmap.core.codec import (BitLayout, FieldCodec, reset_bytes)
from devmap.core.exceptions import (InternalError, ResetValueError)
from devmap.core.model import (Field, FieldSet, ObjectInfo, Register)
from devmap.core.types import (Access, BaseType, BitOrder, ByteOrder, value_range)

LE, BE = ByteOrder.LE, ByteOrder.BE
LSB0, MSB0 = BitOrder.LSB0, BitOrder.MSB0

ALL_ORDERS = [(LE, LSB0), (LE, MSB0), (BE, LSB0), (BE, MSB0)]

def make_register(size_bits, reset_value, byte_order=LE, bit_order=LSB0):
    return Register(
            info=ObjectInfo("R"),
            address=0,
            access=Access.READ_WRITE,
            field_set=FieldSet(size_bits, ()),
            bit_order=bit_order,
            byte_order=byte_order,
            reset_value=reset_value,
            )

class TestBitLayout:
    @pytest.mark.parametrize(("byte_order", "bit_order", "bit0", "bit10"), [
        (LE, LSB0, [0x01, 0x00], [0x00, 0x04]),
        (LE, MSB0, [0x80, 0x00], [0x00, 0x20]),
        (BE, LSB0, [0x00, 0x01], [0x04, 0x00]),
        (BE, MSB0, [0x00, 0x80], [0x20, 0x00]),
    ])
    def test_single_bit(self, byte_order, bit_order, bit0, bit10):
        layout = BitLayout(16, byte_order, bit_order)
        assert layout.int_to_bytes(1 << 0) == bytes(bit0)
        assert layout.int_to_bytes(1 << 10) == bytes(bit10)

        data = bytearray(2)
        FieldCodec(layout, 0, 1, BaseType.BOOL).write(data, True)
        assert data == bytes(bit0)
        data = bytearray(2)
        FieldCodec(layout, 10, 11, BaseType.BOOL).write(data, True)
        assert data == bytes(bit10)

    @pytest.mark.parametrize(("byte_order", "bit_order"), ALL_ORDERS)
    def test_int_bytes_inverse(self, byte_order, bit_order):
        layout = BitLayout(24, byte_order, bit_order)
        for value in (0, 1, 0x123456, 0xffffff, 0x800001):
            assert layout.bytes_to_int(layout.int_to_bytes(value)) == value

    def test_num_bytes(self):
        assert BitLayout(1, LE, LSB0).num_bytes == 1
        assert BitLayout(9, LE, LSB0).num_bytes == 2
        assert BitLayout(0, LE, LSB0).num_bytes == 0

    def test_be_physical_index(self):
        layout = BitLayout(32, BE, LSB0)
        assert [layout.physical_index(k) for k in range(4)] == [3, 2, 1, 0]

    def test_for_field_set_without_byte_order(self):
        layout = BitLayout.for_field_set(FieldSet(8, ()), None, MSB0)
        assert layout.byte_order is LE
        assert layout.bit_order is MSB0

class TestFieldCodec:
    @pytest.mark.parametrize(("byte_order", "bit_order"), ALL_ORDERS)
    def test_fields_are_independent(self, byte_order, bit_order):
        layout = BitLayout(32, byte_order, bit_order)
        fields = [
            (FieldCodec(layout, 0, 3, BaseType.UINT), 5),
            (FieldCodec(layout, 3, 4, BaseType.BOOL), True),
            (FieldCodec(layout, 4, 17, BaseType.UINT), 0x1abc),
            (FieldCodec(layout, 17, 23, BaseType.INT), -20),
            (FieldCodec(layout, 23, 32, BaseType.UINT), 0x155),
        ]
        data = bytearray(4)
        for codec, value in fields:
            codec.write(data, value)
        for codec, value in fields:
            assert codec.read(data) == value

        # Rewriting one field leaves its neighbours alone.
        fields[2][0].write(data, 0)
        assert fields[1][0].read(data) is True
        assert fields[3][0].read(data) == -20

    def test_logical_value(self):
        layout = BitLayout(16, BE, LSB0)
        data = bytearray(2)
        FieldCodec(layout, 4, 12, BaseType.UINT).write(data, 0xab)
        assert data == b"\x0a\xb0"
        assert layout.bytes_to_int(data) == 0x0ab0

    def test_spans(self):
        le = FieldCodec(BitLayout(16, LE, LSB0), 4, 12, BaseType.UINT)
        be = FieldCodec(BitLayout(16, BE, LSB0), 4, 12, BaseType.UINT)
        assert [s.physical_index for s in le.spans] == [0, 1]
        assert [s.physical_index for s in be.spans] == [1, 0]
        assert le.spans[0].mask == 0xf0
        assert le.spans[1].mask == 0x0f
        assert le.spans[1].value_shift == 4

    def test_signed(self):
        layout = BitLayout(8, LE, LSB0)
        codec = FieldCodec(layout, 2, 6, BaseType.INT)
        data = bytearray(1)
        codec.write(data, -3)
        assert data == bytes([0b110100])
        assert codec.read_raw(data) == 0b1101
        assert codec.read(data) == -3
        assert codec.signed

    def test_bool_read(self):
        codec = FieldCodec(BitLayout(8, LE, LSB0), 7, 8, BaseType.BOOL)
        assert codec.read(b"\x80") is True
        assert codec.read(b"\x7f") is False

    @pytest.mark.parametrize(("base", "value"), [
        (BaseType.UINT, 16),
        (BaseType.UINT, -1),
        (BaseType.INT, 8),
        (BaseType.INT, -9),
    ])
    def test_out_of_range(self, base, value):
        codec = FieldCodec(BitLayout(8, LE, LSB0), 0, 4, base)
        data = bytearray(b"\x55")
        with pytest.raises(ValueError):
            codec.write(data, value)
        assert data == b"\x55"

    def test_wide_field(self):
        layout = BitLayout(128, BE, MSB0)
        codec = FieldCodec(layout, 0, 128, BaseType.UINT)
        data = bytearray(16)
        codec.write(data, (1 << 128) - 2)
        assert codec.read(data) == (1 << 128) - 2
        assert layout.bytes_to_int(data) == (1 << 128) - 2

    def test_outside_container(self):
        with pytest.raises(InternalError):
            FieldCodec(BitLayout(16, LE, LSB0), 8, 17, BaseType.UINT)

def outside_bits(size_bits, start, end):
    return ((1 << size_bits) - 1) & ~(((1 << (end - start)) - 1) << start)

class TestRoundTrip:
    @pytest.mark.parametrize(("byte_order", "bit_order"), ALL_ORDERS)
    @pytest.mark.parametrize("width", list(range(1, 65)) + [128])
    @pytest.mark.parametrize("start", [0, 3, 7])
    @pytest.mark.parametrize("base", [BaseType.UINT, BaseType.INT])
    def test_integer(self, byte_order, bit_order, width, start, base):
        # One spare bit, so most containers don't end on a byte boundary.
        size_bits = start + width + 1
        layout = BitLayout(size_bits, byte_order, bit_order)
        codec = FieldCodec(layout, start, start + width, base)
        low, high = value_range(width, base is BaseType.INT)
        outside = outside_bits(size_bits, start, start + width)
        for value in (low, (low + high) // 2, high):
            data = bytearray(b"\xff" * layout.num_bytes)
            codec.write(data, value)
            assert codec.read(data) == value
            assert layout.bytes_to_int(data) & outside == outside

    @pytest.mark.parametrize(("byte_order", "bit_order"), ALL_ORDERS)
    @pytest.mark.parametrize("bit", range(12))
    def test_bool_in_12_bits(self, byte_order, bit_order, bit):
        layout = BitLayout(12, byte_order, bit_order)
        codec = FieldCodec(layout, bit, bit + 1, BaseType.BOOL)
        for value in (True, False):
            data = bytearray(2)
            codec.write(data, value)
            assert codec.read(data) is value
            assert layout.bytes_to_int(data) == (int(value) << bit)

    @pytest.mark.parametrize(("byte_order", "bit_order"), ALL_ORDERS)
    @pytest.mark.parametrize(("start", "end"), [(0, 12), (2, 11), (4, 12), (7, 9)])
    @pytest.mark.parametrize("base", [BaseType.UINT, BaseType.INT])
    def test_12_bit_container(self, byte_order, bit_order, start, end, base):
        layout = BitLayout(12, byte_order, bit_order)
        codec = FieldCodec(layout, start, end, base)
        low, high = value_range(end - start, base is BaseType.INT)
        for value in (low, (low + high) // 2, high):
            data = bytearray(2)
            codec.write(data, value)
            assert codec.read(data) == value
            assert layout.bytes_to_int(data) & outside_bits(12, start, end) == 0

class TestResetBytes:
    def test_none_is_zero(self):
        assert reset_bytes(make_register(24, None)) == bytes(3)

    def test_int_is_logical(self):
        assert reset_bytes(make_register(16, 0x1234, byte_order=BE)) == b"\x12\x34"
        assert reset_bytes(make_register(16, 0x1234, byte_order=LE)) == b"\x34\x12"
        assert reset_bytes(make_register(8, 0x01, bit_order=MSB0)) == b"\x80"

    def test_bytes_are_physical(self):
        assert reset_bytes(make_register(16, b"\x12\x34", byte_order=LE)) == b"\x12\x34"

    def test_wrong_length(self):
        with pytest.raises(ResetValueError):
            reset_bytes(make_register(16, b"\x12"))

    def test_too_large(self):
        with pytest.raises(ResetValueError):
            reset_bytes(make_register(12, 0x1000))
        with pytest.raises(ResetValueError):
            reset_bytes(make_register(12, -1))
