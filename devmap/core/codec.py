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

"""@brief Mapping between logical bit positions and physical buffer bits.

Logical positions are independent of any ordering: logical byte k holds logical bits [8k, 8k+8). All
field ranges and integer reset values in the model are logical. The physical buffer is what goes over
the wire.

- Byte order: with LE, logical byte k is physical byte k. With BE, logical byte k is physical byte
  (num_bytes - 1 - k).
- Bit order: with LSB0, logical bit n of a byte is physical bit n of the same byte. With MSB0, it is
  physical bit 7 - n.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (Optional, Tuple, Union)

from .exceptions import (InternalError, ResetValueError)
from .model import (Field, FieldSet, Register)
from .types import (BaseType, BitOrder, ByteOrder, value_range)
from ..utility.mask import (bitmask, reverse_byte, sign_extend, twos_complement)

@dataclass(frozen=True)
class BitLayout:
    """@brief Ordering of one container's buffer."""
    size_bits: int
    byte_order: ByteOrder
    bit_order: BitOrder

    @classmethod
    def for_field_set(cls, field_set: FieldSet, byte_order: Optional[ByteOrder], bit_order: BitOrder) -> BitLayout:
        # A buffer of at most one byte has no byte order; LE and BE place it identically.
        return cls(field_set.size_bits, byte_order or ByteOrder.LE, bit_order)

    @property
    def num_bytes(self) -> int:
        return (self.size_bits + 7) // 8

    def physical_index(self, logical_byte: int) -> int:
        """@brief Buffer index holding logical byte _logical_byte_."""
        if self.byte_order is ByteOrder.BE:
            return self.num_bytes - 1 - logical_byte
        return logical_byte

    def to_physical(self, logical_byte_value: int) -> int:
        """@brief Place the bits of a logical byte within its physical byte. Self-inverse."""
        if self.bit_order is BitOrder.MSB0:
            return reverse_byte(logical_byte_value)
        return logical_byte_value

    def int_to_bytes(self, value: int) -> bytes:
        """@brief Physical buffer holding the logical bit string _value_."""
        buf = bytearray(self.num_bytes)
        for k in range(self.num_bytes):
            buf[self.physical_index(k)] = self.to_physical((value >> (8 * k)) & 0xff)
        return bytes(buf)

    def bytes_to_int(self, data: Union[bytes, bytearray]) -> int:
        """@brief Logical bit string held by the physical buffer _data_."""
        value = 0
        for k in range(self.num_bytes):
            value |= self.to_physical(data[self.physical_index(k)]) << (8 * k)
        return value

    def field_codec(self, field: Field) -> FieldCodec:
        return FieldCodec(self, field.start, field.end, field.base)

@dataclass(frozen=True)
class ByteSpan:
    """@brief Part of a field that lies in one byte.

    _mask_ is in logical bit positions of the byte; _value_shift_ is the position in the field value of
    the span's lowest bit.
    """
    physical_index: int
    shift: int
    mask: int
    value_shift: int

class FieldCodec:
    """@brief Reads and writes one field of a physical buffer.

    Only the bytes the field spans are touched. Every other bit of those bytes is left untouched.
    """
    __slots__ = ('_layout', '_start', '_end', '_base', '_spans')

    def __init__(self, layout: BitLayout, start: int, end: int, base: BaseType) -> None:
        """@brief Constructor.
        @param self
        @param layout The container's BitLayout.
        @param start First logical bit of the field.
        @param end Logical bit just past the field.
        @param base Base representation, which decides signedness and bool decoding.
        """
        if not 0 <= start < end <= layout.num_bytes * 8:
            raise InternalError(f"field outside of a {layout.size_bits} bit container", bits=(start, end))
        self._layout = layout
        self._start = start
        self._end = end
        self._base = base
        spans = []
        for k in range(start // 8, (end - 1) // 8 + 1):
            lo = max(start, 8 * k) - 8 * k
            hi = min(end, 8 * k + 8) - 8 * k
            spans.append(ByteSpan(
                physical_index=layout.physical_index(k),
                shift=lo,
                mask=bitmask(hi - lo) << lo,
                value_shift=8 * k + lo - start,
                ))
        self._spans: Tuple[ByteSpan, ...] = tuple(spans)

    @property
    def layout(self) -> BitLayout:
        return self._layout

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def width(self) -> int:
        return self._end - self._start

    @property
    def spans(self) -> Tuple[ByteSpan, ...]:
        """@brief The bytes the field touches, lowest logical byte first."""
        return self._spans

    @property
    def signed(self) -> bool:
        return self._base is BaseType.INT

    def read_raw(self, data: Union[bytes, bytearray]) -> int:
        """@brief Extract the field's bit pattern as an unsigned integer."""
        value = 0
        for span in self._spans:
            logical = self._layout.to_physical(data[span.physical_index])
            value |= ((logical & span.mask) >> span.shift) << span.value_shift
        return value

    def read(self, data: Union[bytes, bytearray]) -> Union[int, bool]:
        """@brief Decode the field from a physical buffer according to its base type."""
        raw = self.read_raw(data)
        if self._base is BaseType.BOOL:
            return bool(raw)
        elif self._base is BaseType.INT:
            return sign_extend(raw, self.width)
        return raw

    def write(self, data: bytearray, value: Union[int, bool]) -> None:
        """@brief Merge _value_ into the physical buffer in place.
        @exception ValueError The value doesn't fit the field.
        """
        value = int(value)
        low, high = value_range(self.width, self.signed)
        if not (low <= value <= high):
            raise ValueError(f"value {value} does not fit in {self.width} bit field at {self._start}..{self._end}")
        raw = twos_complement(value, self.width)
        for span in self._spans:
            bits = ((raw >> span.value_shift) << span.shift) & span.mask
            logical = self._layout.to_physical(data[span.physical_index])
            logical = (logical & ~span.mask) | bits
            data[span.physical_index] = self._layout.to_physical(logical & 0xff)

    def __repr__(self) -> str:
        return (f"<{type(self).__name__} {self._start}..{self._end} {self._layout.byte_order.value}/"
                f"{self._layout.bit_order.value} bytes={[s.physical_index for s in self._spans]}>")

def reset_bytes(register: Register) -> bytes:
    """@brief The register's reset value as a physical buffer.

    An integer reset value is logical and goes through the register's layout. A byte string is already
    physical and is used as-is. Without a reset value the buffer is all zeroes.

    @exception ResetValueError The reset value doesn't fit the register.
    """
    layout = BitLayout.for_field_set(register.field_set, register.byte_order, register.bit_order)
    reset = register.reset_value
    if reset is None:
        return bytes(layout.num_bytes)
    elif isinstance(reset, (bytes, bytearray)):
        if len(reset) != layout.num_bytes:
            raise ResetValueError(f"reset value has {len(reset)} bytes, expected {layout.num_bytes}",
                    obj=register.name, value=bytes(reset))
        return bytes(reset)
    else:
        if reset < 0 or reset >= (1 << register.size_bits):
            raise ResetValueError(f"reset value {reset:#x} does not fit in {register.size_bits} bits",
                    obj=register.name, value=reset)
        return layout.int_to_bytes(reset)
