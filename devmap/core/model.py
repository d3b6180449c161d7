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

"""@brief Resolved device model.

Objects are a closed set of frozen dataclasses joined by the `Object` union. Properties common to
every variant live in ObjectInfo. Consumers dispatch with isinstance() over the four variants; a
resolved tree never contains refs, as each ref is replaced by a copy of its target.

All addresses and offsets are absolute: a block's offset already includes the offsets of its
ancestors, and an object's address already includes the offset of its enclosing blocks. Repeats are
kept as a count and stride, not expanded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (Iterator, Optional, Tuple, Union)

from .config import ResolvedConfig
from .raw import (ConversionRef, EnumDefinition)
from .types import (Access, BaseType, BitOrder, ByteOrder, ObjectKind)

@dataclass(frozen=True)
class Repeat:
    """@brief Duplication of one definition over _count_ addresses spaced by _stride_."""
    count: int
    stride: int

    def offsets(self) -> Iterator[int]:
        """@brief Offset of each instance relative to the first one."""
        for i in range(self.count):
            yield i * self.stride

    def addresses(self, base: int) -> Tuple[int, ...]:
        return tuple(base + o for o in self.offsets())

@dataclass(frozen=True)
class ObjectInfo:
    name: str
    description: Optional[str] = None
    cfg: Optional[str] = None
    ## Name of the object this one was copied from by a ref.
    ref_target: Optional[str] = None

@dataclass(frozen=True)
class Field:
    """@brief One field with its half-open logical bit range [start, end)."""
    name: str
    start: int
    end: int
    base: BaseType
    access: Access
    description: Optional[str] = None
    conversion: Union[None, ConversionRef, EnumDefinition] = None

    @property
    def width(self) -> int:
        return self.end - self.start

@dataclass(frozen=True)
class FieldSet:
    """@brief The fields backing one register or one command direction."""
    size_bits: int
    fields: Tuple[Field, ...]
    allow_bit_overlap: bool = False

    @property
    def num_bytes(self) -> int:
        return (self.size_bits + 7) // 8

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, name: str) -> Field:
        """@brief Returns the field with the given name."""
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"no field named '{name}'")

@dataclass(frozen=True)
class Block:
    info: ObjectInfo
    offset: int
    objects: Tuple[Object, ...]
    repeat: Optional[Repeat] = None
    access: Optional[Access] = None

    @property
    def name(self) -> str:
        return self.info.name

@dataclass(frozen=True)
class Register:
    info: ObjectInfo
    address: int
    access: Access
    field_set: FieldSet
    bit_order: BitOrder
    byte_order: Optional[ByteOrder] = None
    reset_value: Union[None, int, bytes] = None
    repeat: Optional[Repeat] = None
    allow_address_overlap: bool = False

    kind = ObjectKind.REGISTER

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def size_bits(self) -> int:
        return self.field_set.size_bits

@dataclass(frozen=True)
class Command:
    info: ObjectInfo
    address: int
    access: Access
    bit_order: BitOrder
    byte_order: Optional[ByteOrder] = None
    field_set_in: Optional[FieldSet] = None
    field_set_out: Optional[FieldSet] = None
    repeat: Optional[Repeat] = None
    allow_address_overlap: bool = False

    kind = ObjectKind.COMMAND

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def size_bits_in(self) -> int:
        return self.field_set_in.size_bits if self.field_set_in is not None else 0

    @property
    def size_bits_out(self) -> int:
        return self.field_set_out.size_bits if self.field_set_out is not None else 0

@dataclass(frozen=True)
class Buffer:
    info: ObjectInfo
    address: int
    access: Access

    kind = ObjectKind.BUFFER
    repeat = None
    allow_address_overlap = False

    @property
    def name(self) -> str:
        return self.info.name

Object = Union[Block, Register, Command, Buffer]
Container = Union[Register, Command, Buffer]

@dataclass(frozen=True)
class Device:
    """@brief Root of the resolved tree."""
    config: ResolvedConfig
    objects: Tuple[Object, ...]
