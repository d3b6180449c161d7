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

"""@brief Raw, unresolved object graph.

This is the contract between front-ends and the core. Every front-end, whatever its surface syntax,
produces a RawDevice. Nothing here is validated beyond basic typing; repeats are unexpanded, refs are
unresolved and defaults have not been applied.
"""

from __future__ import annotations

from dataclasses import (dataclass, field)
from enum import Enum
from typing import (Any, Dict, Optional, Tuple, Union)

from .config import GlobalConfig
from .types import (Access, BaseType, BitOrder, ByteOrder)

class VariantRole(Enum):
    """@brief Role of an enum variant."""
    VALUE = "value"
    DEFAULT = "default"
    CATCH_ALL = "catch_all"

@dataclass(frozen=True)
class VariantDefinition:
    """@brief One declared enum variant.

    A _value_ of None means the value is assigned automatically.
    """
    name: str
    value: Optional[int] = None
    role: VariantRole = VariantRole.VALUE
    description: Optional[str] = None

@dataclass(frozen=True)
class EnumDefinition:
    """@brief Inline enum conversion of a field, as declared."""
    name: str
    variants: Tuple[VariantDefinition, ...]
    description: Optional[str] = None

@dataclass(frozen=True)
class ConversionRef:
    """@brief Conversion to an externally supplied type."""
    type_name: str
    fallible: bool = False

@dataclass(frozen=True)
class RawRepeat:
    count: int
    stride: int

@dataclass(frozen=True)
class RawInfo:
    """@brief Properties shared by every object variant."""
    name: str
    description: Optional[str] = None
    cfg: Optional[str] = None
    access: Optional[Access] = None

@dataclass(frozen=True)
class RawField:
    name: str
    start: int
    end: Optional[int] = None
    base: BaseType = BaseType.UINT
    access: Optional[Access] = None
    description: Optional[str] = None
    conversion: Union[None, ConversionRef, EnumDefinition] = None

@dataclass(frozen=True)
class RawFieldSet:
    size_bits: int
    fields: Tuple[RawField, ...] = ()

@dataclass(frozen=True)
class RawBlock:
    info: RawInfo
    offset: int = 0
    repeat: Optional[RawRepeat] = None
    objects: Tuple[RawObject, ...] = ()

@dataclass(frozen=True)
class RawRegister:
    info: RawInfo
    address: int
    field_set: RawFieldSet
    byte_order: Optional[ByteOrder] = None
    bit_order: Optional[BitOrder] = None
    reset_value: Union[None, int, bytes] = None
    repeat: Optional[RawRepeat] = None
    allow_bit_overlap: bool = False
    allow_address_overlap: bool = False

@dataclass(frozen=True)
class RawCommand:
    info: RawInfo
    address: int
    field_set_in: Optional[RawFieldSet] = None
    field_set_out: Optional[RawFieldSet] = None
    byte_order: Optional[ByteOrder] = None
    bit_order: Optional[BitOrder] = None
    repeat: Optional[RawRepeat] = None
    allow_bit_overlap: bool = False
    allow_address_overlap: bool = False

@dataclass(frozen=True)
class RawBuffer:
    info: RawInfo
    address: int

@dataclass(frozen=True)
class RawRef:
    """@brief Named copy of another object.

    The _override_ mapping holds property names and their new, already typed values. Only
    properties that don't change the shape of the target's field sets may be overridden; that is
    checked when the ref is resolved.
    """
    info: RawInfo
    target: str
    override: Dict[str, Any] = field(default_factory=dict)

RawObject = Union[RawBlock, RawRegister, RawCommand, RawBuffer, RawRef]

@dataclass(frozen=True)
class RawDevice:
    """@brief Root of the raw graph: an optional config fragment and the top-level objects."""
    objects: Tuple[RawObject, ...] = ()
    config: Optional[GlobalConfig] = None
