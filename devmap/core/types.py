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

from __future__ import annotations

from enum import Enum
from typing import (Dict, Optional, Tuple)

class Access(Enum):
    """@brief Access permission of an object or field."""
    READ_WRITE = "RW"
    READ_ONLY = "RO"
    WRITE_ONLY = "WO"

    @property
    def is_readable(self) -> bool:
        return self is not Access.WRITE_ONLY

    @property
    def is_writable(self) -> bool:
        return self is not Access.READ_ONLY

    @classmethod
    def from_str(cls, value: str) -> Access:
        """@brief Parse either the short (`RW`) or long (`ReadWrite`) spelling.
        @exception ValueError The string is not a recognized access name.
        """
        key = value.strip().replace("_", "").replace("-", "").lower()
        try:
            return _ACCESS_NAMES[key]
        except KeyError:
            raise ValueError(f"invalid access '{value}'") from None

_ACCESS_NAMES: Dict[str, Access] = {
    'rw': Access.READ_WRITE,
    'readwrite': Access.READ_WRITE,
    'ro': Access.READ_ONLY,
    'readonly': Access.READ_ONLY,
    'wo': Access.WRITE_ONLY,
    'writeonly': Access.WRITE_ONLY,
    }

class ByteOrder(Enum):
    """@brief Which logical byte lands at the lowest physical buffer index."""
    LE = "LE"
    BE = "BE"

    @classmethod
    def from_str(cls, value: str) -> ByteOrder:
        key = value.strip().upper()
        if key in ('LE', 'LITTLE', 'LITTLEENDIAN'):
            return cls.LE
        elif key in ('BE', 'BIG', 'BIGENDIAN'):
            return cls.BE
        raise ValueError(f"invalid byte order '{value}'")

class BitOrder(Enum):
    """@brief Which physical bit of a byte is bit 0 of that byte."""
    LSB0 = "LSB0"
    MSB0 = "MSB0"

    @classmethod
    def from_str(cls, value: str) -> BitOrder:
        key = value.strip().upper()
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"invalid bit order '{value}'") from None

class ObjectKind(Enum):
    """@brief Object kinds that own an address space."""
    REGISTER = "register"
    COMMAND = "command"
    BUFFER = "buffer"

class BaseType(Enum):
    """@brief Base representation of a field."""
    BOOL = "bool"
    UINT = "uint"
    INT = "int"

    @classmethod
    def from_str(cls, value: str) -> BaseType:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"invalid base type '{value}'") from None

class IntegerType(Enum):
    """@brief Fixed-width integer types used for addresses and field storage.

    The value of each member is a (bits, signed) pair.
    """
    U8 = (8, False)
    U16 = (16, False)
    U32 = (32, False)
    U64 = (64, False)
    U128 = (128, False)
    I8 = (8, True)
    I16 = (16, True)
    I32 = (32, True)
    I64 = (64, True)
    I128 = (128, True)

    @property
    def bits(self) -> int:
        return self.value[0]

    @property
    def signed(self) -> bool:
        return self.value[1]

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def fits(self, value: int) -> bool:
        """@brief Whether _value_ is representable by this type."""
        return self.min_value <= value <= self.max_value

    @classmethod
    def from_str(cls, value: str) -> IntegerType:
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"invalid integer type '{value}'") from None

    @classmethod
    def smallest(cls, width: int, signed: bool) -> Optional[IntegerType]:
        """@brief Smallest type that holds a _width_ bit value of the given signedness.
        @return The type, or None if _width_ exceeds 128 bits.
        """
        for t in cls:
            if t.signed == signed and t.bits >= width:
                return t
        return None

    def __str__(self) -> str:
        return self.name.lower()

def value_range(width: int, signed: bool) -> Tuple[int, int]:
    """@brief Inclusive (min, max) of a _width_ bit integer."""
    if signed:
        return -(1 << (width - 1)), (1 << (width - 1)) - 1
    return 0, (1 << width) - 1
