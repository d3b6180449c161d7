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

"""@brief Field value types and enum conversions.

A field's read accessor is infallible when every raw value maps to something: either the enum covers
every bit pattern of the field, or it has a default variant, or it has a catch-all variant. When an
enum has both a default and a catch-all variant, unmapped values go to the catch-all, which keeps the
raw value. External conversions are fallible only when declared so.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import (Dict, Optional, Tuple, Type, Union)

from .exceptions import (
    ConversionError,
    DuplicateNameError,
    DuplicateSentinel,
    DuplicateVariantValue,
    VariantValueOutOfRange,
    )
from .model import Field
from .raw import (ConversionRef, EnumDefinition, VariantRole)
from .types import (BaseType, IntegerType, value_range)
from ..utility.naming import (Boundary, DEFAULT_BOUNDARIES, constant_name, python_identifier, type_name)

LOG = logging.getLogger(__name__)

@dataclass(frozen=True)
class Variant:
    name: str
    value: int
    role: VariantRole = VariantRole.VALUE
    description: Optional[str] = None

@dataclass(frozen=True)
class EnumConversion:
    """@brief An enum with every variant value assigned and checked."""
    name: str
    variants: Tuple[Variant, ...]
    width: int
    signed: bool
    description: Optional[str] = None

    @property
    def default(self) -> Optional[Variant]:
        return next((v for v in self.variants if v.role is VariantRole.DEFAULT), None)

    @property
    def catch_all(self) -> Optional[Variant]:
        return next((v for v in self.variants if v.role is VariantRole.CATCH_ALL), None)

    @property
    def is_complete(self) -> bool:
        """@brief Whether every bit pattern of the field has its own variant."""
        return len(self.variants) >= (1 << self.width)

    @property
    def is_fallible(self) -> bool:
        return not (self.is_complete or self.default is not None or self.catch_all is not None)

    def lookup(self, raw: int) -> Optional[Variant]:
        """@brief Variant for the raw field value _raw_.

        Unmapped values resolve to the catch-all variant if there is one, else to the default variant.
        @return The variant, or None if the value is unmapped and the enum is fallible.
        """
        for v in self.variants:
            if v.value == raw:
                return v
        return self.catch_all or self.default

    def python_enum(self, boundaries: Tuple[Boundary, ...] = DEFAULT_BOUNDARIES) -> Type[IntEnum]:
        """@brief Build an IntEnum with one member per variant.
        @exception DuplicateNameError Two variant names differ only in case or word separators.
        """
        members = {python_identifier(constant_name(v.name, boundaries)): v.value for v in self.variants}
        if len(members) != len(self.variants):
            raise DuplicateNameError("two variants have the same member name", obj=self.name)
        return IntEnum(python_identifier(type_name(self.name, boundaries)), members) # type:ignore

@dataclass(frozen=True)
class FieldType:
    """@brief Decided value type of one field.

    _storage_ is the smallest fixed-width integer holding the field, or None for bool fields.
    """
    base: BaseType
    storage: Optional[IntegerType]
    conversion: Union[None, ConversionRef, EnumConversion] = None

    @property
    def is_fallible(self) -> bool:
        """@brief Whether reading the field can fail with an unmapped value."""
        if isinstance(self.conversion, EnumConversion):
            return self.conversion.is_fallible
        elif isinstance(self.conversion, ConversionRef):
            return self.conversion.fallible
        return False

    @property
    def name(self) -> str:
        """@brief Name of the type a field accessor exposes."""
        if isinstance(self.conversion, EnumConversion):
            return self.conversion.name
        elif isinstance(self.conversion, ConversionRef):
            return self.conversion.type_name
        elif self.storage is None:
            return "bool"
        return str(self.storage)

def resolve_enum(definition: EnumDefinition, field: Field, obj_name: str) -> EnumConversion:
    """@brief Assign variant values and check the enum.

    Variants without a value, sentinel variants included, get the previous variant's value plus one,
    starting at 0.

    @exception DuplicateSentinel More than one default or more than one catch-all variant.
    @exception DuplicateVariantValue Two variants have the same value.
    @exception VariantValueOutOfRange A value doesn't fit the field.
    """
    signed = field.base is BaseType.INT
    low, high = value_range(field.width, signed)
    variants = []
    by_value: Dict[int, str] = {}
    sentinels: Dict[VariantRole, str] = {}
    next_value = 0
    for vdef in definition.variants:
        if vdef.role is not VariantRole.VALUE:
            if vdef.role in sentinels:
                raise DuplicateSentinel(f"enum '{definition.name}' has more than one {vdef.role.value} "
                        f"variant ('{sentinels[vdef.role]}' and '{vdef.name}')", obj=obj_name, field=field.name)
            sentinels[vdef.role] = vdef.name
        value = vdef.value if vdef.value is not None else next_value
        if not (low <= value <= high):
            raise VariantValueOutOfRange(f"variant '{vdef.name}' value {value} does not fit in "
                    f"{field.width} bits", obj=obj_name, field=field.name, value=value)
        if value in by_value:
            raise DuplicateVariantValue(f"variants '{by_value[value]}' and '{vdef.name}' of enum "
                    f"'{definition.name}' both have value {value}", obj=obj_name, field=field.name, value=value)
        by_value[value] = vdef.name
        variants.append(Variant(vdef.name, value, vdef.role, vdef.description))
        next_value = value + 1
    enum = EnumConversion(definition.name, tuple(variants), field.width, signed, definition.description)
    LOG.debug("enum %s: %d variants, %s", enum.name, len(variants), "fallible" if enum.is_fallible else "infallible")
    return enum

def field_type(field: Field, obj_name: str) -> FieldType:
    """@brief Decide the value type of _field_.
    @exception ConversionError The field's conversion is invalid.
    """
    if field.base is BaseType.BOOL:
        if field.conversion is not None:
            raise ConversionError("bool fields cannot have a conversion", obj=obj_name, field=field.name)
        return FieldType(BaseType.BOOL, None)

    storage = IntegerType.smallest(field.width, field.base is BaseType.INT)
    if storage is None:
        raise ConversionError(f"{field.width} bit field is wider than the largest integer type",
                obj=obj_name, field=field.name, bits=(field.start, field.end))

    conversion: Union[None, ConversionRef, EnumConversion]
    if isinstance(field.conversion, EnumDefinition):
        conversion = resolve_enum(field.conversion, field, obj_name)
    else:
        conversion = field.conversion
    return FieldType(field.base, storage, conversion)
