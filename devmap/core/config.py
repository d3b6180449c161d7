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

import logging
from dataclasses import dataclass
from typing import (Any, Mapping, Optional, Tuple)

import pydantic

from .exceptions import (ConfigError, MissingAddressType, MissingByteOrder)
from .schema import (ConfigSchema, first_error)
from .types import (Access, BitOrder, ByteOrder, IntegerType, ObjectKind)
from ..utility.naming import (Boundary, DEFAULT_BOUNDARIES)

LOG = logging.getLogger(__name__)

@dataclass(frozen=True)
class GlobalConfig:
    """@brief User supplied configuration fragment. Any member may be left unset."""
    register_address_type: Optional[IntegerType] = None
    command_address_type: Optional[IntegerType] = None
    buffer_address_type: Optional[IntegerType] = None
    default_register_access: Optional[Access] = None
    default_field_access: Optional[Access] = None
    default_buffer_access: Optional[Access] = None
    default_byte_order: Optional[ByteOrder] = None
    default_bit_order: Optional[BitOrder] = None
    name_word_boundaries: Optional[Tuple[Boundary, ...]] = None
    defmt_feature: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> GlobalConfig:
        """@brief Build a config fragment from a plain mapping of option names to values.
        @exception ConfigError An unknown option name, or an unparsable value.
        """
        try:
            schema = ConfigSchema.model_validate(data)
        except pydantic.ValidationError as err:
            loc, msg = first_error(err)
            if not loc:
                raise ConfigError(f"invalid config: {msg}") from None
            elif err.errors()[0]['type'] == 'extra_forbidden':
                raise ConfigError(f"unknown config option '{loc[0]}'") from None
            value = data.get(loc[0]) if isinstance(data, Mapping) else None
            raise ConfigError(f"invalid value {value!r} for config option '{loc[0]}': {msg}") from None
        return cls(**dict(schema))

@dataclass(frozen=True)
class ResolvedConfig:
    """@brief Fully populated configuration for one generation run.

    Address types stay optional here. They are only required once an object of that kind exists,
    which is checked by address_type().
    """
    register_address_type: Optional[IntegerType]
    command_address_type: Optional[IntegerType]
    buffer_address_type: Optional[IntegerType]
    default_register_access: Access
    default_field_access: Access
    default_buffer_access: Access
    default_byte_order: Optional[ByteOrder]
    default_bit_order: BitOrder
    name_word_boundaries: Tuple[Boundary, ...]
    defmt_feature: Optional[str]

    def address_type(self, kind: ObjectKind) -> IntegerType:
        """@brief Address type for objects of _kind_.
        @exception MissingAddressType No address type is configured for this kind.
        """
        t = {
            ObjectKind.REGISTER: self.register_address_type,
            ObjectKind.COMMAND: self.command_address_type,
            ObjectKind.BUFFER: self.buffer_address_type,
            }[kind]
        if t is None:
            raise MissingAddressType(kind)
        return t

    def byte_order_for(self, name: str, explicit: Optional[ByteOrder], size_bits: int) -> Optional[ByteOrder]:
        """@brief Resolve the byte order of a container.

        Single byte containers don't need a byte order, in which case None is returned if none was set.

        @exception MissingByteOrder The container spans more than one byte and no byte order is set.
        """
        order = explicit if explicit is not None else self.default_byte_order
        if order is None and size_bits > 8:
            raise MissingByteOrder("byte order must be set for objects larger than one byte", obj=name)
        return order

    def bit_order_for(self, explicit: Optional[BitOrder]) -> BitOrder:
        return explicit if explicit is not None else self.default_bit_order

def resolve_config(fragment: Optional[GlobalConfig] = None) -> ResolvedConfig:
    """@brief Fill every unset option of _fragment_ with its built-in default."""
    if fragment is None:
        fragment = GlobalConfig()
    config = ResolvedConfig(
        register_address_type=fragment.register_address_type,
        command_address_type=fragment.command_address_type,
        buffer_address_type=fragment.buffer_address_type,
        default_register_access=fragment.default_register_access or Access.READ_WRITE,
        default_field_access=fragment.default_field_access or Access.READ_WRITE,
        default_buffer_access=fragment.default_buffer_access or Access.READ_WRITE,
        default_byte_order=fragment.default_byte_order,
        default_bit_order=fragment.default_bit_order or BitOrder.LSB0,
        name_word_boundaries=(fragment.name_word_boundaries
                if fragment.name_word_boundaries is not None else DEFAULT_BOUNDARIES),
        defmt_feature=fragment.defmt_feature,
        )
    LOG.debug("resolved config: %s", config)
    return config
