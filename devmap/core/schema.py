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

"""@brief Pydantic schemas and field types for plain-data input.

Config fragments and manifests arrive as decoded YAML or JSON. They are checked against the models
and annotated types defined here before anything is converted to the raw graph.
"""

from typing import (Any, Callable, Dict, Optional, Tuple, Type, TypeVar, Union)
from typing_extensions import Annotated

import pydantic
from pydantic import (BaseModel, BeforeValidator, ConfigDict, PlainValidator)

from .types import (Access, BaseType, BitOrder, ByteOrder, IntegerType)
from ..utility.naming import (Boundary, parse_boundaries)

_E = TypeVar('_E')

def parse_integer(value: Any) -> int:
    """@brief Accept an int, or a string in any base Python understands (`0x10`, `0b101`).
    @exception ValueError _value_ is not an integer. Booleans are rejected.
    """
    # bool is a subclass of int, but True is never a sensible address or bit position.
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise ValueError(f"expected an integer, got {value!r}")

def _from_str(cls: Type[_E]) -> Callable[[Any], _E]:
    parse = getattr(cls, 'from_str')

    def validate(value: Any) -> _E:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"expected a string, got {value!r}")
        return parse(value)
    return validate

def _boundaries(value: Any) -> Tuple[Boundary, ...]:
    if isinstance(value, (list, tuple)):
        if not all(isinstance(v, (str, Boundary)) for v in value):
            raise ValueError("expected a list of boundary names")
        return parse_boundaries(v.value if isinstance(v, Boundary) else v for v in value)
    elif isinstance(value, str):
        return parse_boundaries(value)
    raise ValueError(f"expected a list of boundary names, got {value!r}")

def _reset_value(value: Any) -> Union[int, bytes]:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    elif isinstance(value, list):
        data = [parse_integer(v) for v in value]
        if not all(0 <= b <= 0xff for b in data):
            raise ValueError("reset value bytes must be in the range 0..255")
        return bytes(data)
    return parse_integer(value)

Integer = Annotated[int, BeforeValidator(parse_integer)]
AccessName = Annotated[Access, BeforeValidator(_from_str(Access))]
ByteOrderName = Annotated[ByteOrder, BeforeValidator(_from_str(ByteOrder))]
BitOrderName = Annotated[BitOrder, BeforeValidator(_from_str(BitOrder))]
BaseTypeName = Annotated[BaseType, BeforeValidator(_from_str(BaseType))]
IntegerTypeName = Annotated[IntegerType, BeforeValidator(_from_str(IntegerType))]
Boundaries = Annotated[Tuple[Boundary, ...], BeforeValidator(_boundaries)]
## Either an integer, or a list of byte values taken as the physical buffer.
ResetValue = Annotated[Union[int, bytes], PlainValidator(_reset_value)]

class Schema(BaseModel):
    """@brief Base of all input models. Unknown keys are rejected."""
    model_config = ConfigDict(extra='forbid')

class ConfigSchema(Schema):
    """@brief Shape of a global config fragment. Every option may be omitted or null."""
    register_address_type: Optional[IntegerTypeName] = None
    command_address_type: Optional[IntegerTypeName] = None
    buffer_address_type: Optional[IntegerTypeName] = None
    default_register_access: Optional[AccessName] = None
    default_field_access: Optional[AccessName] = None
    default_buffer_access: Optional[AccessName] = None
    default_byte_order: Optional[ByteOrderName] = None
    default_bit_order: Optional[BitOrderName] = None
    name_word_boundaries: Optional[Boundaries] = None
    defmt_feature: Optional[str] = None

def first_error(exc: pydantic.ValidationError) -> Tuple[Tuple[str, ...], str]:
    """@brief Location and readable message of the first error reported by a model.

    For a missing key the location is that of the enclosing mapping, and the message names the key.
    """
    error: Dict[str, Any] = dict(exc.errors()[0])
    loc = tuple(str(p) for p in error['loc'])
    kind = error['type']
    if kind == 'missing' and loc:
        return loc[:-1], f"missing required key '{loc[-1]}'"
    elif kind == 'extra_forbidden':
        return loc, "unknown key"
    msg: str = error['msg']
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return loc, msg
