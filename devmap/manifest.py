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

"""@brief Manifest front-end.

Reads a YAML or JSON device manifest into the raw object graph. A manifest is a mapping with an
optional `config` entry followed by one entry per object:

```yaml
config:
  register_address_type: u8
  default_byte_order: BE
Status:
  type: register
  address: 0x00
  size_bits: 16
  access: RO
  fields:
    fault:
      base: bool
      start: 10
    mode:
      base: uint
      start: 0
      end: 2
      conversion:
        name: Mode
        variants:
          Disabled: 0
          Enabled: null
          Other: catch_all
```
"""

import json
import logging
from pathlib import Path
from typing import (Any, Dict, Mapping, Optional, Tuple, Type, Union)

import pydantic
import yaml
from pydantic import (StrictBool, model_validator)

from .core.config import GlobalConfig
from .core.exceptions import (ConfigError, ManifestError)
from .core.raw import (
    ConversionRef,
    EnumDefinition,
    RawBlock,
    RawBuffer,
    RawCommand,
    RawDevice,
    RawField,
    RawFieldSet,
    RawInfo,
    RawObject,
    RawRef,
    RawRegister,
    RawRepeat,
    VariantDefinition,
    VariantRole,
    )
from .core.schema import (
    AccessName,
    BaseTypeName,
    BitOrderName,
    ByteOrderName,
    Integer,
    ResetValue,
    Schema,
    first_error,
    parse_integer,
    )
from .core.types import BaseType

LOG = logging.getLogger(__name__)

## Keys leading from the manifest root to a value, for error messages.
KeyPath = Tuple[str, ...]

def _join(path: KeyPath) -> Optional[str]:
    return ".".join(path) or None

class RepeatSchema(Schema):
    count: Integer
    stride: Integer

    def to_raw(self) -> RawRepeat:
        return RawRepeat(count=self.count, stride=self.stride)

class VariantSchema(Schema):
    """@brief One enum variant.

    Written either as the bare value or as a mapping with `value` and `description`. The value is an
    integer, null for an automatic value, or one of `default` and `catch_all`.
    """
    value: Any = None
    description: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def _short_form(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return data
        return {'value': data}

    @model_validator(mode='after')
    def _check_value(self) -> 'VariantSchema':
        if self.value is not None and self.value not in ('default', 'catch_all'):
            self.value = parse_integer(self.value)
        return self

    def to_raw(self, name: str) -> VariantDefinition:
        if self.value in ('default', 'catch_all'):
            return VariantDefinition(name, role=VariantRole(self.value), description=self.description)
        return VariantDefinition(name, value=self.value, description=self.description)

class ConversionSchema(Schema):
    """@brief Field conversion.

    A bare string, or a mapping without `variants`, names an external type. With `variants` it defines
    an enum inline.
    """
    name: str
    description: Optional[str] = None
    variants: Optional[Dict[str, VariantSchema]] = None

    @model_validator(mode='before')
    @classmethod
    def _type_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {'name': data}
        return data

    def to_raw(self, fallible: bool) -> Union[ConversionRef, EnumDefinition]:
        if self.variants is None:
            return ConversionRef(type_name=self.name, fallible=fallible)
        return EnumDefinition(
            name=self.name,
            variants=tuple(v.to_raw(k) for k, v in self.variants.items()),
            description=self.description,
            )

class FieldSchema(Schema):
    base: BaseTypeName = BaseType.UINT
    start: Integer
    end: Optional[Integer] = None
    access: Optional[AccessName] = None
    description: Optional[str] = None
    conversion: Optional[ConversionSchema] = None
    try_conversion: Optional[ConversionSchema] = None

    @model_validator(mode='after')
    def _one_conversion(self) -> 'FieldSchema':
        if self.conversion is not None and self.try_conversion is not None:
            raise ValueError("only one of 'conversion' and 'try_conversion' may be given")
        return self

    def to_raw(self, name: str) -> RawField:
        if self.try_conversion is not None:
            conversion = self.try_conversion.to_raw(fallible=True)
        elif self.conversion is not None:
            conversion = self.conversion.to_raw(fallible=False)
        else:
            conversion = None
        return RawField(
            name=name,
            start=self.start,
            end=self.end,
            base=self.base,
            access=self.access,
            description=self.description,
            conversion=conversion,
            )

Fields = Optional[Dict[str, FieldSchema]]

def _fields(fields: Fields) -> Tuple[RawField, ...]:
    return tuple(f.to_raw(name) for name, f in (fields or {}).items())

class ObjectSchema(Schema):
    """@brief Keys shared by every object type."""
    type: str
    description: Optional[str] = None
    cfg: Optional[str] = None
    access: Optional[AccessName] = None

    def info(self, name: str) -> RawInfo:
        return RawInfo(name=name, description=self.description, cfg=self.cfg, access=self.access)

    def to_raw(self, name: str, path: KeyPath) -> RawObject:
        raise NotImplementedError()

class BlockSchema(ObjectSchema):
    offset: Integer = 0
    repeat: Optional[RepeatSchema] = None
    objects: Optional[Dict[str, Any]] = None

    def to_raw(self, name: str, path: KeyPath) -> RawObject:
        return RawBlock(
            info=self.info(name),
            offset=self.offset,
            repeat=self.repeat.to_raw() if self.repeat is not None else None,
            objects=_objects(self.objects or {}, path + ('objects',)),
            )

class RegisterSchema(ObjectSchema):
    address: Integer
    size_bits: Integer
    byte_order: Optional[ByteOrderName] = None
    bit_order: Optional[BitOrderName] = None
    reset_value: Optional[ResetValue] = None
    repeat: Optional[RepeatSchema] = None
    allow_bit_overlap: StrictBool = False
    allow_address_overlap: StrictBool = False
    fields: Fields = None

    def to_raw(self, name: str, path: KeyPath) -> RawObject:
        return RawRegister(
            info=self.info(name),
            address=self.address,
            field_set=RawFieldSet(size_bits=self.size_bits, fields=_fields(self.fields)),
            byte_order=self.byte_order,
            bit_order=self.bit_order,
            reset_value=self.reset_value,
            repeat=self.repeat.to_raw() if self.repeat is not None else None,
            allow_bit_overlap=self.allow_bit_overlap,
            allow_address_overlap=self.allow_address_overlap,
            )

class CommandSchema(ObjectSchema):
    address: Integer
    size_bits_in: Optional[Integer] = None
    size_bits_out: Optional[Integer] = None
    byte_order: Optional[ByteOrderName] = None
    bit_order: Optional[BitOrderName] = None
    repeat: Optional[RepeatSchema] = None
    allow_bit_overlap: StrictBool = False
    allow_address_overlap: StrictBool = False
    fields_in: Fields = None
    fields_out: Fields = None

    @model_validator(mode='after')
    def _sizes_given(self) -> 'CommandSchema':
        if self.fields_in and self.size_bits_in is None:
            raise ValueError("'fields_in' requires 'size_bits_in'")
        if self.fields_out and self.size_bits_out is None:
            raise ValueError("'fields_out' requires 'size_bits_out'")
        return self

    def to_raw(self, name: str, path: KeyPath) -> RawObject:
        return RawCommand(
            info=self.info(name),
            address=self.address,
            field_set_in=(RawFieldSet(self.size_bits_in, _fields(self.fields_in))
                    if self.size_bits_in is not None else None),
            field_set_out=(RawFieldSet(self.size_bits_out, _fields(self.fields_out))
                    if self.size_bits_out is not None else None),
            byte_order=self.byte_order,
            bit_order=self.bit_order,
            repeat=self.repeat.to_raw() if self.repeat is not None else None,
            allow_bit_overlap=self.allow_bit_overlap,
            allow_address_overlap=self.allow_address_overlap,
            )

class BufferSchema(ObjectSchema):
    address: Integer

    def to_raw(self, name: str, path: KeyPath) -> RawObject:
        return RawBuffer(info=self.info(name), address=self.address)

class OverrideSchema(Schema):
    """@brief Properties a ref changes on its copy of the target.

    Unknown keys are let through untyped, so that the tree builder can reject them with a RefError
    that says why the property can't be overridden.
    """
    model_config = pydantic.ConfigDict(extra='allow')

    description: Optional[str] = None
    cfg: Optional[str] = None
    access: Optional[AccessName] = None
    address: Optional[Integer] = None
    offset: Optional[Integer] = None
    repeat: Optional[RepeatSchema] = None
    reset_value: Optional[ResetValue] = None
    allow_address_overlap: Optional[StrictBool] = None

    def to_raw(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key in type(self).model_fields:
            if key in self.model_fields_set:
                value = getattr(self, key)
                result[key] = value.to_raw() if isinstance(value, RepeatSchema) else value
        result.update(self.model_extra or {})
        return result

class RefSchema(ObjectSchema):
    target: str
    override: Optional[OverrideSchema] = None

    def to_raw(self, name: str, path: KeyPath) -> RawObject:
        return RawRef(
            info=self.info(name),
            target=self.target,
            override=self.override.to_raw() if self.override is not None else {},
            )

_SCHEMAS: Dict[str, Type[ObjectSchema]] = {
    'block': BlockSchema,
    'register': RegisterSchema,
    'command': CommandSchema,
    'buffer': BufferSchema,
    'ref': RefSchema,
    }

def _mapping(data: Any, path: KeyPath) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ManifestError(f"expected a mapping, got {type(data).__name__}", path=_join(path))
    return data

def _objects(data: Any, path: KeyPath) -> Tuple[RawObject, ...]:
    return tuple(_object(str(name), value, path + (str(name),))
            for name, value in _mapping(data, path).items())

def _object(name: str, data: Any, path: KeyPath) -> RawObject:
    data = _mapping(data, path)
    kind = data.get('type')
    if kind is None:
        raise ManifestError("missing required key 'type'", path=_join(path))
    schema = _SCHEMAS.get(kind) if isinstance(kind, str) else None
    if schema is None:
        raise ManifestError(f"unknown object type {kind!r}", path=_join(path + ('type',)))
    try:
        model = schema.model_validate(data)
    except pydantic.ValidationError as err:
        loc, msg = first_error(err)
        raise ManifestError(msg, path=_join(path + loc)) from None
    return model.to_raw(name, path)

def parse_manifest(data: Any) -> RawDevice:
    """@brief Convert a decoded manifest to the raw object graph.
    @exception ManifestError The manifest doesn't have the expected shape.
    """
    data = _mapping(data, ())
    config = None
    if 'config' in data:
        try:
            config = GlobalConfig.from_dict(data['config'])
        except ConfigError as err:
            raise ManifestError(str(err), path='config') from None
    objects = _objects({k: v for k, v in data.items() if k != 'config'}, ())
    LOG.debug("parsed %d top-level objects", len(objects))
    return RawDevice(objects=objects, config=config)

def load_manifest(path: Union[str, Path]) -> RawDevice:
    """@brief Read and parse a `.yaml`, `.yml` or `.json` manifest file.
    @exception ManifestError The file can't be decoded or doesn't have the expected shape.
    @exception OSError The file can't be read.
    """
    path = Path(path)
    LOG.debug("loading manifest %s", path)
    with path.open("r", encoding="utf-8") as f:
        try:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as err:
            raise ManifestError(f"cannot decode {path.name}: {err}") from None
    if data is None:
        data = {}
    return parse_manifest(data)
