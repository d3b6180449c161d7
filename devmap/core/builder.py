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

import dataclasses
import logging
from dataclasses import dataclass
from typing import (Any, Dict, FrozenSet, List, Optional, Sequence, Tuple, Type)

from .config import ResolvedConfig
from .exceptions import (
    DuplicateNameError,
    FieldDefinitionError,
    InternalError,
    RefError,
    ValidationError,
    )
from .model import (
    Block,
    Buffer,
    Command,
    Device,
    Field,
    FieldSet,
    Object,
    ObjectInfo,
    Register,
    Repeat,
    )
from .raw import (
    RawBlock,
    RawBuffer,
    RawCommand,
    RawDevice,
    RawField,
    RawFieldSet,
    RawObject,
    RawRef,
    RawRegister,
    RawRepeat,
    )
from .types import (Access, BaseType, ObjectKind)

LOG = logging.getLogger(__name__)

## Properties a ref can never override, because they change the target's field sets.
FIELDSET_PROPERTIES: FrozenSet[str] = frozenset({
    'size_bits',
    'size_bits_in',
    'size_bits_out',
    'fields',
    'fields_in',
    'fields_out',
    'field_set',
    'field_set_in',
    'field_set_out',
    'byte_order',
    'bit_order',
    'allow_bit_overlap',
    })

## Properties a ref may override, per target kind.
OVERRIDABLE_PROPERTIES: Dict[Type, FrozenSet[str]] = {
    RawBlock: frozenset({'description', 'cfg', 'access', 'offset', 'repeat'}),
    RawRegister: frozenset({'description', 'cfg', 'access', 'address', 'repeat', 'reset_value',
                            'allow_address_overlap'}),
    RawCommand: frozenset({'description', 'cfg', 'access', 'address', 'repeat', 'allow_address_overlap'}),
    }

@dataclass(frozen=True)
class _Context:
    """@brief Placement of an object: the sum of enclosing block offsets, and the inherited access."""
    offset: int = 0
    access: Optional[Access] = None

class TreeBuilder:
    """@brief Turns a raw object graph into the resolved tree.

    Every declared identifier is recorded together with the context it was declared in and its position
    in declaration order. A ref must be declared after its target. Ref targets are resolved first, in a
    dependency pass over the refs in declaration order, and memoized; a ref is then a copy of its
    resolved target with the override applied. Because a ref may never target a ref, the only way to
    build a cycle is a ref to an enclosing block, which is detected by tracking which definitions are
    being expanded.
    """

    def __init__(self, raw: RawDevice, config: ResolvedConfig) -> None:
        self._raw = raw
        self._config = config
        self._definitions: Dict[str, Tuple[RawObject, _Context]] = {}
        self._order: Dict[str, int] = {}
        self._resolved: Dict[str, Object] = {}
        self._expanding: List[str] = []

    def build(self) -> Device:
        """@brief Resolve the whole tree.
        @exception ConfigError, ValidationError, RefError
        """
        self._collect(self._raw.objects, _Context())
        self._resolve_ref_targets()
        objects = self._resolve_objects(self._raw.objects, _Context(), original=True)
        LOG.info("resolved %d object definitions", len(self._definitions))
        return Device(config=self._config, objects=objects)

    def _collect(self, objects: Sequence[RawObject], ctx: _Context) -> None:
        for raw in objects:
            name = raw.info.name
            if name in self._definitions:
                raise DuplicateNameError("object names must be unique", obj=name)
            self._order[name] = len(self._order)
            self._definitions[name] = (raw, ctx)
            if isinstance(raw, RawBlock):
                self._collect(raw.objects, self._child_context(ctx, raw.offset, raw.info.access))

    @staticmethod
    def _child_context(ctx: _Context, offset: int, access: Optional[Access]) -> _Context:
        return _Context(offset=ctx.offset + offset, access=access or ctx.access)

    def _resolve_ref_targets(self) -> None:
        for raw, _ in list(self._definitions.values()):
            if isinstance(raw, RawRef):
                target = self._lookup_target(raw)
                LOG.debug("ref %s depends on %s", raw.info.name, target.info.name)
                self._definition(target.info.name)

    def _definition(self, name: str) -> Object:
        """@brief Resolve a declared object in the context it was declared in, once."""
        try:
            return self._resolved[name]
        except KeyError:
            pass
        raw, ctx = self._definitions[name]
        self._expanding.append(name)
        try:
            obj = self._resolve_object(raw, ctx, original=True)
        finally:
            self._expanding.pop()
        self._resolved[name] = obj
        return obj

    def _resolve_objects(self, objects: Sequence[RawObject], ctx: _Context, original: bool) -> Tuple[Object, ...]:
        result = []
        for raw in objects:
            if original and not isinstance(raw, RawRef):
                result.append(self._definition(raw.info.name))
            else:
                result.append(self._resolve_object(raw, ctx, original))
        return tuple(result)

    def _resolve_object(self, raw: RawObject, ctx: _Context, original: bool) -> Object:
        if isinstance(raw, RawBlock):
            return self._resolve_block(raw, ctx, original)
        elif isinstance(raw, RawRegister):
            return self._resolve_register(raw, ctx)
        elif isinstance(raw, RawCommand):
            return self._resolve_command(raw, ctx)
        elif isinstance(raw, RawBuffer):
            return self._resolve_buffer(raw, ctx)
        elif isinstance(raw, RawRef):
            return self._resolve_ref(raw, ctx)
        else:
            raise TypeError(f"unexpected raw object {raw!r}")

    def _resolve_block(self, raw: RawBlock, ctx: _Context, original: bool) -> Block:
        child_ctx = self._child_context(ctx, raw.offset, raw.info.access)
        LOG.debug("block %s at offset %#x", raw.info.name, child_ctx.offset)
        return Block(
            info=self._info(raw.info.name, raw.info.description, raw.info.cfg),
            offset=child_ctx.offset,
            objects=self._resolve_objects(raw.objects, child_ctx, original),
            repeat=self._repeat(raw.info.name, raw.repeat),
            access=raw.info.access,
            )

    def _resolve_register(self, raw: RawRegister, ctx: _Context) -> Register:
        name = raw.info.name
        self._config.address_type(ObjectKind.REGISTER)
        field_set = self._field_set(name, raw.field_set, raw.allow_bit_overlap)
        reg = Register(
            info=self._info(name, raw.info.description, raw.info.cfg),
            address=raw.address + ctx.offset,
            access=raw.info.access or ctx.access or self._config.default_register_access,
            field_set=field_set,
            byte_order=self._config.byte_order_for(name, raw.byte_order, field_set.size_bits),
            bit_order=self._config.bit_order_for(raw.bit_order),
            reset_value=raw.reset_value,
            repeat=self._repeat(name, raw.repeat),
            allow_address_overlap=raw.allow_address_overlap,
            )
        LOG.debug("register %s at %#x, %d bits, %s", name, reg.address, reg.size_bits, reg.access.value)
        return reg

    def _resolve_command(self, raw: RawCommand, ctx: _Context) -> Command:
        name = raw.info.name
        self._config.address_type(ObjectKind.COMMAND)
        fs_in = self._field_set(name, raw.field_set_in, raw.allow_bit_overlap)
        fs_out = self._field_set(name, raw.field_set_out, raw.allow_bit_overlap)
        size = max(fs.size_bits if fs is not None else 0 for fs in (fs_in, fs_out))
        cmd = Command(
            info=self._info(name, raw.info.description, raw.info.cfg),
            address=raw.address + ctx.offset,
            access=raw.info.access or ctx.access or Access.READ_WRITE,
            byte_order=self._config.byte_order_for(name, raw.byte_order, size),
            bit_order=self._config.bit_order_for(raw.bit_order),
            field_set_in=fs_in,
            field_set_out=fs_out,
            repeat=self._repeat(name, raw.repeat),
            allow_address_overlap=raw.allow_address_overlap,
            )
        LOG.debug("command %s at %#x", name, cmd.address)
        return cmd

    def _resolve_buffer(self, raw: RawBuffer, ctx: _Context) -> Buffer:
        self._config.address_type(ObjectKind.BUFFER)
        return Buffer(
            info=self._info(raw.info.name, raw.info.description, raw.info.cfg),
            address=raw.address + ctx.offset,
            access=raw.info.access or ctx.access or self._config.default_buffer_access,
            )

    def _lookup_target(self, raw: RawRef) -> RawObject:
        try:
            target, _ = self._definitions[raw.target]
        except KeyError:
            raise RefError(f"unknown ref target '{raw.target}'", obj=raw.info.name) from None
        if isinstance(target, RawRef):
            raise RefError(f"ref target '{raw.target}' is itself a ref", obj=raw.info.name)
        if isinstance(target, RawBuffer):
            raise RefError(f"ref target '{raw.target}' is a buffer", obj=raw.info.name)
        if self._order[raw.target] > self._order[raw.info.name]:
            raise RefError(f"ref defined before its target '{raw.target}'", obj=raw.info.name)
        return target

    def _check_override(self, raw: RawRef, target: RawObject) -> None:
        allowed = OVERRIDABLE_PROPERTIES[type(target)]
        for key in raw.override:
            if key in FIELDSET_PROPERTIES:
                raise RefError(f"ref cannot override '{key}' because it changes the field set",
                        obj=raw.info.name)
            if key not in allowed:
                raise RefError(f"ref to a {type(target).__name__[3:].lower()} cannot override '{key}'",
                        obj=raw.info.name)

    def _resolve_ref(self, raw: RawRef, ctx: _Context) -> Object:
        name = raw.info.name
        target_raw = self._lookup_target(raw)
        self._check_override(raw, target_raw)
        target_name = target_raw.info.name
        if target_name in self._expanding:
            raise RefError(f"ref target '{target_name}' encloses the ref", obj=name)
        target = self._definition(target_name)
        override: Dict[str, Any] = raw.override

        info = ObjectInfo(
            name=name,
            description=override.get('description', raw.info.description or target.info.description),
            cfg=override.get('cfg', raw.info.cfg or target.info.cfg),
            ref_target=target_name,
            )
        access = override.get('access', raw.info.access)
        repeat = self._repeat(name, override['repeat']) if 'repeat' in override else target.repeat

        if isinstance(target, Block):
            if not isinstance(target_raw, RawBlock):
                raise InternalError(f"ref target '{target_name}' is not a block definition", obj=name)
            child_ctx = self._child_context(ctx, override.get('offset', target_raw.offset),
                    access or target_raw.info.access)
            self._expanding.append(target_name)
            try:
                children = self._resolve_objects(target_raw.objects, child_ctx, original=False)
            finally:
                self._expanding.pop()
            obj: Object = Block(
                info=info,
                offset=child_ctx.offset,
                objects=children,
                repeat=repeat,
                access=access or target.access,
                )
        elif isinstance(target, (Register, Command)):
            if not isinstance(target_raw, (RawRegister, RawCommand)):
                raise InternalError(f"ref target '{target_name}' is not a register or command definition", obj=name)
            changes: Dict[str, Any] = {
                'info': info,
                'address': override.get('address', target_raw.address) + ctx.offset,
                'access': access or target.access,
                'repeat': repeat,
                'allow_address_overlap': override.get('allow_address_overlap', target.allow_address_overlap),
                }
            if 'reset_value' in override:
                changes['reset_value'] = override['reset_value']
            obj = dataclasses.replace(target, **changes)
        else:
            raise RefError(f"unsupported ref target '{target_name}'", obj=name)
        LOG.debug("ref %s resolved as copy of %s", name, target_name)
        return obj

    def _info(self, name: str, description: Optional[str], cfg: Optional[str]) -> ObjectInfo:
        return ObjectInfo(name=name, description=description, cfg=cfg)

    def _repeat(self, name: str, raw: Optional[RawRepeat]) -> Optional[Repeat]:
        if raw is None:
            return None
        if raw.count < 0:
            raise ValidationError(f"repeat count must not be negative (got {raw.count})", obj=name)
        return Repeat(count=raw.count, stride=raw.stride)

    def _field_set(self, name: str, raw: Optional[RawFieldSet], allow_bit_overlap: bool) -> Optional[FieldSet]:
        if raw is None:
            return None
        if raw.size_bits < 0:
            raise FieldDefinitionError(f"size must not be negative (got {raw.size_bits} bits)", obj=name)
        seen = set()
        fields = []
        for raw_field in raw.fields:
            if raw_field.name in seen:
                raise DuplicateNameError("field names must be unique within a field set",
                        obj=name, field=raw_field.name)
            seen.add(raw_field.name)
            fields.append(self._field(name, raw_field))
        return FieldSet(size_bits=raw.size_bits, fields=tuple(fields), allow_bit_overlap=allow_bit_overlap)

    def _field(self, obj_name: str, raw: RawField) -> Field:
        end = raw.end
        if end is None:
            if raw.base is not BaseType.BOOL:
                raise FieldDefinitionError("only bool fields may omit the end of their bit range",
                        obj=obj_name, field=raw.name)
            end = raw.start + 1
        if raw.start < 0 or end <= raw.start:
            raise FieldDefinitionError("bit range must be non-empty and start at or above bit 0",
                    obj=obj_name, field=raw.name, bits=(raw.start, end))
        if raw.base is BaseType.BOOL and (end - raw.start) != 1:
            raise FieldDefinitionError("bool fields must be exactly one bit wide",
                    obj=obj_name, field=raw.name, bits=(raw.start, end))
        return Field(
            name=raw.name,
            start=raw.start,
            end=end,
            base=raw.base,
            access=raw.access or self._config.default_field_access,
            description=raw.description,
            conversion=raw.conversion,
            )

def build_device(raw: RawDevice, config: ResolvedConfig) -> Device:
    """@brief Resolve _raw_ into the canonical tree, using the already resolved _config_."""
    return TreeBuilder(raw, config).build()
