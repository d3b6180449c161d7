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
from typing import (Dict, Iterator, List, Mapping, Optional, Tuple)

from .builder import build_device
from .capability import (Capability, field_capabilities, object_capabilities)
from .codec import (BitLayout, FieldCodec, reset_bytes)
from .config import (ResolvedConfig, resolve_config)
from .conversion import (EnumConversion, FieldType, field_type)
from .exceptions import ConversionError
from .model import (Buffer, Command, Container, Device, Field, FieldSet, Register)
from .raw import RawDevice
from .validate import validate_device
from ..utility.tree import (iter_containers, iter_placements)

LOG = logging.getLogger(__name__)

@dataclass(frozen=True)
class FieldInfo:
    """@brief Everything code generation needs for one field."""
    field: Field
    codec: FieldCodec
    type: FieldType
    capabilities: Capability

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def has_getter(self) -> bool:
        return Capability.READ in self.capabilities

    @property
    def has_setter(self) -> bool:
        return Capability.WRITE in self.capabilities

@dataclass(frozen=True)
class FieldSetInfo:
    field_set: FieldSet
    layout: BitLayout
    fields: Tuple[FieldInfo, ...]

    @property
    def num_bytes(self) -> int:
        return self.layout.num_bytes

    def __iter__(self) -> Iterator[FieldInfo]:
        return iter(self.fields)

    def __getitem__(self, name: str) -> FieldInfo:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"no field named '{name}'")

@dataclass(frozen=True)
class ContainerInfo:
    """@brief Compiled form of one register, command or buffer.

    For a register, _field_set_ is its field set and _reset_ its physical reset buffer. For a command,
    _field_set_in_ and _field_set_out_ are set for each direction that transfers data. _addresses_ lists
    the effective address of every instance after repeat expansion.
    """
    obj: Container
    capabilities: Capability
    addresses: Tuple[int, ...]
    field_set: Optional[FieldSetInfo] = None
    field_set_in: Optional[FieldSetInfo] = None
    field_set_out: Optional[FieldSetInfo] = None
    reset: Optional[bytes] = None

    @property
    def name(self) -> str:
        return self.obj.name

    def field_sets(self) -> List[FieldSetInfo]:
        return [fs for fs in (self.field_set, self.field_set_in, self.field_set_out) if fs is not None]

@dataclass(frozen=True)
class CompiledDevice:
    """@brief Output of a generation run: the resolved tree plus per-container descriptors.

    Containers are keyed by path, which is the object name except inside blocks copied by a ref,
    where it is qualified with the ref's name (`RefBlock.Child`).
    """
    config: ResolvedConfig
    device: Device
    containers: Mapping[str, ContainerInfo]
    enums: Mapping[str, EnumConversion]

    def __getitem__(self, name: str) -> ContainerInfo:
        return self.containers[name]

def _field_set_info(name: str, field_set: FieldSet, layout: BitLayout) -> FieldSetInfo:
    infos = []
    for f in field_set:
        infos.append(FieldInfo(
            field=f,
            codec=layout.field_codec(f),
            type=field_type(f, name),
            capabilities=field_capabilities(f),
            ))
    return FieldSetInfo(field_set, layout, tuple(infos))

def compile_container(obj: Container, addresses: Tuple[int, ...]) -> ContainerInfo:
    caps = object_capabilities(obj)
    if isinstance(obj, Register):
        layout = BitLayout.for_field_set(obj.field_set, obj.byte_order, obj.bit_order)
        return ContainerInfo(obj, caps, addresses,
                field_set=_field_set_info(obj.name, obj.field_set, layout),
                reset=reset_bytes(obj))
    elif isinstance(obj, Command):
        fs_in = fs_out = None
        if obj.field_set_in is not None:
            layout = BitLayout.for_field_set(obj.field_set_in, obj.byte_order, obj.bit_order)
            fs_in = _field_set_info(obj.name, obj.field_set_in, layout)
        if obj.field_set_out is not None:
            layout = BitLayout.for_field_set(obj.field_set_out, obj.byte_order, obj.bit_order)
            fs_out = _field_set_info(obj.name, obj.field_set_out, layout)
        return ContainerInfo(obj, caps, addresses, field_set_in=fs_in, field_set_out=fs_out)
    elif isinstance(obj, Buffer):
        return ContainerInfo(obj, caps, addresses)
    raise TypeError(f"unexpected object {obj!r}")

def _collect_enums(infos: Mapping[str, ContainerInfo]) -> Dict[str, EnumConversion]:
    """@brief Every enum by name. Two different enums may not share a name.

    Refs share their target's field sets, so the same enum is commonly seen more than once.
    """
    enums: Dict[str, EnumConversion] = {}
    for info in infos.values():
        for fs in info.field_sets():
            for f in fs:
                conv = f.type.conversion
                if not isinstance(conv, EnumConversion):
                    continue
                existing = enums.get(conv.name)
                if existing is not None and existing != conv:
                    raise ConversionError(f"two different enums are named '{conv.name}'",
                            obj=info.name, field=f.name)
                enums[conv.name] = conv
    return enums

def compile_device(raw: RawDevice) -> CompiledDevice:
    """@brief Run the whole pipeline on a raw graph.

    Config resolution, tree building, validation, then codec, conversion and capability derivation.
    Generation is atomic: the first error propagates and nothing is returned.

    @exception devmap.core.exceptions.Error Any configuration, validation, ref or conversion error.
    """
    config = resolve_config(raw.config)
    device = build_device(raw, config)
    validate_device(device)

    addresses: Dict[str, List[int]] = {}
    for placement in iter_placements(device.objects):
        addresses.setdefault(placement.path, []).append(placement.address)

    infos: Dict[str, ContainerInfo] = {}
    for path, obj in iter_containers(device.objects):
        infos[path] = compile_container(obj, tuple(addresses.get(path, ())))
    enums = _collect_enums(infos)
    LOG.info("compiled %d containers, %d enums", len(infos), len(enums))
    return CompiledDevice(config=config, device=device, containers=infos, enums=enums)
