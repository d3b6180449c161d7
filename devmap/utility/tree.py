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

from dataclasses import dataclass
from typing import (Iterator, List, Sequence, Tuple)

from ..core.model import (Block, Buffer, Command, Container, Object, Register)

@dataclass(frozen=True)
class Placement:
    """@brief One concrete instance of a container after repeat expansion.

    The _indices_ are the repeat indices of every repeated enclosing block, outermost first, followed by
    the container's own repeat index if it is repeated.
    """
    obj: Container
    indices: Tuple[int, ...]
    address: int
    path: str

def child_path_prefix(block: Block, prefix: str) -> str:
    # Children of a block copied by a ref keep their names, so they are qualified by the ref's name.
    if block.info.ref_target is not None:
        return f"{prefix}{block.name}."
    return prefix

def walk(objects: Sequence[Object]) -> Iterator[Object]:
    """@brief Depth-first iteration over every object, blocks included, in declaration order."""
    for obj in objects:
        yield obj
        if isinstance(obj, Block):
            yield from walk(obj.objects)

def containers(objects: Sequence[Object]) -> List[Container]:
    """@brief All registers, commands and buffers in declaration order."""
    return [o for o in walk(objects) if isinstance(o, (Register, Command, Buffer))] # type:ignore

def iter_containers(objects: Sequence[Object], prefix: str = "") -> Iterator[Tuple[str, Container]]:
    """@brief All registers, commands and buffers with their unique path, in declaration order.

    The path is the object's name, qualified by the names of enclosing ref-copied blocks.
    """
    for obj in objects:
        if isinstance(obj, Block):
            yield from iter_containers(obj.objects, child_path_prefix(obj, prefix))
        else:
            yield prefix + obj.name, obj

def iter_placements(objects: Sequence[Object],
        shift: int = 0,
        indices: Tuple[int, ...] = (),
        prefix: str = ""
    ) -> Iterator[Placement]:
    """@brief Expand all repeats, yielding every container instance with its effective address."""
    for obj in objects:
        if isinstance(obj, Block):
            child_prefix = child_path_prefix(obj, prefix)
            if obj.repeat is None:
                yield from iter_placements(obj.objects, shift, indices, child_prefix)
            else:
                for i, offset in enumerate(obj.repeat.offsets()):
                    yield from iter_placements(obj.objects, shift + offset, indices + (i,), child_prefix)
        elif obj.repeat is None:
            yield Placement(obj, indices, obj.address + shift, prefix + obj.name)
        else:
            for i, offset in enumerate(obj.repeat.offsets()):
                yield Placement(obj, indices + (i,), obj.address + shift + offset, prefix + obj.name)

def _dump_desc(obj: Object) -> str:
    if isinstance(obj, Block):
        desc = f"block {obj.name} +{obj.offset:#x}"
    else:
        desc = f"{obj.kind.value} {obj.name} @{obj.address:#x}"
    if obj.repeat is not None:
        desc += f" [{obj.repeat.count} x {obj.repeat.stride:#x}]"
    if obj.info.ref_target is not None:
        desc += f" (ref {obj.info.ref_target})"
    return desc

def dump_to_str(objects: Sequence[Object]) -> str:
    """@brief Returns a string describing the object tree."""

    def _dump(obj: Object, level: int) -> str:
        result = ("  " * level) + "- " + _dump_desc(obj) + "\n"
        if isinstance(obj, Block):
            for child in obj.objects:
                result += _dump(child, level + 1)
        return result

    return "".join(_dump(o, 0) for o in objects)
