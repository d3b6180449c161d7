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

"""@brief Bounds and overlap checks over a resolved tree.

Address overlap only detects exact address equality. Two objects of different sizes whose ranges
partially overlap are not reported.
"""

import logging
from typing import (Dict, List, Optional, Tuple)

from .exceptions import (
    AddressOverlapError,
    AddressRangeError,
    BitOverlapError,
    BitRangeError,
    )
from .model import (Command, Device, Field, FieldSet, Register)
from .types import ObjectKind
from ..utility.tree import (Placement, containers, iter_placements)

LOG = logging.getLogger(__name__)

def check_bounds(name: str, field_set: FieldSet) -> None:
    """@brief Every field must lie within [0, size_bits). This check can't be disabled.
    @exception BitRangeError
    """
    for f in field_set:
        if f.start < 0 or f.end > field_set.size_bits:
            raise BitRangeError(f"field does not fit in {field_set.size_bits} bits",
                    obj=name, field=f.name, bits=(f.start, f.end))

def find_bit_overlap(field_set: FieldSet) -> Optional[Tuple[Field, Field]]:
    """@brief Return the first pair of fields whose ranges intersect, or None."""
    ordered = sorted(field_set.fields, key=lambda f: (f.start, f.end))
    widest: Optional[Field] = None
    for f in ordered:
        if widest is not None and f.start < widest.end:
            return widest, f
        if widest is None or f.end > widest.end:
            widest = f
    return None

def check_bit_overlap(name: str, field_set: FieldSet) -> None:
    """@brief Report overlapping fields unless the container allows it.
    @exception BitOverlapError
    """
    pair = find_bit_overlap(field_set)
    if pair is None:
        return
    a, b = pair
    if field_set.allow_bit_overlap:
        LOG.debug("%s: fields %s and %s overlap (allowed)", name, a.name, b.name)
        return
    raise BitOverlapError(f"fields '{a.name}' ({a.start}..{a.end}) and '{b.name}' overlap",
            obj=name, field=b.name, bits=(b.start, b.end))

def check_field_sets(device: Device) -> None:
    for obj in containers(device.objects):
        if isinstance(obj, Register):
            field_sets = [obj.field_set]
        elif isinstance(obj, Command):
            field_sets = [fs for fs in (obj.field_set_in, obj.field_set_out) if fs is not None]
        else:
            continue
        for fs in field_sets:
            check_bounds(obj.name, fs)
            check_bit_overlap(obj.name, fs)

def check_addresses(device: Device) -> None:
    """@brief Every effective address must fit its address type and be unique within its kind.
    @exception AddressRangeError, AddressOverlapError
    """
    seen: Dict[ObjectKind, Dict[int, List[Placement]]] = {k: {} for k in ObjectKind}
    for placement in iter_placements(device.objects):
        obj = placement.obj
        addr_type = device.config.address_type(obj.kind)
        if not addr_type.fits(placement.address):
            raise AddressRangeError(f"address does not fit in {addr_type}",
                    obj=placement.path, address=placement.address)
        seen[obj.kind].setdefault(placement.address, []).append(placement)

    for kind, by_address in seen.items():
        for address, placements in by_address.items():
            if len(placements) < 2:
                continue
            names = [p.path for p in placements]
            if any(p.obj.allow_address_overlap for p in placements):
                LOG.debug("%s address %#x shared by %s (allowed)", kind.value, address, ", ".join(names))
                continue
            raise AddressOverlapError(f"{kind.value}s {', '.join(repr(n) for n in names)} share an address",
                    obj=names[0], address=address, others=names[1:])

def validate_device(device: Device) -> None:
    """@brief Run every check. The first failure aborts with a ValidationError."""
    check_field_sets(device)
    check_addresses(device)
    LOG.info("validated %s", ", ".join(f"{n} {k}s" for k, n in _counts(device).items()) or "empty device")

def _counts(device: Device) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for obj in containers(device.objects):
        counts[obj.kind.value] = counts.get(obj.kind.value, 0) + 1
    return counts
