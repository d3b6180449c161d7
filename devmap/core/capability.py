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

from enum import IntFlag

from .model import (Container, Field)
from .types import Access

class Capability(IntFlag):
    """@brief Operations exposed for an object, or getter/setter for a field."""
    NONE = 0
    READ = 1
    WRITE = 2
    MODIFY = 4

    def describe(self) -> str:
        """@brief Short form such as `read, write`."""
        names = [c.name.lower() for c in (Capability.READ, Capability.WRITE, Capability.MODIFY) if c in self]
        return ", ".join(names) if names else "none"

def access_capabilities(access: Access) -> Capability:
    caps = Capability.NONE
    if access.is_readable:
        caps |= Capability.READ
    if access.is_writable:
        caps |= Capability.WRITE
    return caps

def object_capabilities(obj: Container) -> Capability:
    """@brief Operations legal on a register, command or buffer.

    Modify needs the container itself to be read-write. Field access never widens what the container
    exposes. Of the accessor operations only registers offer a modify, but the capability is reported
    for every read-write container.
    """
    caps = access_capabilities(obj.access)
    if obj.access is Access.READ_WRITE:
        caps |= Capability.MODIFY
    return caps

def field_capabilities(field: Field) -> Capability:
    """@brief READ if the field has a getter, WRITE if it has a setter.

    This only depends on the field's own access. A field of a read-only register may still be set on the
    in-memory value; it is the register's write operation that is withheld.
    """
    return access_capabilities(field.access)
