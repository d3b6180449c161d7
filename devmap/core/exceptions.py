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

from typing import (Any, Optional, Sequence, Tuple)

class Error(RuntimeError):
    """@brief Parent of all errors devmap can raise.

    Positional arguments are passed through to the superclass' constructor, and thus operate like any
    other standard exception class. Keyword arguments of 'obj', 'field', 'bits', 'address' and 'value'
    optionally record where the problem was found. The metadata, if available, is included in the
    description of the exception when it is converted to a string.
    """
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args)
        self._obj: Optional[str] = kwargs.get('obj', None)
        self._field: Optional[str] = kwargs.get('field', None)
        self._bits: Optional[Tuple[int, int]] = kwargs.get('bits', None)
        self._address: Optional[int] = kwargs.get('address', None)
        self._value: Optional[Any] = kwargs.get('value', None)

    @property
    def obj(self) -> Optional[str]:
        """@brief Name of the offending object."""
        return self._obj

    @property
    def field(self) -> Optional[str]:
        """@brief Name of the offending field."""
        return self._field

    @property
    def bits(self) -> Optional[Tuple[int, int]]:
        """@brief Offending half-open bit range as a (start, end) pair."""
        return self._bits

    @property
    def address(self) -> Optional[int]:
        return self._address

    @property
    def value(self) -> Optional[Any]:
        return self._value

    def __str__(self) -> str:
        desc = super().__str__()
        parts = []
        if self._obj is not None:
            parts.append(f"object '{self._obj}'")
        if self._field is not None:
            parts.append(f"field '{self._field}'")
        if self._bits is not None:
            parts.append(f"bits {self._bits[0]}..{self._bits[1]}")
        if self._address is not None:
            parts.append(f"address {self._address:#x}")
        if parts:
            if desc:
                desc += " "
            desc += "(%s)" % (", ".join(parts))
        return desc

class InternalError(Error):
    """@brief Internal consistency or logic error.

    This error indicates that something has happened that shouldn't be possible.
    """
    pass

class ConfigError(Error):
    """@brief Invalid or incomplete global configuration."""
    pass

class MissingAddressType(ConfigError):
    """@brief An object of a kind was used but no address type is configured for that kind."""
    def __init__(self, kind: Any, *args: Any, **kwargs: Any) -> None:
        if not args:
            args = (f"no {kind.value}_address_type configured but {kind.value} objects are defined",)
        super().__init__(*args, **kwargs)
        self.kind = kind

class MissingByteOrder(ConfigError):
    """@brief A multi-byte object has no byte order, neither explicit nor a global default."""
    pass

class ValidationError(Error):
    """@brief The resolved description is internally inconsistent."""
    pass

class DuplicateNameError(ValidationError):
    """@brief Two objects, or two fields of one field set, share an identifier."""
    pass

class FieldDefinitionError(ValidationError):
    """@brief A field is malformed, for instance an empty range or a multi-bit bool."""
    pass

class BitRangeError(ValidationError):
    """@brief A field lies outside its container. Never suppressible."""
    pass

class BitOverlapError(ValidationError):
    """@brief Two fields of one field set overlap."""
    pass

class AddressOverlapError(ValidationError):
    """@brief Two objects of one kind resolve to the same address.

    The 'others' keyword argument lists the names of the colliding objects.
    """
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.others: Sequence[str] = tuple(kwargs.get('others', ()))

class AddressRangeError(ValidationError):
    """@brief An effective address does not fit the configured address type."""
    pass

class ResetValueError(ValidationError):
    """@brief A reset value does not fit its register."""
    pass

class RefError(Error):
    """@brief A ref is unresolvable or overrides a property it may not."""
    pass

class ConversionError(Error):
    """@brief Invalid field conversion or enum definition."""
    pass

class DuplicateVariantValue(ConversionError):
    """@brief Two enum variants have the same value."""
    pass

class DuplicateSentinel(ConversionError):
    """@brief More than one default or more than one catch-all variant."""
    pass

class VariantValueOutOfRange(ConversionError):
    """@brief An enum variant value can't be represented by its field."""
    pass

class UnmappedValueError(ConversionError):
    """@brief A fallible field read a raw value that maps to no variant."""
    pass

class ManifestError(Error):
    """@brief A manifest doesn't have the expected shape.

    The 'path' keyword argument records the location of the offending key, e.g. `Foo.fields.bar`.
    """
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.path: Optional[str] = kwargs.get('path', None)

    def __str__(self) -> str:
        desc = super().__str__()
        if self.path:
            desc = f"{self.path}: {desc}"
        return desc

class AccessError(Error):
    """@brief An operation was requested that the object's access doesn't allow."""
    pass

class TransportError(Error):
    """@brief The device interface failed to complete a transfer.

    The interface's own exception is chained as `__cause__`.
    """
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.operation: Optional[str] = kwargs.get('operation', None)

    def __str__(self) -> str:
        desc = super().__str__()
        if self.operation is not None:
            desc = f"{self.operation.capitalize()} failed: {desc}"
        return desc
