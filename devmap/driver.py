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

"""@brief Accessor runtime over a compiled device.

A driver class is built once from a `CompiledDevice`. Each top-level object becomes a method named
with snake_case, returning an operation object bound to the object's effective address:

```py
Driver = build_driver_class(compile_device(raw))
dev = Driver(interface)
status = dev.status().read()
dev.control().modify(lambda v: setattr(v, 'enable', True))
dev.channel(2).config().write_with_zero(lambda v: setattr(v, 'mode', Driver.ENUMS['Mode'].FAST))
```

All transfers go through a `DeviceInterface`. Exceptions raised by the interface are reported as
`TransportError`, with the original exception chained.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import (Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Type, Union)
from typing_extensions import Self

from .core.capability import Capability
from .core.codec import BitLayout
from .core.compiler import (CompiledDevice, ContainerInfo, FieldInfo, FieldSetInfo)
from .core.conversion import EnumConversion
from .core.exceptions import (
    AccessError,
    DuplicateNameError,
    Error,
    InternalError,
    TransportError,
    UnmappedValueError,
    )
from .core.model import (Block, Buffer, Command, Container, FieldSet, Object, Register, Repeat)
from .core.raw import (ConversionRef, VariantRole)
from .utility.naming import (Boundary, function_name, python_identifier, type_name)
from .utility.tree import child_path_prefix

LOG = logging.getLogger(__name__)

class DeviceInterface:
    """@brief Transport used by a driver to reach the device.

    Subclasses implement the transfers the device supports. Addresses are the effective addresses of
    the accessed objects. Register and command data are physical buffers, laid out as described by
    the container's byte and bit order.
    """

    def read_register(self, address: int, size_bits: int) -> bytes:
        """@brief Read a register.
        @return Exactly `ceil(size_bits / 8)` bytes.
        """
        raise NotImplementedError()

    def write_register(self, address: int, size_bits: int, data: bytes) -> None:
        raise NotImplementedError()

    def dispatch_command(self, address: int, size_bits_in: int, data: bytes, size_bits_out: int) -> bytes:
        """@brief Send a command with its input data and return the response.
        @return Exactly `ceil(size_bits_out / 8)` bytes.
        """
        raise NotImplementedError()

    def read_buffer(self, address: int, length: int) -> bytes:
        """@brief Read up to _length_ bytes from a buffer."""
        raise NotImplementedError()

    def write_buffer(self, address: int, data: bytes) -> int:
        """@brief Write _data_ to a buffer.
        @return Number of bytes accepted.
        """
        raise NotImplementedError()

class CatchAllValue(NamedTuple):
    """@brief Value of an enum field whose raw value matched no variant and went to the catch-all."""
    variant: IntEnum
    raw: int

@dataclass(frozen=True)
class Converter:
    """@brief Conversion for a field that names an external type.

    _from_raw_ receives the decoded integer. A fallible conversion reports an unmapped value by
    raising ValueError.
    """
    from_raw: Callable[[int], Any]
    to_raw: Callable[[Any], int]

FieldValue = Union[bool, int, IntEnum, CatchAllValue, Any]

class FieldAccessor:
    """@brief Data descriptor for one field of a field set value.

    Reading is only possible if the field is readable, and setting only if it is writable. This does
    not depend on the access of the container the field set belongs to.
    """
    __slots__ = ('_info', '_enum', '_converter', '_owner')

    def __init__(self,
            info: FieldInfo,
            owner: str,
            enum_type: Optional[Type[IntEnum]] = None,
            converter: Optional[Converter] = None
        ) -> None:
        self._info = info
        self._owner = owner
        self._enum = enum_type
        self._converter = converter

    @property
    def info(self) -> FieldInfo:
        return self._info

    def __get__(self, obj: Optional[FieldSetValue], objtype: Optional[type] = None) -> Union[Self, FieldValue]:
        if obj is None:
            return self
        if not self._info.has_getter:
            raise AttributeError(f"field '{self._info.name}' of {self._owner} is write-only")
        return self.decode(self._info.codec.read(obj._data))

    def __set__(self, obj: FieldSetValue, value: FieldValue) -> None:
        if not self._info.has_setter:
            raise AttributeError(f"field '{self._info.name}' of {self._owner} is read-only")
        self._info.codec.write(obj._data, self.encode(value))

    def decode(self, raw: Union[int, bool]) -> FieldValue:
        """@brief Convert a decoded field integer into the field's value type.
        @exception UnmappedValueError The field is fallible and _raw_ maps to nothing.
        """
        conv = self._info.type.conversion
        if isinstance(conv, EnumConversion):
            if self._enum is None:
                raise InternalError(f"no enum class for {conv.name}", obj=self._owner, field=self._info.name)
            variant = conv.lookup(int(raw))
            if variant is None:
                raise UnmappedValueError(f"value {raw} is not a variant of {conv.name}",
                        obj=self._owner, field=self._info.name, value=raw)
            member = self._enum(variant.value)
            if variant.role is VariantRole.CATCH_ALL and variant.value != raw:
                return CatchAllValue(member, int(raw))
            return member
        elif isinstance(conv, ConversionRef) and self._converter is not None:
            if not conv.fallible:
                return self._converter.from_raw(int(raw))
            try:
                return self._converter.from_raw(int(raw))
            except ValueError as err:
                raise UnmappedValueError(f"value {raw} is not a valid {conv.type_name}",
                        obj=self._owner, field=self._info.name, value=raw) from err
        return raw

    def encode(self, value: FieldValue) -> Union[int, bool]:
        if isinstance(value, CatchAllValue):
            return value.raw
        elif isinstance(value, (bool, int)):
            return value
        elif self._converter is not None:
            return self._converter.to_raw(value)
        raise TypeError(f"cannot set field '{self._info.name}' of {self._owner} to {value!r}")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._owner}.{self._info.name} {self._info.type.name}>"

class FieldSetValue:
    """@brief In-memory value of a field set, held as its physical buffer.

    Subclasses are created by `field_set_class()` with one `FieldAccessor` per field. A new value is
    all zeroes unless initial data is passed in.
    """
    __slots__ = ('_data',)

    _num_bytes: int = 0
    _field_names: Tuple[str, ...] = ()

    def __init__(self, data: Optional[bytes] = None) -> None:
        if data is None:
            data = bytes(self._num_bytes)
        elif len(data) != self._num_bytes:
            raise ValueError(f"{type(self).__name__} takes {self._num_bytes} bytes, got {len(data)}")
        self._data = bytearray(data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._data == other._data # type:ignore

    __hash__ = None # type:ignore

    def as_dict(self) -> Dict[str, FieldValue]:
        """@brief Values of all readable fields, by attribute name."""
        result = {}
        for name in self._field_names:
            accessor: FieldAccessor = getattr(type(self), name)
            if accessor.info.has_getter:
                result[name] = getattr(self, name)
        return result

    def __repr__(self) -> str:
        parts = [type(self).__name__, self._data.hex()]
        for name in self._field_names:
            accessor: FieldAccessor = getattr(type(self), name)
            if not accessor.info.has_getter:
                continue
            try:
                parts.append(f"{name}={getattr(self, name)!r}")
            except UnmappedValueError as err:
                parts.append(f"{name}=<unmapped {err.value}>")
        return "<" + " ".join(parts) + ">"

def field_set_class(
        name: str,
        info: FieldSetInfo,
        boundaries: Sequence[Boundary],
        enums: Mapping[str, Type[IntEnum]],
        converters: Mapping[str, Converter]
    ) -> Type[FieldSetValue]:
    """@brief Create the value class for one field set.
    @param name Class name.
    @param info Compiled field set.
    @param boundaries Word boundaries used to form attribute names.
    @param enums Python enum for each enum conversion, by enum name.
    @param converters Converters for external types, by type name. Fields with an external type that has
        no converter are exposed as plain integers.
    @exception DuplicateNameError Two fields end up with the same attribute name.
    """
    classdict: Dict[str, Any] = {'__slots__': (), '_num_bytes': info.num_bytes}
    names: List[str] = []
    for f in info:
        attr = python_identifier(function_name(f.name, boundaries))
        if attr in classdict or hasattr(FieldSetValue, attr):
            raise DuplicateNameError(f"field attribute name '{attr}' is already used", obj=name, field=f.name)
        conv = f.type.conversion
        enum_type = enums.get(conv.name) if isinstance(conv, EnumConversion) else None
        converter = converters.get(conv.type_name) if isinstance(conv, ConversionRef) else None
        classdict[attr] = FieldAccessor(f, name, enum_type, converter)
        names.append(attr)
    classdict['_field_names'] = tuple(names)
    return type(name, (FieldSetValue,), classdict)

class _Operation:
    """@brief Base for operations bound to one object instance."""

    def __init__(self, interface: DeviceInterface, info: ContainerInfo, address: int) -> None:
        self._interface = interface
        self._info = info
        self._address = address

    @property
    def address(self) -> int:
        return self._address

    def _require(self, capability: Capability, operation: str) -> None:
        if capability not in self._info.capabilities:
            raise AccessError(f"cannot {operation} {self._info.obj.access.value} {self._info.obj.kind.value}",
                    obj=self._info.name, address=self._address)

    def _transfer(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        LOG.debug("%s %s @ %#x", operation, self._info.name, self._address)
        try:
            return fn(*args)
        except Error:
            raise
        except Exception as err:
            raise TransportError(str(err) or type(err).__name__, operation=operation,
                    obj=self._info.name, address=self._address) from err

    def _check_length(self, operation: str, data: bytes, expected: int) -> bytes:
        if len(data) != expected:
            raise TransportError(f"interface returned {len(data)} bytes, expected {expected}",
                    operation=operation, obj=self._info.name, address=self._address)
        return bytes(data)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._info.name} @{self._address:#x}>"

class RegisterOperation(_Operation):
    """@brief Read, write and modify of one register instance.

    The write-like operations accept a callable that receives the value to be written and changes it
    in place. Its return value is ignored.
    """

    def __init__(self, interface: DeviceInterface, info: ContainerInfo, address: int,
            value_type: Type[FieldSetValue]) -> None:
        super().__init__(interface, info, address)
        self._value_type = value_type

    @property
    def value_type(self) -> Type[FieldSetValue]:
        return self._value_type

    @property
    def _size_bits(self) -> int:
        obj = self._info.obj
        if not isinstance(obj, Register):
            raise InternalError("register operation bound to a non-register", obj=self._info.name)
        return obj.size_bits

    def reset_value(self) -> FieldSetValue:
        """@brief The register's reset value, without any transfer."""
        return self._value_type(self._info.reset)

    def read(self) -> FieldSetValue:
        """@brief Read the register.
        @exception AccessError The register is not readable.
        @exception TransportError The interface failed.
        """
        self._require(Capability.READ, "read")
        data = self._transfer("read", self._interface.read_register, self._address, self._size_bits)
        return self._value_type(self._check_length("read", data, self._value_type._num_bytes))

    def _write(self, value: FieldSetValue, fn: Optional[Callable[[FieldSetValue], Any]]) -> FieldSetValue:
        if fn is not None:
            fn(value)
        self._transfer("write", self._interface.write_register, self._address, self._size_bits, bytes(value))
        return value

    def write(self, fn: Optional[Callable[[FieldSetValue], Any]] = None) -> FieldSetValue:
        """@brief Write the register, starting from its reset value.
        @param fn Optional callable that updates the value before it is written.
        @return The value that was written.
        @exception AccessError The register is not writable.
        @exception TransportError The interface failed.
        """
        self._require(Capability.WRITE, "write")
        return self._write(self.reset_value(), fn)

    def write_with_zero(self, fn: Optional[Callable[[FieldSetValue], Any]] = None) -> FieldSetValue:
        """@brief Write the register, starting from all zeroes."""
        self._require(Capability.WRITE, "write")
        return self._write(self._value_type(), fn)

    def modify(self, fn: Callable[[FieldSetValue], Any]) -> FieldSetValue:
        """@brief Read the register, update it with _fn_ and write it back.

        Exactly one read and one write are performed. If the write fails the register may or may not
        have been changed; the operation is not retried.

        @return The value that was written.
        @exception AccessError The register is not read-write.
        @exception TransportError The interface failed.
        """
        self._require(Capability.MODIFY, "modify")
        return self._write(self.read(), fn)

class CommandOperation(_Operation):
    """@brief Dispatch of one command instance."""

    def __init__(self, interface: DeviceInterface, info: ContainerInfo, address: int,
            input_type: Optional[Type[FieldSetValue]], output_type: Optional[Type[FieldSetValue]]) -> None:
        super().__init__(interface, info, address)
        self._input_type = input_type
        self._output_type = output_type

    @property
    def input_type(self) -> Optional[Type[FieldSetValue]]:
        return self._input_type

    @property
    def output_type(self) -> Optional[Type[FieldSetValue]]:
        return self._output_type

    def dispatch(self, fn: Optional[Callable[[FieldSetValue], Any]] = None) -> Optional[FieldSetValue]:
        """@brief Send the command and decode its response.
        @param fn Optional callable that fills in the input value, which starts from all zeroes.
        @return The decoded output value, or None if the command has no output field set.
        @exception AccessError Sending input needs write access, receiving output needs read access.
        @exception TransportError The interface failed.
        """
        if self._input_type is not None:
            self._require(Capability.WRITE, "send to")
        if self._output_type is not None:
            self._require(Capability.READ, "receive from")

        cmd = self._info.obj
        if not isinstance(cmd, Command):
            raise InternalError("command operation bound to a non-command", obj=self._info.name)
        if self._input_type is not None:
            value = self._input_type()
            if fn is not None:
                fn(value)
            data = bytes(value)
        elif fn is not None:
            raise TypeError(f"command {self._info.name} has no input fields")
        else:
            data = b""

        response = self._transfer("dispatch", self._interface.dispatch_command,
                self._address, cmd.size_bits_in, data, cmd.size_bits_out)
        if self._output_type is None:
            return None
        return self._output_type(self._check_length("dispatch", response, self._output_type._num_bytes))

class BufferOperation(_Operation):
    """@brief Byte stream access to one buffer."""

    def read(self, length: int) -> bytes:
        """@brief Read up to _length_ bytes."""
        self._require(Capability.READ, "read")
        if length < 0:
            raise ValueError(f"invalid read length {length}")
        return bytes(self._transfer("read", self._interface.read_buffer, self._address, length))

    def write(self, data: bytes) -> int:
        """@brief Write _data_.
        @return Number of bytes the interface accepted.
        """
        self._require(Capability.WRITE, "write")
        return self._transfer("write", self._interface.write_buffer, self._address, bytes(data))

class BlockDriver:
    """@brief Base of generated driver and block classes.

    _shift_ is the sum of the repeat offsets of enclosing block instances. Addresses of resolved
    objects already include block offsets.
    """
    ENUMS: Dict[str, Type[IntEnum]] = {}
    VALUES: Dict[str, Type[FieldSetValue]] = {}

    def __init__(self, interface: DeviceInterface, shift: int = 0) -> None:
        self._interface = interface
        self._shift = shift

    @property
    def interface(self) -> DeviceInterface:
        return self._interface

    def __repr__(self) -> str:
        return f"<{type(self).__name__} shift={self._shift:#x}>"

def repeat_offset(name: str, repeat: Optional[Repeat], index: Optional[int]) -> int:
    """@brief Address offset of one instance of a possibly repeated object.
    @exception TypeError An index was passed for an object that isn't repeated, or omitted for one that is.
    @exception IndexError The index is out of range.
    """
    if repeat is None:
        if index is not None:
            raise TypeError(f"{name} is not repeated and takes no index")
        return 0
    if index is None:
        raise TypeError(f"{name} is repeated and requires an index")
    if index < 0 or index >= repeat.count:
        raise IndexError(f"index {index} out of range for {name} ({repeat.count} elements)")
    return index * repeat.stride

class _DriverBuilder:
    """@brief Builds driver classes for the objects of a compiled device."""

    def __init__(self, compiled: CompiledDevice, converters: Mapping[str, Converter]) -> None:
        self._compiled = compiled
        self._converters = converters
        self._boundaries = compiled.config.name_word_boundaries
        self._enums: Dict[str, Type[IntEnum]] = {
            name: conv.python_enum(self._boundaries) for name, conv in compiled.enums.items()
            }
        self._values: Dict[str, Type[FieldSetValue]] = {}
        self._value_cache: Dict[Tuple[str, str, FieldSet, BitLayout], Type[FieldSetValue]] = {}

    def _value_type(self, obj: Container, direction: str, info: FieldSetInfo) -> Type[FieldSetValue]:
        # A ref, and every object copied through a block ref, reuses the classes of its definition.
        name = obj.info.ref_target or obj.name
        key = (name, direction, info.field_set, info.layout)
        cls = self._value_cache.get(key)
        if cls is None:
            class_name = python_identifier(type_name(name, self._boundaries) + direction)
            if class_name in self._values:
                raise DuplicateNameError(f"value type name '{class_name}' is already used", obj=name)
            cls = field_set_class(class_name, info, self._boundaries, self._enums, self._converters)
            self._value_cache[key] = cls
            self._values[class_name] = cls
        return cls

    def _factory(self, prefix: str, obj: Object) -> Callable[[BlockDriver, int], Any]:
        if isinstance(obj, Block):
            block_cls = self._block_class(obj.name, obj.objects, child_path_prefix(obj, prefix))
            return lambda driver, offset: block_cls(driver._interface, driver._shift + offset)

        info = self._compiled[prefix + obj.name]
        if isinstance(obj, Register):
            if info.field_set is None:
                raise InternalError("register without a field set", obj=obj.name)
            value_type = self._value_type(obj, "", info.field_set)
            return lambda driver, offset: RegisterOperation(driver._interface, info,
                    obj.address + driver._shift + offset, value_type)
        elif isinstance(obj, Command):
            input_type = (self._value_type(obj, "Input", info.field_set_in)
                    if info.field_set_in is not None else None)
            output_type = (self._value_type(obj, "Output", info.field_set_out)
                    if info.field_set_out is not None else None)
            return lambda driver, offset: CommandOperation(driver._interface, info,
                    obj.address + driver._shift + offset, input_type, output_type)
        elif isinstance(obj, Buffer):
            return lambda driver, offset: BufferOperation(driver._interface, info,
                    obj.address + driver._shift + offset)
        raise TypeError(f"unexpected object {obj!r}")

    def _accessor(self, name: str, obj: Object, factory: Callable[[BlockDriver, int], Any]) -> Callable:
        repeat = obj.repeat
        if repeat is None:
            def accessor(self: BlockDriver) -> Any:
                return factory(self, 0)
        else:
            def accessor(self: BlockDriver, index: int) -> Any: # type:ignore
                return factory(self, repeat_offset(obj.name, repeat, index))
        accessor.__name__ = name
        accessor.__doc__ = obj.info.description
        return accessor

    def _block_class(self, name: str, objects: Sequence[Object], prefix: str) -> Type[BlockDriver]:
        classdict: Dict[str, Any] = {}
        for obj in objects:
            method_name = python_identifier(function_name(obj.name, self._boundaries))
            if method_name in classdict or hasattr(BlockDriver, method_name):
                raise DuplicateNameError(f"accessor name '{method_name}' is already used", obj=obj.name)
            factory = self._factory(prefix, obj)
            classdict[method_name] = self._accessor(method_name, obj, factory)
        LOG.debug("driver class %s: %s", name, ", ".join(classdict) or "no accessors")
        return type(python_identifier(type_name(name, self._boundaries)), (BlockDriver,), classdict)

    def build(self, name: str) -> Type[BlockDriver]:
        cls = self._block_class(name, self._compiled.device.objects, "")
        cls.ENUMS = {e.__name__: e for e in self._enums.values()}
        cls.VALUES = dict(self._values)
        return cls

def build_driver_class(
        compiled: CompiledDevice,
        name: str = "Device",
        converters: Optional[Mapping[str, Converter]] = None
    ) -> Type[BlockDriver]:
    """@brief Create a driver class for a compiled device.

    @param compiled The compiled device.
    @param name Name of the driver class.
    @param converters Converters for external conversion types, keyed by type name.
    @return Subclass of `BlockDriver` with one accessor method per top-level object. The generated enum
        and value classes are available from its `ENUMS` and `VALUES` attributes, keyed by class name.
    @exception DuplicateNameError Two objects or fields get the same Python name.
    """
    cls = _DriverBuilder(compiled, converters or {}).build(name)
    LOG.info("built driver class %s with %d enums and %d value types", cls.__name__, len(cls.ENUMS), len(cls.VALUES))
    return cls
