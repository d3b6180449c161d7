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

def bitmask(width: int) -> int:
    """@brief Mask with the _width_ low bits set."""
    return (1 << width) - 1

# Bit-reversed value of every byte, for mirroring bit positions within a byte.
_REVERSED = bytes(int(f"{i:08b}"[::-1], 2) for i in range(256))

def reverse_byte(value: int) -> int:
    """@brief Mirror the bits of a byte, so bit n moves to bit 7-n."""
    return _REVERSED[value & 0xff]

def sign_extend(value: int, width: int) -> int:
    """@brief Interpret the low _width_ bits of _value_ as two's complement."""
    value &= bitmask(width)
    if width and (value >> (width - 1)):
        value -= 1 << width
    return value

def twos_complement(value: int, width: int) -> int:
    """@brief Inverse of sign_extend(): the _width_ bit pattern of a possibly negative value."""
    return value & bitmask(width)
