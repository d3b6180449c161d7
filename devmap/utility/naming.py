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

"""@brief Identifier word splitting and re-casing.

These functions are pure and know nothing about the device model. Names in the model are kept
exactly as declared; casing only matters where names are turned into Python attributes.
"""

import keyword
from enum import Enum
from typing import (Iterable, List, Sequence, Tuple)

class Boundary(Enum):
    """@brief Kinds of word boundary inside an identifier."""
    UNDERSCORE = "Underscore"
    HYPHEN = "Hyphen"
    SPACE = "Space"
    LOWER_UPPER = "LowerUpper"
    UPPER_LOWER = "UpperLower"
    DIGIT_UPPER = "DigitUpper"
    UPPER_DIGIT = "UpperDigit"
    DIGIT_LOWER = "DigitLower"
    LOWER_DIGIT = "LowerDigit"
    ACRONYM = "Acronym"

    @classmethod
    def from_str(cls, value: str) -> "Boundary":
        """@brief Look up a boundary by name, ignoring case, underscores and hyphens."""
        key = value.strip().replace("_", "").replace("-", "").lower()
        for b in cls:
            if b.value.lower() == key:
                return b
        raise ValueError(f"invalid word boundary '{value}'")

DEFAULT_BOUNDARIES: Tuple[Boundary, ...] = (
    Boundary.UNDERSCORE,
    Boundary.HYPHEN,
    Boundary.SPACE,
    Boundary.LOWER_UPPER,
    Boundary.UPPER_DIGIT,
    Boundary.DIGIT_UPPER,
    Boundary.DIGIT_LOWER,
    Boundary.LOWER_DIGIT,
    Boundary.ACRONYM,
    )

_DELIMITERS = {
    Boundary.UNDERSCORE: "_",
    Boundary.HYPHEN: "-",
    Boundary.SPACE: " ",
    }

def parse_boundaries(value: Iterable[str]) -> Tuple[Boundary, ...]:
    """@brief Convert boundary names to an ordered, duplicate-free tuple.

    A single string is treated as a comma separated list.
    """
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    result: List[Boundary] = []
    for name in value:
        b = Boundary.from_str(name)
        if b not in result:
            result.append(b)
    return tuple(result)

def _is_boundary(text: str, i: int, boundaries: Sequence[Boundary]) -> bool:
    """@brief Whether a word boundary lies between text[i-1] and text[i]."""
    a = text[i - 1]
    b = text[i]
    for boundary in boundaries:
        if boundary is Boundary.LOWER_UPPER and a.islower() and b.isupper():
            return True
        elif boundary is Boundary.UPPER_LOWER and a.isupper() and b.islower():
            return True
        elif boundary is Boundary.DIGIT_UPPER and a.isdigit() and b.isupper():
            return True
        elif boundary is Boundary.UPPER_DIGIT and a.isupper() and b.isdigit():
            return True
        elif boundary is Boundary.DIGIT_LOWER and a.isdigit() and b.islower():
            return True
        elif boundary is Boundary.LOWER_DIGIT and a.islower() and b.isdigit():
            return True
        elif boundary is Boundary.ACRONYM:
            # Last capital of a run of capitals followed by a lower case letter: "HTTPRequest".
            if a.isupper() and b.isupper() and (i + 1) < len(text) and text[i + 1].islower():
                return True
    return False

def split_words(identifier: str, boundaries: Sequence[Boundary] = DEFAULT_BOUNDARIES) -> List[str]:
    """@brief Split an identifier into words.
    @param identifier The identifier as declared.
    @param boundaries Ordered boundary kinds to split on.
    @return List of the words, with delimiter characters removed and case preserved.
    """
    delimiters = {_DELIMITERS[b] for b in boundaries if b in _DELIMITERS}
    words: List[str] = []
    current = ""
    for i, ch in enumerate(identifier):
        if ch in delimiters:
            if current:
                words.append(current)
                current = ""
            continue
        if current and _is_boundary(identifier, i, boundaries):
            words.append(current)
            current = ""
        current += ch
    if current:
        words.append(current)
    return words

def type_name(identifier: str, boundaries: Sequence[Boundary] = DEFAULT_BOUNDARIES) -> str:
    """@brief PascalCase, for struct-like uses."""
    return "".join(w[:1].upper() + w[1:].lower() for w in split_words(identifier, boundaries))

def function_name(identifier: str, boundaries: Sequence[Boundary] = DEFAULT_BOUNDARIES) -> str:
    """@brief snake_case, for accessor-like uses."""
    return "_".join(w.lower() for w in split_words(identifier, boundaries))

def constant_name(identifier: str, boundaries: Sequence[Boundary] = DEFAULT_BOUNDARIES) -> str:
    """@brief SCREAMING_SNAKE_CASE, for enum members and constants."""
    return "_".join(w.upper() for w in split_words(identifier, boundaries))

def python_identifier(name: str) -> str:
    """@brief Make a re-cased name usable as a Python attribute."""
    if not name or name[0].isdigit():
        name = "_" + name
    if keyword.iskeyword(name):
        name += "_"
    return name
