"""Runtime type tags and value helpers shared by rules, specs and errors.

Every Python value maps onto one of a closed set of type tags:

- ``null``: ``None``
- ``boolean``: ``bool``
- ``integer``: ``int`` (booleans excluded)
- ``double``: ``float``
- ``string``: ``str`` and ``bytes``
- ``array``: ``list``, ``tuple``, ``set``, ``frozenset``
- ``map``: any ``Mapping``
- ``resource``: open handles (streams, sockets, memory maps)
- ``object``: everything else

The pseudo-tag ``scalar`` matches booleans, integers, doubles and strings.
"""

from __future__ import annotations

import io
import math
import mmap
import socket
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any

NULL = "null"
BOOLEAN = "boolean"
INTEGER = "integer"
DOUBLE = "double"
STRING = "string"
ARRAY = "array"
MAP = "map"
RESOURCE = "resource"
OBJECT = "object"
SCALAR = "scalar"

TYPE_TAGS = frozenset({NULL, BOOLEAN, INTEGER, DOUBLE, STRING, ARRAY, MAP, RESOURCE, OBJECT, SCALAR})

TYPE_ALIASES = {
    "none": NULL,
    "NULL": NULL,
    "bool": BOOLEAN,
    "int": INTEGER,
    "float": DOUBLE,
    "str": STRING,
    "list": ARRAY,
    "sequence": ARRAY,
    "dict": MAP,
    "mapping": MAP,
    "handle": RESOURCE,
}

SCALAR_TAGS = frozenset({BOOLEAN, INTEGER, DOUBLE, STRING})

RESOURCE_TYPES = frozenset({"stream", "socket", "mmap"})

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def canonical_type(name: str) -> str | None:
    """Resolve a type name or alias to its canonical tag.

    Args:
        name: Type tag or alias (e.g. ``"int"``)

    Returns:
        The canonical tag, or None if the name is not recognized
    """
    name = TYPE_ALIASES.get(name, name)
    return name if name in TYPE_TAGS else None


def resource_type(value: Any) -> str | None:
    """Return the resource category of an open handle, or None."""
    if isinstance(value, io.IOBase):
        return "stream"
    if isinstance(value, socket.socket):
        return "socket"
    if isinstance(value, mmap.mmap):
        return "mmap"
    return None


def type_tag(value: Any) -> str:
    """Return the type tag of a value.

    Args:
        value: Any Python value

    Returns:
        One of the canonical type tags (never ``scalar``)
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return INTEGER
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, (str, bytes)):
        return STRING
    if isinstance(value, _SEQUENCE_TYPES):
        return ARRAY
    if isinstance(value, Mapping):
        return MAP
    if resource_type(value) is not None:
        return RESOURCE
    return OBJECT


def is_scalar(value: Any) -> bool:
    return type_tag(value) in SCALAR_TAGS


def is_sequence(value: Any) -> bool:
    return isinstance(value, _SEQUENCE_TYPES)


def to_text(value: Any) -> str | None:
    """Return the string form of a scalar value, or None for non-scalars.

    Booleans render as ``"1"``/``"0"`` and bytes are decoded as UTF-8.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def byte_length(value: Any) -> int | None:
    """Return the byte length of the string form of a scalar, or None."""
    if isinstance(value, bytes):
        return len(value)
    text = to_text(value)
    if text is None:
        return None
    return len(text.encode("utf-8"))


def char_length(value: Any) -> int | None:
    """Return the character length of the string form of a scalar, or None."""
    text = to_text(value)
    return None if text is None else len(text)


def to_number(value: Any) -> int | float | Decimal | Fraction | None:
    """Return a numeric value for numbers and numeric strings, else None.

    Booleans and NaN are not numeric.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal, Fraction)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
        if not number.is_finite():
            return None
        return number
    return None


def same_value(left: Any, right: Any) -> bool:
    """Compare two scalars without treating booleans as numbers."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def matches_value(value: Any, allowed: Any) -> bool:
    """Compare a value against an allowed value.

    Like ``same_value``, but a numeric string also matches an equal number
    (``"1"`` matches ``1`` and ``" 2.0"`` matches ``2``).
    """
    if same_value(value, allowed):
        return True
    if isinstance(value, str) == isinstance(allowed, str):
        return False
    left, right = to_number(value), to_number(allowed)
    return left is not None and right is not None and left == right


def trim_string(value: Any) -> Any:
    """Strip surrounding whitespace from strings; other values pass through."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bytes):
        return value.strip()
    return value


def is_empty_string(value: Any) -> bool:
    return isinstance(value, (str, bytes)) and len(value) == 0
