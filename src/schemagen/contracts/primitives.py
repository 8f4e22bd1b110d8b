from __future__ import annotations

import datetime
import decimal
import uuid
from typing import Any, NewType

# Width markers for values whose wire width differs from the Python type.
Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)
Char = NewType("Char", str)
Version = NewType("Version", str)


class BinaryContent:
    """Marker for uploaded or streamed file content."""


PRIMITIVE_FORMATS: dict[Any, tuple[str, str | None]] = {
    bool: ("boolean", None),
    int: ("integer", "int32"),
    Int8: ("integer", "int32"),
    Int16: ("integer", "int32"),
    Int32: ("integer", "int32"),
    UInt8: ("integer", "int32"),
    UInt16: ("integer", "int32"),
    UInt32: ("integer", "int32"),
    Int64: ("integer", "int64"),
    UInt64: ("integer", "int64"),
    Float32: ("number", "float"),
    float: ("number", "double"),
    Float64: ("number", "double"),
    decimal.Decimal: ("number", "double"),
    str: ("string", None),
    Char: ("string", None),
    bytes: ("string", "byte"),
    bytearray: ("string", "byte"),
    datetime.datetime: ("string", "date-time"),
    datetime.date: ("string", "date"),
    datetime.time: ("string", "time"),
    datetime.timedelta: ("string", "date-span"),
    uuid.UUID: ("string", "uuid"),
    Version: ("string", None),
    BinaryContent: ("string", "binary"),
}

INT32_RANGE = (-(2**31), 2**31 - 1)


def is_primitive(type_: Any) -> bool:
    try:
        return type_ in PRIMITIVE_FORMATS
    except TypeError:
        return False
