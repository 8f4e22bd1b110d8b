from __future__ import annotations

import types
import typing
from typing import Any, ForwardRef, get_args, get_origin

_UNION_ORIGINS = {typing.Union, types.UnionType}


def default_schema_id(type_: Any) -> str:
    """Build a schema id from a type name and its generic arguments.

    Argument ids are prefixed in argument order, so ``Pair[bool, int]``
    becomes ``BoolIntPair``. Parametrized pydantic models are read the same
    way. Nested classes contribute only their own name.
    """
    generic_metadata = getattr(type_, "__pydantic_generic_metadata__", None)
    if generic_metadata and generic_metadata.get("origin") is not None and generic_metadata.get("args"):
        prefix = "".join(default_schema_id(arg) for arg in generic_metadata["args"])
        return prefix + _type_name(generic_metadata["origin"])

    origin = get_origin(type_)
    args = get_args(type_)
    if origin is typing.Annotated:
        return default_schema_id(args[0])
    if origin in _UNION_ORIGINS:
        return "".join(default_schema_id(arg) for arg in args if arg is not type(None))
    if origin is not None and args:
        prefix = "".join(default_schema_id(arg) for arg in args if arg is not Ellipsis)
        return prefix + _type_name(origin)
    return _type_name(type_)


def _type_name(type_: Any) -> str:
    if type_ is Any or type_ is object:
        return "Object"
    if isinstance(type_, str):
        return type_
    if isinstance(type_, ForwardRef):
        return type_.__forward_arg__
    name = getattr(type_, "__name__", None)
    if not isinstance(name, str):
        name = getattr(type_, "_name", None) or repr(type_)
    if getattr(type_, "__module__", None) in {"builtins", "typing", "collections.abc"}:
        return name[:1].upper() + name[1:]
    return name
