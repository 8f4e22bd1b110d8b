from __future__ import annotations

import collections.abc
import dataclasses
import enum
import functools
import inspect
import io
import sys
import types
import typing
from collections.abc import Mapping
from typing import Any, ForwardRef, TypeVar, get_args, get_origin

from pydantic import BaseModel
from pydantic_core import PydanticUndefined

from schemagen.contracts import annotations as ann
from schemagen.contracts.annotations import RequiredPolicy
from schemagen.contracts.base import (
    ContractDescriptor,
    ContractKind,
    ContractResolver,
    ContractResolverSettings,
    MemberDescriptor,
)
from schemagen.contracts.primitives import INT32_RANGE, BinaryContent, Int64, UInt64, is_primitive

_UNION_ORIGINS = {typing.Union, types.UnionType}
_TEXT_TYPES = (str, bytes, bytearray, memoryview)
_BINARY_TYPES = (io.IOBase, typing.IO, BinaryContent)
_LITERAL_DEFAULTS = (str, int, float, bool)


class DefaultContractResolver(ContractResolver):
    """Reflection-based contract for dataclasses, pydantic models and plain classes."""

    def __init__(self, settings: ContractResolverSettings | None = None):
        self.settings = settings or ContractResolverSettings()

    def resolve(self, type_: Any, overrides: Mapping[Any, Any] | None = None) -> ContractDescriptor:
        if overrides and _contains(overrides, type_):
            return ContractDescriptor(kind=ContractKind.CUSTOM, type=type_)

        origin = get_origin(type_)
        args = get_args(type_)
        if origin is typing.Annotated:
            return self.resolve(args[0], overrides)
        if _is_binary(origin if origin is not None else type_):
            return ContractDescriptor(kind=ContractKind.PRIMITIVE, type=type_, primitive=BinaryContent)
        if origin in _UNION_ORIGINS:
            return self._union_contract(type_, args, overrides)
        if is_primitive(type_):
            return ContractDescriptor(kind=ContractKind.PRIMITIVE, type=type_, primitive=type_)
        if isinstance(type_, typing.NewType):
            return self.resolve(type_.__supertype__, overrides)
        if isinstance(type_, type) and issubclass(type_, enum.Enum):
            return self._enum_contract(type_)
        if type_ is Any or type_ is object or isinstance(type_, TypeVar):
            return ContractDescriptor(kind=ContractKind.ANY, type=type_)

        cls = origin if origin is not None else type_
        if not isinstance(cls, type):
            return ContractDescriptor(kind=ContractKind.ANY, type=type_)

        if not _is_model(cls):
            if issubclass(cls, Mapping):
                return self._dictionary_contract(type_, cls, args)
            if cls is types.SimpleNamespace:
                return ContractDescriptor(
                    kind=ContractKind.DICTIONARY,
                    type=type_,
                    key_type=str,
                    value_type=Any,
                )
            if issubclass(cls, collections.abc.Iterable) and not issubclass(cls, _TEXT_TYPES):
                return self._enumerable_contract(type_, cls, args)

        members, extension = self._object_members(cls, args)
        if members or extension is not None:
            return ContractDescriptor(
                kind=ContractKind.OBJECT,
                type=type_,
                members=members,
                extension_data=extension,
            )
        return ContractDescriptor(kind=ContractKind.ANY, type=type_)

    def _union_contract(
        self,
        type_: Any,
        args: tuple[Any, ...],
        overrides: Mapping[Any, Any] | None,
    ) -> ContractDescriptor:
        non_null = [arg for arg in args if arg is not type(None)]
        nullable = len(non_null) != len(args)
        if len(non_null) == 1 and nullable:
            contract = self.resolve(non_null[0], overrides)
            contract.nullable = True
            return contract
        return ContractDescriptor(kind=ContractKind.ANY, type=type_, nullable=nullable)

    def _enum_contract(self, enum_type: type[enum.Enum]) -> ContractDescriptor:
        members = list(enum_type)
        values = [member.value for member in members]
        is_string = (
            self.settings.string_enums
            or issubclass(enum_type, str)
            or ann.is_string_enum(enum_type)
            or not all(_is_integer(value) for value in values)
        )
        if is_string:
            naming = self.settings.enum_naming
            literals = []
            for member in members:
                if isinstance(member.value, str):
                    literals.append(member.value)
                else:
                    literals.append(naming(member.name) if naming else member.name)
            return ContractDescriptor(
                kind=ContractKind.ENUM,
                type=enum_type,
                enum_values=literals,
                enum_is_string=True,
            )

        low, high = INT32_RANGE
        wide = ann.underlying_of(enum_type) in (Int64, UInt64) or any(
            not low <= value <= high for value in values
        )
        return ContractDescriptor(
            kind=ContractKind.ENUM,
            type=enum_type,
            enum_values=[int(value) for value in values],
            enum_format="int64" if wide else "int32",
        )

    def _dictionary_contract(self, type_: Any, cls: type, args: tuple[Any, ...]) -> ContractDescriptor:
        if not args:
            args = _generic_base_args(cls, Mapping)
        key_type = args[0] if len(args) > 0 else str
        value_type = args[1] if len(args) > 1 else Any
        dictionary_keys = None
        if isinstance(key_type, type) and issubclass(key_type, enum.Enum):
            dictionary_keys = [member.name for member in key_type]
        return ContractDescriptor(
            kind=ContractKind.DICTIONARY,
            type=type_,
            key_type=key_type,
            value_type=value_type,
            dictionary_keys=dictionary_keys,
        )

    def _enumerable_contract(self, type_: Any, cls: type, args: tuple[Any, ...]) -> ContractDescriptor:
        if not args:
            args = _generic_base_args(cls, collections.abc.Iterable)
        item_type: Any = Any
        if issubclass(cls, tuple) and args:
            if len(args) == 2 and args[1] is Ellipsis:
                item_type = args[0]
            elif all(arg == args[0] for arg in args):
                item_type = args[0]
        elif args:
            item_type = args[0]
        return ContractDescriptor(
            kind=ContractKind.ENUMERABLE,
            type=type_,
            item_type=item_type,
            is_set=issubclass(cls, collections.abc.Set),
        )

    def _object_members(
        self,
        cls: type,
        args: tuple[Any, ...],
    ) -> tuple[list[MemberDescriptor], MemberDescriptor | None]:
        if issubclass(cls, BaseModel):
            gathered = self._model_members(cls)
        else:
            gathered = self._class_members(cls)

        typevars = _typevar_map(cls, args)
        members: list[MemberDescriptor] = []
        extension: MemberDescriptor | None = None
        for member in gathered:
            member.member_type = _substitute(member.member_type, typevars)
            if member.extension_data:
                extension = member
                continue
            member.position = len(members)
            members.append(member)
        return members, extension

    def _class_members(self, cls: type) -> list[MemberDescriptor]:
        hints = _type_hints(cls)
        init_params = _constructor_parameters(cls)
        seen: set[str] = set()
        members: list[MemberDescriptor] = []
        for klass in cls.__mro__:
            if klass is object or klass.__module__ == "builtins" or klass is typing.Generic:
                continue
            own = vars(klass)
            for name in _own_annotation_names(klass):
                if name in seen or name.startswith("_"):
                    continue
                if isinstance(own.get(name), (property, functools.cached_property)):
                    continue
                hint = hints.get(name, Any)
                if _is_class_var(hint) or isinstance(hint, dataclasses.InitVar):
                    continue
                seen.add(name)
                has_default, default = _literal_default(own.get(name, dataclasses.MISSING))
                members.append(
                    self._describe(
                        cls,
                        klass,
                        name,
                        hint,
                        has_default=has_default,
                        default=default,
                    )
                )
            for name, value in own.items():
                if name in seen or name.startswith("_"):
                    continue
                if not isinstance(value, (property, functools.cached_property)):
                    continue
                seen.add(name)
                members.append(self._describe_property(cls, klass, name, value, init_params))
        return members

    def _describe_property(
        self,
        cls: type,
        klass: type,
        name: str,
        value: property | functools.cached_property,
        init_params: set[str],
    ) -> MemberDescriptor:
        if isinstance(value, functools.cached_property):
            getter, setter = value.func, None
        else:
            getter, setter = value.fget, value.fset
        readable = getter is not None
        writable = setter is not None
        constructor_bound = not writable and name in init_params
        accessor = getter or setter
        return self._describe(
            cls,
            klass,
            name,
            _accessor_hint(accessor, getter is not None),
            readable=readable,
            writable=writable or constructor_bound,
            constructor_bound=constructor_bound,
            obsolete=getattr(accessor, "__deprecated__", None) is not None,
            description=_first_line(getattr(accessor, "__doc__", None)),
        )

    def _model_members(self, cls: type[BaseModel]) -> list[MemberDescriptor]:
        fields = cls.model_fields
        seen: set[str] = set()
        members: list[MemberDescriptor] = []
        for klass in cls.__mro__:
            if not issubclass(klass, BaseModel) or klass is BaseModel:
                continue
            for name in _own_annotation_names(klass):
                info = fields.get(name)
                if info is None or name in seen:
                    continue
                seen.add(name)
                policy = None
                has_default = False
                default = None
                if info.is_required():
                    policy = RequiredPolicy.ALLOW_NULL if _is_nullable(info.annotation) else RequiredPolicy.ALWAYS
                elif info.default is not PydanticUndefined:
                    has_default, default = _literal_default(info.default)
                member = self._describe(
                    cls,
                    klass,
                    name,
                    info.annotation,
                    extra_metadata=tuple(info.metadata),
                    alias=info.serialization_alias or info.alias,
                    required_policy=policy,
                    has_default=has_default,
                    default=default,
                    description=info.description,
                    obsolete=bool(info.deprecated),
                )
                member.ignored = member.ignored or bool(info.exclude)
                members.append(member)
        for name, computed in cls.model_computed_fields.items():
            if name in seen:
                continue
            seen.add(name)
            members.append(
                self._describe(
                    cls,
                    cls,
                    name,
                    computed.return_type,
                    readable=True,
                    writable=False,
                    alias=computed.alias,
                    description=computed.description,
                    obsolete=bool(computed.deprecated),
                )
            )
        return members

    def _describe(
        self,
        cls: type,
        klass: type,
        attribute_name: str,
        hint: Any,
        *,
        readable: bool = True,
        writable: bool = True,
        constructor_bound: bool = False,
        extra_metadata: tuple[Any, ...] = (),
        alias: str | None = None,
        required_policy: RequiredPolicy | None = None,
        has_default: bool = False,
        default: Any = None,
        description: str | None = None,
        obsolete: bool = False,
    ) -> MemberDescriptor:
        member_type, metadata = _split_annotated(hint)
        metadata = (*metadata, *extra_metadata, *_companion_metadata(cls, attribute_name))

        json_property = ann.find(metadata, ann.JsonProperty)
        if json_property is not None and json_property.name:
            name = json_property.name
        elif alias:
            name = alias
        elif self.settings.property_naming is not None:
            name = self.settings.property_naming(attribute_name)
        else:
            name = attribute_name

        policy = required_policy
        if json_property is not None and json_property.required is not None:
            policy = json_property.required
        if policy is None:
            policy = ann.item_required_of(cls)

        default_marker = ann.find(metadata, ann.DefaultValue)
        if default_marker is not None:
            has_default, default = True, default_marker.value

        return MemberDescriptor(
            name=name,
            attribute_name=attribute_name,
            member_type=member_type,
            declaring_type=klass,
            readable=readable,
            writable=writable,
            constructor_bound=constructor_bound,
            required_policy=policy,
            nullable=_is_nullable(member_type),
            has_default=has_default,
            default=default,
            metadata=metadata,
            obsolete=obsolete or ann.has(metadata, ann.Obsolete),
            description=description,
            ignored=ann.has(metadata, ann.JsonIgnore),
            extension_data=ann.has(metadata, ann.ExtensionData),
        )


def _contains(overrides: Mapping[Any, Any], type_: Any) -> bool:
    try:
        return type_ in overrides
    except TypeError:
        return False


def _is_binary(candidate: Any) -> bool:
    return isinstance(candidate, type) and issubclass(candidate, _BINARY_TYPES)


def _is_model(cls: type) -> bool:
    return dataclasses.is_dataclass(cls) or issubclass(cls, BaseModel)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_nullable(type_: Any) -> bool:
    if type_ is Any or type_ is object:
        return True
    if get_origin(type_) in _UNION_ORIGINS:
        return type(None) in get_args(type_)
    return False


def _is_class_var(hint: Any) -> bool:
    if hint is typing.ClassVar:
        return True
    origin = get_origin(hint)
    if origin is typing.Annotated:
        return _is_class_var(get_args(hint)[0])
    return origin is typing.ClassVar


def _split_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(hint) is typing.Annotated:
        return get_args(hint)[0], tuple(hint.__metadata__)
    return hint, ()


def _literal_default(value: Any) -> tuple[bool, Any]:
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, _LITERAL_DEFAULTS):
        return True, value
    return False, None


def _first_line(doc: str | None) -> str | None:
    if not doc:
        return None
    for line in doc.strip().splitlines():
        if line.strip():
            return line.strip()
    return None


def _own_annotation_names(klass: type) -> list[str]:
    try:
        return list(inspect.get_annotations(klass))
    except NameError:
        return []


def _type_hints(cls: type) -> dict[str, Any]:
    localns = {name: value for name, value in vars(cls).items() if isinstance(value, type)}
    localns[cls.__name__] = cls
    try:
        return typing.get_type_hints(cls, localns=localns, include_extras=True)
    except (NameError, TypeError, AttributeError):
        hints: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            try:
                own = inspect.get_annotations(klass)
            except NameError:
                continue
            for name, hint in own.items():
                hints[name] = Any if isinstance(hint, (str, ForwardRef)) else hint
        return hints


def _accessor_hint(accessor: Any, is_getter: bool) -> Any:
    if accessor is None:
        return Any
    try:
        hints = typing.get_type_hints(accessor, include_extras=True)
    except (NameError, TypeError, AttributeError):
        return Any
    if is_getter:
        return hints.get("return", Any)
    params = [hint for key, hint in hints.items() if key != "return"]
    return params[-1] if params else Any


def _constructor_parameters(cls: type) -> set[str]:
    if cls.__init__ is object.__init__:
        return set()
    try:
        signature = inspect.signature(cls.__init__)
    except (TypeError, ValueError):
        return set()
    return {
        name
        for name, parameter in signature.parameters.items()
        if name != "self"
        and parameter.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    }


def _companion_metadata(cls: type, attribute_name: str) -> tuple[Any, ...]:
    companion = ann.metadata_type_of(cls)
    if companion is None:
        return ()
    hint = _type_hints(companion).get(attribute_name)
    if hint is None:
        return ()
    return _split_annotated(hint)[1]


def _generic_base_args(cls: type, abc: type) -> tuple[Any, ...]:
    for klass in cls.__mro__:
        for base in vars(klass).get("__orig_bases__", ()):
            origin = get_origin(base)
            if isinstance(origin, type) and issubclass(origin, abc):
                return tuple(_resolve_forward(arg, cls, klass) for arg in get_args(base))
    return ()


def _resolve_forward(arg: Any, owner: type, declaring: type) -> Any:
    """Evaluate string and nested forward references in a base class argument."""
    if isinstance(arg, type):
        return arg
    module = sys.modules.get(declaring.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = {declaring.__name__: declaring, owner.__name__: owner}
    holder = types.SimpleNamespace(__annotations__={"value": arg})
    try:
        return typing.get_type_hints(holder, globalns=globalns, localns=localns, include_extras=True)["value"]
    except (NameError, SyntaxError, TypeError, AttributeError):
        return Any


def _typevar_map(cls: type, args: tuple[Any, ...]) -> dict[Any, Any]:
    mapping: dict[Any, Any] = {}
    for klass in reversed(cls.__mro__):
        for base in vars(klass).get("__orig_bases__", ()):
            params = getattr(get_origin(base), "__parameters__", ())
            for param, arg in zip(params, get_args(base)):
                mapping[param] = _substitute(arg, mapping)
    for param, arg in zip(getattr(cls, "__parameters__", ()), args):
        mapping[param] = arg
    return mapping


def _substitute(type_: Any, mapping: dict[Any, Any]) -> Any:
    if not mapping:
        return type_
    if isinstance(type_, TypeVar):
        return mapping.get(type_, type_)
    if isinstance(type_, type):
        return type_
    params = getattr(type_, "__parameters__", None)
    if not params:
        return type_
    try:
        return type_[tuple(mapping.get(param, param) for param in params)]
    except TypeError:
        return type_
