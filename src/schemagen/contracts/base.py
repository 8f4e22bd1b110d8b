from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, get_args

from schemagen.contracts.annotations import RequiredPolicy

NamingStrategy = Callable[[str], str]


class ContractKind(enum.Enum):
    CUSTOM = "custom"
    PRIMITIVE = "primitive"
    ENUM = "enum"
    DICTIONARY = "dictionary"
    ENUMERABLE = "enumerable"
    OBJECT = "object"
    ANY = "any"


@dataclass
class MemberDescriptor:
    name: str
    attribute_name: str
    member_type: Any
    declaring_type: Any = None
    readable: bool = True
    writable: bool = True
    constructor_bound: bool = False
    required_policy: RequiredPolicy | None = None
    nullable: bool = False
    position: int = 0
    has_default: bool = False
    default: Any = None
    metadata: tuple[Any, ...] = ()
    obsolete: bool = False
    description: str | None = None
    ignored: bool = False
    extension_data: bool = False


@dataclass
class ContractDescriptor:
    kind: ContractKind
    type: Any
    nullable: bool = False
    primitive: Any = None
    enum_values: list[Any] = field(default_factory=list)
    enum_is_string: bool = False
    enum_format: str = "int32"
    key_type: Any = None
    value_type: Any = None
    dictionary_keys: list[str] | None = None
    item_type: Any = None
    is_set: bool = False
    members: list[MemberDescriptor] = field(default_factory=list)
    extension_data: MemberDescriptor | None = None

    @property
    def is_self_referencing(self) -> bool:
        """True when the element type names this container, directly or nested."""
        if self.kind is ContractKind.DICTIONARY:
            return self.value_type is not None and _mentions(self.value_type, self.type)
        if self.kind is ContractKind.ENUMERABLE:
            return self.item_type is not None and _mentions(self.item_type, self.type)
        return False


def _mentions(type_: Any, target: Any) -> bool:
    if type_ == target:
        return True
    return any(_mentions(arg, target) for arg in get_args(type_))


@dataclass(frozen=True)
class ContractResolverSettings:
    string_enums: bool = False
    enum_naming: NamingStrategy | None = None
    property_naming: NamingStrategy | None = None


class ContractResolver(ABC):
    """Reports how values of a type are laid out on the wire."""

    @abstractmethod
    def resolve(self, type_: Any, overrides: Mapping[Any, Any] | None = None) -> ContractDescriptor:
        raise NotImplementedError


def camel_case(name: str) -> str:
    parts = [part.lower() if part.isupper() else part for part in name.split("_") if part]
    if not parts:
        return name
    head, *rest = parts
    return head[:1].lower() + head[1:] + "".join(part[:1].upper() + part[1:] for part in rest)


NAMING_STRATEGIES: dict[str, NamingStrategy] = {
    "camel": camel_case,
}
