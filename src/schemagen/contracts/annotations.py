"""Metadata markers read from ``typing.Annotated`` member hints.

Validation markers (``Range``, ``StringLength`` ...) feed the constraint
mapper. Serializer markers (``JsonProperty``, ``JsonIgnore`` ...) describe
how the wire contract names, hides and requires members.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

T = TypeVar("T", bound=type)


class RequiredPolicy(enum.Enum):
    DEFAULT = "default"
    ALLOW_NULL = "allow_null"
    ALWAYS = "always"
    DISALLOW_NULL = "disallow_null"


class DataTypeKind(str, enum.Enum):
    DATE = "date"
    DATE_TIME = "date-time"
    TIME = "time"
    DURATION = "duration"
    PASSWORD = "password"
    EMAIL_ADDRESS = "email"
    URL = "uri"
    PHONE_NUMBER = "tel"
    CREDIT_CARD = "credit-card"
    MULTILINE_TEXT = "multiline"
    HTML = "html"


# Validation markers


@dataclass(frozen=True)
class Range:
    minimum: float | int | None = None
    maximum: float | int | None = None


@dataclass(frozen=True)
class StringLength:
    maximum: int
    minimum: int = 0


@dataclass(frozen=True)
class MinLength:
    length: int


@dataclass(frozen=True)
class MaxLength:
    length: int


@dataclass(frozen=True)
class RegularExpression:
    pattern: str


@dataclass(frozen=True)
class DataType:
    kind: DataTypeKind | str

    @property
    def format(self) -> str:
        if isinstance(self.kind, DataTypeKind):
            return self.kind.value
        return self.kind


@dataclass(frozen=True)
class DefaultValue:
    value: Any


@dataclass(frozen=True)
class Required:
    pass


@dataclass(frozen=True)
class NotNull:
    pass


@dataclass(frozen=True)
class Obsolete:
    message: str | None = None


# Serializer markers


@dataclass(frozen=True)
class JsonProperty:
    name: str | None = None
    required: RequiredPolicy | None = None


@dataclass(frozen=True)
class JsonIgnore:
    pass


@dataclass(frozen=True)
class ExtensionData:
    pass


_OBJECT_ATTR = "__schemagen_item_required__"
_METADATA_ATTR = "__schemagen_metadata_type__"
_STRING_ENUM_ATTR = "__schemagen_string_enum__"
_UNDERLYING_ATTR = "__schemagen_underlying__"


def json_object(*, item_required: RequiredPolicy) -> Callable[[T], T]:
    """Apply ``item_required`` to every member without its own policy."""

    def decorate(cls: T) -> T:
        setattr(cls, _OBJECT_ATTR, item_required)
        return cls

    return decorate


def metadata_type(companion: type) -> Callable[[T], T]:
    """Read validation markers for members from ``companion``'s annotations."""

    def decorate(cls: T) -> T:
        setattr(cls, _METADATA_ATTR, companion)
        return cls

    return decorate


def string_enum(cls: T) -> T:
    setattr(cls, _STRING_ENUM_ATTR, True)
    return cls


def enum_underlying(underlying: Any) -> Callable[[T], T]:
    def decorate(cls: T) -> T:
        setattr(cls, _UNDERLYING_ATTR, underlying)
        return cls

    return decorate


def item_required_of(cls: Any) -> RequiredPolicy | None:
    return _own(cls, _OBJECT_ATTR)


def metadata_type_of(cls: Any) -> type | None:
    return _own(cls, _METADATA_ATTR)


def is_string_enum(cls: Any) -> bool:
    return bool(_own(cls, _STRING_ENUM_ATTR))


def underlying_of(cls: Any) -> Any:
    return _own(cls, _UNDERLYING_ATTR)


def find(metadata: tuple[Any, ...], marker: type) -> Any:
    for item in metadata:
        if isinstance(item, marker):
            return item
    return None


def has(metadata: tuple[Any, ...], marker: type) -> bool:
    return find(metadata, marker) is not None


def _own(cls: Any, attr: str) -> Any:
    if not isinstance(cls, type):
        return None
    return vars(cls).get(attr)
