from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import annotated_types as at

from schemagen.contracts import annotations as ann
from schemagen.schema.model import Schema


@dataclass
class ConstraintSet:
    minimum: float | int | None = None
    maximum: float | int | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: str | None = None
    has_default: bool = False
    default: Any = None

    def tighten_min_length(self, value: int) -> None:
        if self.min_length is None or value > self.min_length:
            self.min_length = value

    def tighten_max_length(self, value: int) -> None:
        if self.max_length is None or value < self.max_length:
            self.max_length = value


def map_constraints(metadata: tuple[Any, ...]) -> ConstraintSet:
    """Derive schema constraints from a member's validation markers.

    When several length markers apply to one member the tightest bound wins:
    the largest minimum and the smallest maximum.
    """
    constraints = ConstraintSet()
    for item in metadata:
        if isinstance(item, ann.Range):
            if item.minimum is not None:
                constraints.minimum, constraints.exclusive_minimum = item.minimum, False
            if item.maximum is not None:
                constraints.maximum, constraints.exclusive_maximum = item.maximum, False
        elif isinstance(item, at.Interval):
            _apply_interval(constraints, item)
        elif isinstance(item, (at.Ge, at.Gt, at.Le, at.Lt)):
            _apply_bound(constraints, item)
        elif isinstance(item, ann.StringLength):
            if item.minimum:
                constraints.tighten_min_length(item.minimum)
            constraints.tighten_max_length(item.maximum)
        elif isinstance(item, ann.MinLength):
            constraints.tighten_min_length(item.length)
        elif isinstance(item, ann.MaxLength):
            constraints.tighten_max_length(item.length)
        elif isinstance(item, at.Len):
            if item.min_length:
                constraints.tighten_min_length(item.min_length)
            if item.max_length is not None:
                constraints.tighten_max_length(item.max_length)
        elif isinstance(item, at.MinLen):
            constraints.tighten_min_length(item.min_length)
        elif isinstance(item, at.MaxLen):
            constraints.tighten_max_length(item.max_length)
        elif isinstance(item, ann.RegularExpression):
            constraints.pattern = item.pattern
        elif isinstance(item, ann.DataType):
            constraints.format = item.format
        elif isinstance(item, ann.DefaultValue):
            constraints.has_default = True
            constraints.default = item.value
        elif isinstance(getattr(item, "pattern", None), str):
            # pydantic keeps Field(pattern=...) in a general metadata object
            constraints.pattern = item.pattern
    return constraints


def apply_constraints(schema: Schema, constraints: ConstraintSet) -> None:
    if constraints.minimum is not None:
        schema.minimum = constraints.minimum
        schema.exclusive_minimum = constraints.exclusive_minimum
    if constraints.maximum is not None:
        schema.maximum = constraints.maximum
        schema.exclusive_maximum = constraints.exclusive_maximum
    if schema.type == "array":
        if constraints.min_length is not None:
            schema.min_items = constraints.min_length
        if constraints.max_length is not None:
            schema.max_items = constraints.max_length
    else:
        if constraints.min_length is not None:
            schema.min_length = constraints.min_length
        if constraints.max_length is not None:
            schema.max_length = constraints.max_length
    if constraints.pattern is not None:
        schema.pattern = constraints.pattern
    if constraints.format is not None:
        schema.format = constraints.format
    if constraints.has_default:
        schema.default = constraints.default


def _apply_interval(constraints: ConstraintSet, interval: at.Interval) -> None:
    if interval.ge is not None:
        _apply_bound(constraints, at.Ge(interval.ge))
    if interval.gt is not None:
        _apply_bound(constraints, at.Gt(interval.gt))
    if interval.le is not None:
        _apply_bound(constraints, at.Le(interval.le))
    if interval.lt is not None:
        _apply_bound(constraints, at.Lt(interval.lt))


def _apply_bound(constraints: ConstraintSet, bound: Any) -> None:
    if isinstance(bound, at.Ge):
        constraints.minimum, constraints.exclusive_minimum = bound.ge, False
    elif isinstance(bound, at.Gt):
        constraints.minimum, constraints.exclusive_minimum = bound.gt, True
    elif isinstance(bound, at.Le):
        constraints.maximum, constraints.exclusive_maximum = bound.le, False
    elif isinstance(bound, at.Lt):
        constraints.maximum, constraints.exclusive_maximum = bound.lt, True
