"""Compiled rule model.

Each template entry compiles to exactly one :data:`RuleNode` variant.
The set of variants is closed; the validator dispatches over all of them
and treats anything else as an internal error.

All variants are frozen so a compiled template can be shared between
concurrent validation calls without locking.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cdl.domain.enums import EnumType
    from cdl.domain.errors import CdlError

ROOT = "/"
UNBOUNDED = -1

ValidatorFunc = Callable[[Any], "CdlError | None"]


class Pseudotype(StrEnum):
    """Scalar names that match a family of types rather than one type."""

    NUMBER = "number"
    INTEGER = "integer"
    IPPORT = "ipport"


@dataclass(frozen=True)
class Range:
    """Inclusive bound pair; :data:`UNBOUNDED` on either side means no limit."""

    min: int = UNBOUNDED
    max: int = UNBOUNDED

    def __post_init__(self) -> None:
        for bound in (self.min, self.max):
            if bound != UNBOUNDED and bound < 0:
                raise ValueError(f"Range bound must be non-negative or UNBOUNDED, got {bound}")
        if self.min != UNBOUNDED and self.max != UNBOUNDED and self.min > self.max:
            raise ValueError(f"Range min {self.min} exceeds max {self.max}")

    def contains(self, value: int) -> bool:
        return (self.min == UNBOUNDED or value >= self.min) and (
            self.max == UNBOUNDED or value <= self.max
        )

    def describe(self, value: int) -> str:
        """Explain why *value* falls outside this range."""
        low = max(self.min, 0)
        if self.max == UNBOUNDED:
            return f"got {value}, expecting at least {low}"
        return f"got {value}, expecting between {low} and {self.max}"


@dataclass(frozen=True)
class Requirement:
    """Presence and cardinality contract for one child of a map spec."""

    mandatory: bool = True
    is_array: bool = False
    range: Range = field(default_factory=Range)


# --- Rule variants ---


@dataclass(frozen=True)
class Scalar:
    """Value's concrete type name must equal ``type_name`` exactly."""

    type_name: str


@dataclass(frozen=True)
class PseudotypeRule:
    pseudotype: Pseudotype


@dataclass(frozen=True)
class EnumRef:
    enum_type: EnumType


@dataclass(frozen=True)
class MapSpec:
    """A closed map: only the named children may appear."""

    children: Mapping[str, Requirement]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", MappingProxyType(dict(self.children)))

    def mandatory_children(self) -> set[str]:
        return {name for name, req in self.children.items() if req.mandatory}


@dataclass(frozen=True)
class ArraySpec:
    element: str
    range: Range = field(default_factory=Range)


@dataclass(frozen=True)
class ValidatorRule:
    """User-supplied validator callback; owns its semantics entirely."""

    func: ValidatorFunc


@dataclass(frozen=True)
class Unconstrained:
    """Placeholder for a referenced rule name with no template entry."""


RuleNode = Scalar | PseudotypeRule | EnumRef | MapSpec | ArraySpec | ValidatorRule | Unconstrained


def rule_kind(node: RuleNode) -> str:
    """Short human-readable label for a rule variant."""
    if isinstance(node, Scalar):
        return f"scalar {node.type_name}"
    if isinstance(node, PseudotypeRule):
        return f"pseudotype {node.pseudotype}"
    if isinstance(node, EnumRef):
        return f"enum ({len(node.enum_type)} tokens)"
    if isinstance(node, MapSpec):
        return f"map ({len(node.children)} children)"
    if isinstance(node, ArraySpec):
        return f"array of {node.element}"
    if isinstance(node, ValidatorRule):
        return "validator"
    return "unconstrained"
