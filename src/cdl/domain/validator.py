"""Recursive validation of decoded trees against a compiled template.

Traversal is fail-fast: the first failure raises and aborts the call.
Each enclosing map key and array index is appended to the error's context
as the failure unwinds, so ``str(err)`` reads innermost to outermost::

    Bad type; got str expected int (code BAD_TYPE) near 'earth' at index 1 at 'mango'
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Mapping, Sequence
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from cdl.domain.configurator import Configurator, coerce, dispatch
from cdl.domain.errors import CdlError, ErrorKind
from cdl.domain.path import Path
from cdl.domain.rules import (
    ROOT,
    ArraySpec,
    EnumRef,
    MapSpec,
    Pseudotype,
    PseudotypeRule,
    Range,
    RuleNode,
    Scalar,
    Unconstrained,
    ValidatorFunc,
    ValidatorRule,
)

logger = logging.getLogger(__name__)


# --- Scalar predicates ---


def is_number(value: Any) -> bool:
    """Any real numeric value; booleans are not numbers."""
    return isinstance(value, (numbers.Real, Decimal)) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    """Integral numbers, and finite floats with no fractional part."""
    if not is_number(value):
        return False
    if isinstance(value, numbers.Integral):
        return True
    return math.isfinite(value) and value == int(value)


def split_host_port(hostport: str) -> tuple[str, str]:
    """Split ``host:port`` or ``[host]:port`` into its two parts.

    Raises:
        ValueError: If the address is not of either form.
    """
    colon = hostport.rfind(":")
    if colon < 0:
        raise ValueError(f"missing port in address {hostport!r}")

    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {hostport!r}")
        if end + 1 == len(hostport):
            raise ValueError(f"missing port in address {hostport!r}")
        if end + 1 != colon:
            if hostport[end + 1] == ":":
                raise ValueError(f"too many colons in address {hostport!r}")
            raise ValueError(f"missing port in address {hostport!r}")
        host = hostport[1:end]
        if "[" in hostport[1:] or "]" in hostport[end + 1 :]:
            raise ValueError(f"unexpected bracket in address {hostport!r}")
    else:
        host = hostport[:colon]
        if ":" in host:
            raise ValueError(f"too many colons in address {hostport!r}")
        if "[" in hostport or "]" in hostport:
            raise ValueError(f"unexpected bracket in address {hostport!r}")
    return host, hostport[colon + 1 :]


def is_ipport(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        split_host_port(value)
    except ValueError:
        return False
    return True


_PSEUDOTYPE_CHECKS = {
    Pseudotype.NUMBER: is_number,
    Pseudotype.INTEGER: is_integer,
    Pseudotype.IPPORT: is_ipport,
}


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _run_validator(func: ValidatorFunc, value: Any) -> None:
    """Call a user validator, propagating a copy of any error it produces."""
    try:
        result = func(value)
    except CdlError as err:
        raise err.copy() from err
    if result is None:
        return
    if isinstance(result, CdlError):
        raise result.copy()
    raise CdlError(
        ErrorKind.INTERNAL,
        f"validator returned {type(result).__name__}, expected CdlError or None",
    )


class CompiledTemplate:
    """An immutable rule set produced by :func:`cdl.compile_template`.

    Safe to share between threads: validation never mutates the rules,
    and each call owns its own :class:`~cdl.domain.path.Path` chain.
    """

    def __init__(self, rules: Mapping[str, RuleNode]) -> None:
        self._rules: Mapping[str, RuleNode] = MappingProxyType(dict(rules))

    @property
    def rules(self) -> Mapping[str, RuleNode]:
        return self._rules

    def rule_names(self) -> list[str]:
        return sorted(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"CompiledTemplate({len(self._rules)} rules)"

    # --- Public entry points ---

    def validate(self, instance: Any, configurator: Configurator | None = None) -> None:
        """Validate *instance*, firing configurator handlers bottom-up.

        Raises:
            CdlError: The first failure found, with its context trail.
        """
        try:
            self._validate_and_configure(instance, ROOT, configurator, Path())
        except CdlError as err:
            logger.debug(
                "Validation failed: %s",
                err,
                extra={"error_kind": str(err.kind), "breadcrumb": err.breadcrumb},
            )
            raise

    def check(self, instance: Any, configurator: Configurator | None = None) -> CdlError | None:
        """Non-raising variant of :meth:`validate`; returns the error or None."""
        try:
            self.validate(instance, configurator)
        except CdlError as err:
            return err
        return None

    # --- Traversal ---

    def _lookup(self, name: str) -> RuleNode:
        node = self._rules.get(name)
        if node is None:
            raise CdlError(ErrorKind.UNKNOWN_KEY, f"no rule named '{name}'")
        return node

    def _validate_and_configure(
        self, value: Any, name: str, configurator: Configurator | None, path: Path
    ) -> None:
        node = self._lookup(name)
        self._validate_item(value, node, configurator, path)
        if configurator and name in configurator:
            dispatch(configurator[name], coerce(node, value), path)

    def _validate_item(
        self, value: Any, node: RuleNode, configurator: Configurator | None, path: Path
    ) -> None:
        if isinstance(node, ValidatorRule):
            _run_validator(node.func, value)
        elif isinstance(node, EnumRef):
            if not isinstance(value, str):
                raise CdlError(
                    ErrorKind.BAD_TYPE,
                    f"got {type(value).__name__} expected an option as a string",
                )
            if value not in node.enum_type:
                raise CdlError(ErrorKind.BAD_ENUM_VALUE, f"unknown value '{value}'")
        elif isinstance(node, MapSpec):
            self._validate_map(value, node, configurator, path)
        elif isinstance(node, ArraySpec):
            self._validate_array(value, node.element, node.range, configurator, path)
        elif isinstance(node, PseudotypeRule):
            if not _PSEUDOTYPE_CHECKS[node.pseudotype](value):
                raise CdlError(
                    ErrorKind.BAD_TYPE, f"got {type(value).__name__} expected {node.pseudotype}"
                )
        elif isinstance(node, Scalar):
            if type(value).__name__ != node.type_name:
                raise CdlError(
                    ErrorKind.BAD_TYPE, f"got {type(value).__name__} expected {node.type_name}"
                )
        elif isinstance(node, Unconstrained):
            return
        else:
            raise CdlError(ErrorKind.INTERNAL, f"unhandled rule node {type(node).__name__}")

    def _validate_map(
        self, value: Any, spec: MapSpec, configurator: Configurator | None, path: Path
    ) -> None:
        if not isinstance(value, Mapping):
            raise CdlError(ErrorKind.EXPECTED_MAP, f"got {type(value).__name__}")

        missing = spec.mandatory_children()
        for key, child in value.items():
            req = spec.children.get(key) if isinstance(key, str) else None
            if req is None:
                raise CdlError.quoted(ErrorKind.BAD_KEY, str(key))
            try:
                if req.is_array:
                    self._validate_array(child, key, req.range, configurator, path.push(key))
                else:
                    self._validate_and_configure(child, key, configurator, path.push(key))
            except CdlError as err:
                err.add_context_quoted(key)
                raise
            missing.discard(key)

        if missing:
            names = ", ".join(f"'{name}'" for name in sorted(missing))
            raise CdlError(ErrorKind.MISSING_MANDATORY, f"missing {names}")

    def _validate_array(
        self,
        value: Any,
        element: str,
        rng: Range,
        configurator: Configurator | None,
        path: Path,
    ) -> None:
        if not _is_sequence(value):
            raise CdlError(ErrorKind.EXPECTED_ARRAY, f"got {type(value).__name__}")
        if not rng.contains(len(value)):
            raise CdlError(ErrorKind.OUT_OF_RANGE, rng.describe(len(value)))
        for i, item in enumerate(value):
            try:
                self._validate_and_configure(item, element, configurator, path.push(i))
            except CdlError as err:
                err.add_context(f"index {i}")
                raise
