"""Template grammar compiler.

A template is a flat mapping of rule name to spec. Each spec is one of:

- a grammar string:
  - ``{}child1 mods child2 mods ...``: a closed map
  - ``[]child`` with an optional ``{n,m}`` / ``{n,}`` suffix: an array
  - ``number`` / ``integer`` / ``ipport``: a pseudotype
  - any other text: a scalar type name, matched verbatim
  - ``""``: an alias for the root rule
- a validator callback taking the raw value
- an :class:`~cdl.domain.enums.EnumType`

Map child modifiers: ``?`` optional, ``!`` mandatory (default), ``+`` one
or more, ``*`` zero or more, ``{n,m}`` / ``{n,}`` explicit array range.

Compilation runs in two passes. The first parses every entry on its own;
the second resolves root aliases and registers every referenced-but-
undefined child name as :class:`~cdl.domain.rules.Unconstrained`. The
outcome therefore never depends on entry order.
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from cdl.domain.enums import EnumType
from cdl.domain.errors import CdlError, ErrorKind
from cdl.domain.rules import (
    ROOT,
    UNBOUNDED,
    ArraySpec,
    EnumRef,
    MapSpec,
    Pseudotype,
    PseudotypeRule,
    Range,
    Requirement,
    RuleNode,
    Scalar,
    Unconstrained,
    ValidatorFunc,
    ValidatorRule,
)
from cdl.domain.validator import CompiledTemplate

logger = logging.getLogger(__name__)

MAP_PREFIX = "{}"
ARRAY_PREFIX = "[]"

Template = Mapping[str, "str | ValidatorFunc | EnumType"]

_RULE_NAME = re.compile(r"/|\w+", re.ASCII)
_CHILD_TOKEN = re.compile(r"(\w+)(.*)", re.ASCII)
_TOKEN_SEPARATOR = re.compile(r"[\s|]+")
# One modifier at a time; a closed brace group is parsed as a range below.
_MODIFIER = re.compile(r"[*+!?]|\{[^{}]*\}")
_RANGE_BODY = re.compile(r"\{(\d+),(\d*)\}", re.ASCII)
_ARRAY_BODY = re.compile(r"(\w+)(\{(\d+),(\d*)\})?", re.ASCII)

_PRESENCE = {"?": False, "!": True}
_PSEUDOTYPES = frozenset(Pseudotype)


def _make_range(low: str, high: str, token: str) -> Range:
    """Build a Range from regex-captured bounds; *high* may be empty."""
    lo = int(low)
    if not high:
        return Range(lo, UNBOUNDED)
    hi = int(high)
    if lo > hi:
        raise CdlError.quoted(ErrorKind.BAD_RANGE_OPTION_MODIFIER_VALUE, token)
    return Range(lo, hi)


def _parse_modifiers(token: str, modifiers: str, *, allow_override: bool) -> Requirement:
    mandatory = True
    is_array = False
    rng = Range()
    presence_seen: set[bool] = set()
    cardinality_seen: set[Range] = set()

    pos = 0
    while pos < len(modifiers):
        m = _MODIFIER.match(modifiers, pos)
        if m is None:
            raise CdlError.quoted(ErrorKind.BAD_OPTION_MODIFIER, token)
        mod = m.group(0)
        pos = m.end()

        if mod in _PRESENCE:
            mandatory = _PRESENCE[mod]
            presence_seen.add(mandatory)
            continue

        if mod == "+":
            rng = Range(1, UNBOUNDED)
        elif mod == "*":
            rng = Range(0, UNBOUNDED)
        else:
            bounds = _RANGE_BODY.fullmatch(mod)
            if bounds is None:
                raise CdlError.quoted(ErrorKind.BAD_RANGE_OPTION_MODIFIER, token)
            rng = _make_range(bounds.group(1), bounds.group(2), token)
        is_array = True
        cardinality_seen.add(rng)

    if not allow_override and (len(presence_seen) > 1 or len(cardinality_seen) > 1):
        raise CdlError.quoted(ErrorKind.AMBIGUOUS_MODIFIER, token)
    return Requirement(mandatory=mandatory, is_array=is_array, range=rng)


def parse_map_spec(body: str, *, allow_override: bool = False) -> MapSpec:
    """Parse the text following ``{}`` into a :class:`MapSpec`.

    Tokens are separated by whitespace or ``|``.
    """
    children: dict[str, Requirement] = {}
    for token in _TOKEN_SEPARATOR.split(body):
        if not token:
            continue
        m = _CHILD_TOKEN.fullmatch(token)
        if m is None:
            raise CdlError.quoted(ErrorKind.BAD_OPTION_VALUE, token)
        name, modifiers = m.group(1), m.group(2)
        if name in children and not allow_override:
            raise CdlError.quoted(ErrorKind.AMBIGUOUS_MODIFIER, token).set_supplementary(
                f"child '{name}' listed more than once"
            )
        children[name] = _parse_modifiers(token, modifiers, allow_override=allow_override)
    return MapSpec(children)


def parse_array_spec(body: str) -> ArraySpec:
    """Parse the text following ``[]`` into an :class:`ArraySpec`."""
    m = _ARRAY_BODY.fullmatch(body)
    if m is None:
        raise CdlError.quoted(ErrorKind.BAD_RANGE_OPTION_MODIFIER, body)
    if m.group(2) is None:
        return ArraySpec(m.group(1))
    return ArraySpec(m.group(1), _make_range(m.group(3), m.group(4), body))


def parse_grammar(spec: str, *, allow_override: bool = False) -> RuleNode:
    """Compile one non-empty grammar string to a rule node."""
    if spec.startswith(MAP_PREFIX):
        return parse_map_spec(spec.removeprefix(MAP_PREFIX), allow_override=allow_override)
    if spec.startswith(ARRAY_PREFIX):
        return parse_array_spec(spec.removeprefix(ARRAY_PREFIX))
    if spec in _PSEUDOTYPES:
        return PseudotypeRule(Pseudotype(spec))
    return Scalar(spec)


def _accepts_one_argument(func: Callable[..., Any]) -> bool:
    if isinstance(func, type):
        return False
    try:
        inspect.signature(func).bind(None)
    except TypeError:
        return False
    except ValueError:
        # Some builtins expose no signature; trust them.
        return True
    return True


def compile_template(
    template: Mapping[str, Any], *, allow_modifier_override: bool = False
) -> CompiledTemplate:
    """Compile *template* into an immutable, reusable rule set.

    Args:
        template: Flat mapping of rule name to grammar string, validator
            callback, or :class:`EnumType`.
        allow_modifier_override: Resolve conflicting map-child modifiers by
            letting the last one scanned win instead of failing.

    Raises:
        CdlError: On the first invalid entry, or ``MISSING_ROOT``.
    """
    rules: dict[str, RuleNode] = {}
    aliases: list[str] = []

    for name, spec in template.items():
        if not isinstance(name, str) or _RULE_NAME.fullmatch(name) is None:
            raise CdlError.quoted(ErrorKind.BAD_KEY, str(name))
        if isinstance(spec, str):
            if spec == "":
                aliases.append(name)
                continue
            try:
                rules[name] = parse_grammar(spec, allow_override=allow_modifier_override)
            except CdlError as err:
                err.add_context_quoted(name)
                raise
        elif isinstance(spec, EnumType):
            rules[name] = EnumRef(spec)
        elif callable(spec) and _accepts_one_argument(spec):
            rules[name] = ValidatorRule(spec)
        else:
            raise CdlError.quoted(ErrorKind.BAD_VALUE, type(spec).__name__).add_context_quoted(
                name
            )

    for name in aliases:
        if name == ROOT:
            raise CdlError.quoted(ErrorKind.BAD_VALUE, ROOT).set_supplementary(
                "root cannot alias itself"
            )
        if ROOT in rules:
            rules[name] = rules[ROOT]

    referenced: set[str] = set()
    for node in rules.values():
        if isinstance(node, MapSpec):
            referenced.update(node.children)
        elif isinstance(node, ArraySpec):
            referenced.add(node.element)
    for child in sorted(referenced - rules.keys()):
        rules[child] = Unconstrained()

    if ROOT not in rules:
        raise CdlError(ErrorKind.MISSING_ROOT)

    auto = sum(isinstance(n, Unconstrained) for n in rules.values())
    logger.debug(
        "Compiled template: %d rules (%d auto-registered)",
        len(rules),
        auto,
        extra={"rule_count": len(rules), "auto_registered": auto},
    )
    return CompiledTemplate(rules)


def must_compile(
    template: Mapping[str, Any], *, allow_modifier_override: bool = False
) -> CompiledTemplate:
    """Like :func:`compile_template` but raises ValueError on failure.

    Simplifies initialization of module-level compiled templates.
    """
    try:
        return compile_template(template, allow_modifier_override=allow_modifier_override)
    except CdlError as err:
        raise ValueError(f"cdl: compile failed: {err}") from err
