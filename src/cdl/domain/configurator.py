"""Post-validation configurators: callbacks and typed destinations.

A configurator maps rule names to handlers. After a value (and, for maps
and arrays, all of its descendants) validates, the handler registered for
its rule name fires once, bottom-up. A handler is either:

- a callback ``(value, path) -> CdlError | None``; or
- a :class:`Sink` such as :class:`Destination` or :class:`EnumDestination`
  that stores the value in caller-owned storage after a type check.

Values are coerced before dispatch: ``number`` becomes ``float``,
``integer`` becomes ``int``, and enum rules produce an
:class:`~cdl.domain.enums.Enum`.

The engine performs no locking. Handlers that mutate shared state need
external synchronization when one configurator is used concurrently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from cdl.domain.enums import Enum, EnumType
from cdl.domain.errors import CdlError, ErrorKind
from cdl.domain.path import Path
from cdl.domain.rules import EnumRef, Pseudotype, PseudotypeRule, RuleNode

ConfiguratorFunc = Callable[[Any, Path], "CdlError | None"]


class Sink(ABC):
    """Caller-implemented destination for a validated value."""

    @abstractmethod
    def accept(self, value: Any) -> None:
        """Store *value* or raise :class:`CdlError` leaving state untouched."""
        ...


class Destination[T](Sink):
    """Holds a value whose concrete type must be exactly ``value_type``.

    Example::

        port = Destination(int)
        ct.validate(doc, {"port": port})
        port.value  # -> 8080
    """

    def __init__(self, value_type: type[T], value: T | None = None) -> None:
        self.value_type = value_type
        self.value = value
        self.assigned = False

    def accept(self, value: Any) -> None:
        if type(value) is not self.value_type:
            raise CdlError(
                ErrorKind.BAD_TYPE,
                f"at configuration got {type(value).__name__} "
                f"expected {self.value_type.__name__}",
            )
        self.value = value
        self.assigned = True

    def __repr__(self) -> str:
        return f"Destination({self.value_type.__name__}, {self.value!r})"


class EnumDestination(Sink):
    """Holds an :class:`Enum` of its own bound :class:`EnumType`.

    Accepts a raw token or an already-coerced Enum. Membership is checked
    against this destination's type, which need not match the rule's.
    """

    def __init__(self, enum_type: EnumType, value: Enum | None = None) -> None:
        self.enum_type = enum_type
        self.value = value

    def accept(self, value: Any) -> None:
        if isinstance(value, Enum):
            token = value.token
        elif isinstance(value, str):
            token = value
        else:
            raise CdlError(
                ErrorKind.BAD_TYPE,
                f"got {type(value).__name__} expected an option as a string",
            )
        if token not in self.enum_type:
            raise CdlError(ErrorKind.BAD_ENUM_VALUE, f"unknown value '{token}'")
        self.value = self.enum_type.instantiate(token)

    def __repr__(self) -> str:
        return f"EnumDestination({self.value!s})"


Handler = Sink | ConfiguratorFunc | None
Configurator = Mapping[str, Handler]


def coerce(node: RuleNode, value: Any) -> Any:
    """Convert an already-validated value to its canonical configured form.

    Raises:
        CdlError: ``BAD_TYPE`` when a ``number`` cannot be represented as a
            float, such as an int beyond the float range.
    """
    if isinstance(node, PseudotypeRule):
        if node.pseudotype is Pseudotype.NUMBER:
            try:
                return float(value)
            except OverflowError:
                raise CdlError(
                    ErrorKind.BAD_TYPE, f"got {type(value).__name__} too large for float"
                ) from None
        if node.pseudotype is Pseudotype.INTEGER:
            return int(value)
    elif isinstance(node, EnumRef):
        return node.enum_type.instantiate(value)
    return value


def dispatch(handler: Handler, value: Any, path: Path) -> None:
    """Deliver *value* to one handler.

    Errors coming out of the handler are copied, so a handler that hands
    back a shared error instance sees it unchanged on the next call.

    Raises:
        CdlError: Propagated from the handler, or ``BAD_CONFIGURATOR`` when
            the handler is neither a Sink nor callable.
    """
    if handler is None:
        return
    if not isinstance(handler, Sink) and not callable(handler):
        raise CdlError(
            ErrorKind.BAD_CONFIGURATOR, f"got unknown handler {type(handler).__name__}"
        )
    try:
        if isinstance(handler, Sink):
            handler.accept(value)
            return
        result = handler(value, path)
    except CdlError as err:
        raise err.copy() from err
    if result is None:
        return
    if isinstance(result, CdlError):
        raise result.copy()
    raise CdlError(
        ErrorKind.BAD_CONFIGURATOR,
        f"handler returned {type(result).__name__}, expected CdlError or None",
    )
