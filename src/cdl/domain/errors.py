"""Error taxonomy and the CdlError exception.

The kind table is a closed StrEnum: process-wide, frozen, and never
extended at runtime. Each error collects context innermost-first as it
unwinds through enclosing map keys and array indices.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Stable error codes surfaced by compilation and validation."""

    INTERNAL = "INTERNAL"
    MISSING_ROOT = "MISSING_ROOT"
    BAD_OPTION_VALUE = "BAD_OPTION_VALUE"
    BAD_OPTION_MODIFIER = "BAD_OPTION_MODIFIER"
    BAD_RANGE_OPTION_MODIFIER = "BAD_RANGE_OPTION_MODIFIER"
    BAD_RANGE_OPTION_MODIFIER_VALUE = "BAD_RANGE_OPTION_MODIFIER_VALUE"
    AMBIGUOUS_MODIFIER = "AMBIGUOUS_MODIFIER"
    BAD_KEY = "BAD_KEY"
    BAD_VALUE = "BAD_VALUE"
    UNKNOWN_KEY = "UNKNOWN_KEY"
    EXPECTED_MAP = "EXPECTED_MAP"
    EXPECTED_ARRAY = "EXPECTED_ARRAY"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    BAD_TYPE = "BAD_TYPE"
    BAD_ENUM_VALUE = "BAD_ENUM_VALUE"
    MISSING_MANDATORY = "MISSING_MANDATORY"
    BAD_CONFIGURATOR = "BAD_CONFIGURATOR"


ERROR_TEXT: dict[ErrorKind, str] = {
    ErrorKind.INTERNAL: "Internal error",
    ErrorKind.MISSING_ROOT: "No root key in template",
    ErrorKind.BAD_OPTION_VALUE: "Bad option value",
    ErrorKind.BAD_OPTION_MODIFIER: "Bad option modifier",
    ErrorKind.BAD_RANGE_OPTION_MODIFIER: "Bad range option modifier",
    ErrorKind.BAD_RANGE_OPTION_MODIFIER_VALUE: "Bad range option modifier value",
    ErrorKind.AMBIGUOUS_MODIFIER: "Conflicting option modifiers",
    ErrorKind.BAD_KEY: "Bad key",
    ErrorKind.BAD_VALUE: "Bad value",
    ErrorKind.UNKNOWN_KEY: "Unknown key",
    ErrorKind.EXPECTED_MAP: "Expected map",
    ErrorKind.EXPECTED_ARRAY: "Expected array",
    ErrorKind.OUT_OF_RANGE: "Number of array items outside permissible range",
    ErrorKind.BAD_TYPE: "Bad type",
    ErrorKind.BAD_ENUM_VALUE: "Bad option",
    ErrorKind.MISSING_MANDATORY: "Missing mandatory key",
    ErrorKind.BAD_CONFIGURATOR: "Bad configurator",
}


class CdlError(Exception):
    """A typed, context-carrying compile or validation failure.

    Attributes:
        kind: Stable error code.
        supplementary: Optional free text refining the message.
        context: Context segments, innermost first (``'key'``, ``index 3``).
    """

    def __init__(self, kind: ErrorKind, supplementary: str = "") -> None:
        self.kind = ErrorKind(kind)
        self.supplementary = supplementary
        self.context: list[str] = []
        super().__init__(kind)

    @classmethod
    def quoted(cls, kind: ErrorKind, context: str) -> CdlError:
        """Build an error whose first context frame is *context* in quotes."""
        return cls(kind).add_context_quoted(context)

    def add_context(self, context: str) -> CdlError:
        self.context.append(context)
        return self

    def add_context_quoted(self, context: str) -> CdlError:
        return self.add_context(f"'{context}'")

    def set_supplementary(self, supplementary: str) -> CdlError:
        self.supplementary = supplementary
        return self

    def copy(self) -> CdlError:
        """Return an independent error with the same kind, text and context.

        Errors handed back by user callbacks are copied before context is
        added, so a shared error instance is never mutated.
        """
        clone = type(self)(self.kind, self.supplementary)
        clone.context = list(self.context)
        return clone

    @property
    def text(self) -> str:
        """Display text for :attr:`kind`."""
        return ERROR_TEXT[self.kind]

    @property
    def breadcrumb(self) -> list[str]:
        """Context frames ordered outermost to innermost."""
        return list(reversed(self.context))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "message": self.text,
            "supplementary": self.supplementary,
            "context": list(self.context),
        }

    def __str__(self) -> str:
        main = self.text
        if self.supplementary:
            main = f"{main}; {self.supplementary}"
        if not self.context:
            return f"{main} (code {self.kind})"
        return f"{main} (code {self.kind}) near {' at '.join(self.context)}"

    def __repr__(self) -> str:
        return f"CdlError({self.kind!s}, {self.supplementary!r}, context={self.context!r})"
