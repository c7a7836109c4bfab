"""Closed enumeration types for template values.

An :class:`EnumType` is built once from an ordered set of unique tokens
and never mutated. An :class:`Enum` is a value bound to one EnumType plus
a selected index; two Enums are equal only when they share the same type
object and index.

Example::

    COLOUR = EnumType("red", "green", "blue")
    COLOUR.instantiate("green").index  # 1
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from cdl.domain.errors import CdlError, ErrorKind


class EnumType:
    """An immutable, ordered set of permitted string tokens."""

    __slots__ = ("_index", "_texts", "_tokens")

    def __init__(self, *tokens: str, texts: Mapping[str, str] | None = None) -> None:
        if not tokens:
            raise ValueError("EnumType requires at least one token")
        index: dict[str, int] = {}
        for i, token in enumerate(tokens):
            if not isinstance(token, str):
                raise ValueError(f"Enum token must be a string, got {type(token).__name__}")
            if token in index:
                raise ValueError(f"Duplicate enum token: {token}")
            index[token] = i
        self._tokens: tuple[str, ...] = tuple(tokens)
        self._index = MappingProxyType(index)
        self._texts = MappingProxyType(dict(texts or {}))

    @classmethod
    def with_text(cls, values: Mapping[str, str]) -> EnumType:
        """Build an EnumType from a token -> display text mapping.

        Tokens are ordered by sorted token name so the index assignment
        does not depend on mapping order.
        """
        return cls(*sorted(values), texts=values)

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and token in self._index

    def has(self, token: object) -> bool:
        """Return True if *token* is a member of this type."""
        return token in self

    def index(self, token: str) -> int:
        return self._index[token]

    def text(self, token: str) -> str:
        """Display text for *token*, defaulting to the token itself."""
        if token not in self._index:
            raise KeyError(token)
        return self._texts.get(token, token)

    def instantiate(self, token: str) -> Enum:
        """Create an Enum value for *token*.

        Raises:
            CdlError: ``INTERNAL`` if *token* is not a member. Callers are
                expected to check membership first.
        """
        if token not in self:
            raise CdlError(ErrorKind.INTERNAL, f"bad enum initialiser '{token}'")
        return Enum(type=self, index=self._index[token])

    def __repr__(self) -> str:
        return f"EnumType({', '.join(repr(t) for t in self._tokens)})"


@dataclass(frozen=True)
class Enum:
    """A value of a specific :class:`EnumType`."""

    type: EnumType
    index: int

    @property
    def token(self) -> str:
        return self.type.tokens[self.index]

    @property
    def text(self) -> str:
        return self.type.text(self.token)

    def __str__(self) -> str:
        return self.token
