"""Traversal paths used to report where a configurator fired."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

Segment = str | int


@dataclass(frozen=True)
class Path:
    """An immutable breadcrumb of map keys and array indices.

    ``push`` always returns a new Path, so sibling branches of a traversal
    never observe each other's segments.
    """

    segments: tuple[Segment, ...] = ()

    def push(self, segment: Segment) -> Path:
        return Path(self.segments + (segment,))

    def string_segments(self) -> list[str]:
        return [str(s) for s in self.segments]

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __str__(self) -> str:
        return "/" + "/".join(self.string_segments())
