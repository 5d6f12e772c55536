"""
Printer directives.

Immutable values produced by the renderer and interpreted by a device sink.
They carry no reference to a printer, so a rendered receipt can be compared,
previewed, or replayed against any transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"


@dataclass(frozen=True)
class SetAlign:
    align: str = ALIGN_LEFT

    def __post_init__(self) -> None:
        if self.align not in (ALIGN_LEFT, ALIGN_CENTER):
            raise ValueError(f"Unsupported alignment: {self.align}")


@dataclass(frozen=True)
class SetEmphasis:
    on: bool


@dataclass(frozen=True)
class SetSize:
    """Character scale: 1 is normal, 2 is double width and height."""

    scale: int = 1

    def __post_init__(self) -> None:
        if self.scale not in (1, 2):
            raise ValueError(f"Unsupported text scale: {self.scale}")


@dataclass(frozen=True)
class Text:
    """One printed line; the device appends the line feed."""

    line: str


@dataclass(frozen=True)
class Feed:
    lines: int = 1


@dataclass(frozen=True)
class Cut:
    pass


@dataclass(frozen=True)
class Close:
    pass


Directive = Union[SetAlign, SetEmphasis, SetSize, Text, Feed, Cut, Close]

__all__ = [
    "ALIGN_CENTER",
    "ALIGN_LEFT",
    "Close",
    "Cut",
    "Directive",
    "Feed",
    "SetAlign",
    "SetEmphasis",
    "SetSize",
    "Text",
]
