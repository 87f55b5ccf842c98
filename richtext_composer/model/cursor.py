# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Points and ranges over a Document.

A Point addresses a position inside one Text leaf by the leaf key and a
character offset. A Range is directional: the anchor is where a selection
started and the focus is where it ends, so the anchor may sit after the focus.
Ordering two points needs the document, see Document.compare_points().
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Point:
    """A position inside a Text leaf"""
    key: str
    offset: int

    def move(self, n: int) -> "Point":
        """Shift the offset inside the same leaf, without any clamping"""
        return Point(self.key, self.offset + n)

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "offset": self.offset}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Point":
        return cls(str(data["key"]), int(data["offset"]))


@dataclass(frozen=True)
class Range:
    """A directional span between two points"""
    anchor: Point
    focus: Point

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus

    def collapse_to_focus(self) -> "Range":
        return Range(self.focus, self.focus)

    def collapse_to_anchor(self) -> "Range":
        return Range(self.anchor, self.anchor)

    def with_focus(self, focus: Point) -> "Range":
        return Range(self.anchor, focus)

    def flip(self) -> "Range":
        return Range(self.focus, self.anchor)

    def to_dict(self) -> Dict[str, Any]:
        return {"anchor": self.anchor.to_dict(), "focus": self.focus.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Range":
        return cls(Point.from_dict(data["anchor"]), Point.from_dict(data["focus"]))

    @classmethod
    def collapsed(cls, point: Point) -> "Range":
        return cls(point, point)
