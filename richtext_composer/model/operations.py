# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Structural edit operations

Each operation is an immutable record of one document edit primitive. The
markdown transformer returns an ordered list of them, and
Document.apply() replays the list atomically. Operations that create nodes
carry the keys of the new nodes, so replaying a list on the document it was
planned from allocates exactly the keys the plan saw.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from .cursor import Point, Range

if TYPE_CHECKING:
    from .document import Document


class EditOperation:
    """Base class of edit operations"""

    type = ""

    def apply(self, document: "Document") -> None:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class InsertText(EditOperation):
    point: Point
    text: str
    type = "insert_text"

    def apply(self, document: "Document") -> None:
        document.insert_text(self.point, self.text)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "point": self.point.to_dict(), "text": self.text}


@dataclass(frozen=True)
class DeleteRange(EditOperation):
    range: Range
    type = "delete_range"

    def apply(self, document: "Document") -> None:
        document.delete_range(self.range)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "range": self.range.to_dict()}


@dataclass(frozen=True)
class SetBlock(EditOperation):
    key: str
    block_type: str
    data: Optional[Dict[str, Any]] = None
    type = "set_block"

    def apply(self, document: "Document") -> None:
        document.set_block(self.key, self.block_type, self.data)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "key": self.key, "blockType": self.block_type, "data": self.data}


@dataclass(frozen=True)
class AddMark(EditOperation):
    range: Range
    mark: str
    type = "add_mark"

    def apply(self, document: "Document") -> None:
        document.add_mark(self.range, self.mark)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "range": self.range.to_dict(), "mark": self.mark}


@dataclass(frozen=True)
class RemoveMark(EditOperation):
    range: Range
    mark: str
    type = "remove_mark"

    def apply(self, document: "Document") -> None:
        document.remove_mark(self.range, self.mark)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "range": self.range.to_dict(), "mark": self.mark}


@dataclass(frozen=True)
class WrapBlocks(EditOperation):
    start_key: str
    end_key: str
    block_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    key: Optional[str] = None
    type = "wrap_blocks"

    def apply(self, document: "Document") -> None:
        document.wrap_blocks(self.start_key, self.end_key, self.block_type, self.data, self.key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "startKey": self.start_key,
            "endKey": self.end_key,
            "blockType": self.block_type,
            "data": dict(self.data),
            "key": self.key,
        }


@dataclass(frozen=True)
class InsertNode(EditOperation):
    parent_key: Optional[str]
    index: int
    node: Dict[str, Any]
    type = "insert_node"

    def apply(self, document: "Document") -> None:
        document.insert_node(self.parent_key, self.index, self.node)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "parentKey": self.parent_key, "index": self.index, "node": self.node}


@dataclass(frozen=True)
class RemoveNode(EditOperation):
    key: str
    type = "remove_node"

    def apply(self, document: "Document") -> None:
        document.remove_node(self.key)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "key": self.key}
