# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Document: the rich-text tree edited by the composer

DOCUMENT STRUCTURE:
==================

Document
└── Block (paragraph, quote, code, heading-N, list, list-item, plain, horizontal-rule)
    ├── Block ...                      (container blocks such as "list")
    ├── Inline (mention)
    │   └── Text
    └── Text {text, marks}

- Every node has a string key, unique within its document, allocated from a
  per-document counter. A clone continues from the same counter, so replaying
  the same edits on a clone and on the original allocates the same keys.
- Marks live on Text leaves. A run of text with one mark set is one leaf, so
  mark boundaries split leaves.
- A block whose children are blocks is a container; any other block is a
  leaf block holding inlines and text.

JSON FORMAT:
===========

{
  "object": "document",
  "children": [
    {
      "object": "block",
      "type": "paragraph",
      "data": {},
      "children": [
        {"object": "text", "text": "Hello", "marks": ["bold"]}
      ]
    }
  ]
}

Keys are optional in the JSON; missing keys are allocated on load.
"""

import copy
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from ..constants import (
    CODE,
    OBJECT_BLOCK,
    OBJECT_DOCUMENT,
    OBJECT_INLINE,
    OBJECT_TEXT,
    PARAGRAPH,
)
from ..errors import DocumentError
from .cursor import Point, Range

if TYPE_CHECKING:
    from .operations import EditOperation

logger = logging.getLogger(__name__)


class Text:
    """A text leaf: a string plus the ordered, duplicate-free marks applied to it"""

    object = OBJECT_TEXT

    def __init__(self, key: str, text: str = "", marks: Sequence[str] = ()):
        self.key = key
        self.text = text
        self.marks: Tuple[str, ...] = tuple(dict.fromkeys(marks))

    def has_mark(self, mark: str) -> bool:
        return mark in self.marks

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object": self.object,
            "key": self.key,
            "text": self.text,
            "marks": list(self.marks),
        }

    def __repr__(self) -> str:
        return f"Text(key={self.key!r}, text={self.text!r}, marks={list(self.marks)})"


class Element:
    """Shared behaviour of nodes that own children"""

    object = ""

    def __init__(self, key: str, children: Optional[List["Node"]] = None):
        self.key = key
        self.children: List[Node] = children if children is not None else []

    @property
    def text(self) -> str:
        return "".join(child.text for child in self.children)

    def texts(self) -> List[Text]:
        result: List[Text] = []
        for child in self.children:
            if isinstance(child, Text):
                result.append(child)
            else:
                result.extend(child.texts())
        return result


class Inline(Element):
    """An inline node embedded in text, e.g. a mention"""

    object = OBJECT_INLINE

    def __init__(self, key: str, type: str, data: Optional[Dict[str, Any]] = None,
                 children: Optional[List["Node"]] = None):
        super().__init__(key, children)
        self.type = type
        self.data: Dict[str, Any] = dict(data or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object": self.object,
            "key": self.key,
            "type": self.type,
            "data": dict(self.data),
            "children": [child.to_dict() for child in self.children],
        }

    def __repr__(self) -> str:
        return f"Inline(key={self.key!r}, type={self.type!r}, text={self.text!r})"


class Block(Element):
    """A block node: either a leaf block of inlines and text, or a container of blocks"""

    object = OBJECT_BLOCK

    def __init__(self, key: str, type: str, data: Optional[Dict[str, Any]] = None,
                 children: Optional[List["Node"]] = None):
        super().__init__(key, children)
        self.type = type
        self.data: Dict[str, Any] = dict(data or {})

    @property
    def is_container(self) -> bool:
        return bool(self.children) and isinstance(self.children[0], Block)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object": self.object,
            "key": self.key,
            "type": self.type,
            "data": dict(self.data),
            "children": [child.to_dict() for child in self.children],
        }

    def __repr__(self) -> str:
        return f"Block(key={self.key!r}, type={self.type!r}, text={self.text!r})"


Node = Union[Block, Inline, Text]


class Document(Element):
    """
    The rich-text tree of one composer session, with cursor arithmetic and
    structural edit primitives.

    Edit primitives mutate the tree in place and normalize it afterwards.
    Use apply() to run an ordered list of EditOperations atomically.
    """

    object = OBJECT_DOCUMENT

    def __init__(self, children: Optional[List[Block]] = None, last_key: int = 0):
        super().__init__("0", children)
        self._last_key = last_key

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def empty(cls) -> "Document":
        """Create a document holding a single empty paragraph"""
        document = cls()
        document.children.append(document.create_block(PARAGRAPH))
        return document

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """
        Build a document from its JSON form

        Args:
            data: Document dict, see the module docstring for the format

        Returns:
            A new Document

        Raises:
            DocumentError: If the dict is not a document or holds malformed nodes
        """
        if not isinstance(data, dict) or data.get("object", OBJECT_DOCUMENT) != OBJECT_DOCUMENT:
            raise DocumentError("Document data must be an object with 'object': 'document'")
        document = cls()
        children = data.get("children", [])
        if not isinstance(children, list):
            raise DocumentError("Document 'children' must be a list")
        for child in children:
            node = document.node_from_dict(child)
            if not isinstance(node, Block):
                raise DocumentError(f"Top-level node must be a block, got {node.object!r}")
            document.children.append(node)
        if not document.children:
            document.children.append(document.create_block(PARAGRAPH))
        return document

    def node_from_dict(self, data: Dict[str, Any]) -> Node:
        """Build a node owned by this document from its JSON form, allocating missing keys"""
        if not isinstance(data, dict):
            raise DocumentError(f"Node spec must be a dict, got {type(data).__name__}")
        kind = data.get("object")
        key = data.get("key")
        if key is not None:
            key = str(key)
            self._reserve_key(key)
        else:
            key = self.generate_key()

        if kind == OBJECT_TEXT:
            return Text(key, str(data.get("text", "")), data.get("marks", ()))

        if kind not in (OBJECT_BLOCK, OBJECT_INLINE):
            raise DocumentError(f"Unknown node object {kind!r}")
        if "type" not in data:
            raise DocumentError(f"A {kind} node needs a 'type'")

        node_class = Block if kind == OBJECT_BLOCK else Inline
        node = node_class(key, str(data["type"]), data.get("data") or {})
        for child in data.get("children", []):
            node.children.append(self.node_from_dict(child))
        if not node.children:
            node.children.append(Text(self.generate_key()))
        return node

    def create_text(self, text: str = "", marks: Sequence[str] = ()) -> Text:
        return Text(self.generate_key(), text, marks)

    def create_block(self, type: str, text: str = "", data: Optional[Dict[str, Any]] = None) -> Block:
        block = Block(self.generate_key(), type, data)
        block.children.append(self.create_text(text))
        return block

    def clone(self) -> "Document":
        """Deep copy, keys and key counter included"""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object": self.object,
            "children": [child.to_dict() for child in self.children],
        }

    # ------------------------------------------------------------------
    # Keys

    def generate_key(self) -> str:
        self._last_key += 1
        return str(self._last_key)

    def _reserve_key(self, key: str) -> None:
        if key.isdigit() and int(key) > self._last_key:
            self._last_key = int(key)

    # ------------------------------------------------------------------
    # Queries

    def _walk(self, element: Optional[Element] = None) -> Iterator[Node]:
        element = element if element is not None else self
        for child in element.children:
            yield child
            if not isinstance(child, Text):
                yield from self._walk(child)

    def find_node(self, key: str) -> Optional[Node]:
        for node in self._walk():
            if node.key == key:
                return node
        return None

    def has_node(self, key: Optional[str]) -> bool:
        return key is not None and self.find_node(key) is not None

    def get_node(self, key: str) -> Node:
        node = self.find_node(key)
        if node is None:
            raise DocumentError(f"Node with key {key!r} not found in document")
        return node

    def get_path(self, key: str) -> List[Union["Document", Node]]:
        """Nodes from the document down to the keyed node, both included"""

        def search(element: Element, trail: list) -> Optional[list]:
            for child in element.children:
                if child.key == key:
                    return trail + [child]
                if not isinstance(child, Text):
                    found = search(child, trail + [child])
                    if found:
                        return found
            return None

        path = search(self, [self])
        if path is None:
            raise DocumentError(f"Node with key {key!r} not found in document")
        return path

    def get_parent(self, key: str) -> Element:
        return self.get_path(key)[-2]

    def get_closest_block(self, key: str) -> Block:
        """The keyed node itself if it is a block, else its nearest block ancestor"""
        for node in reversed(self.get_path(key)):
            if isinstance(node, Block):
                return node
        raise DocumentError(f"Node with key {key!r} is not inside a block")

    def get_block(self, key: str) -> Block:
        node = self.get_node(key)
        if not isinstance(node, Block):
            raise DocumentError(f"Node with key {key!r} is a {node.object}, not a block")
        return node

    def texts(self, node: Optional[Element] = None) -> List[Text]:
        """Text leaves in document order, under node when given"""
        if node is None:
            return super().texts()
        if isinstance(node, Text):
            return [node]
        return node.texts()

    def leaf_blocks(self, node: Optional[Element] = None) -> List[Block]:
        """Blocks that hold inlines and text, in document order"""
        return [
            child for child in self._walk(node)
            if isinstance(child, Block) and not child.is_container
        ]

    def text_of(self, key: str) -> str:
        return self.get_node(key).text

    def _element(self, key: str) -> Union["Document", Node]:
        return self if key == self.key else self.get_node(key)

    def start_of(self, key: str) -> Point:
        leaves = self.texts(self._element(key))
        if not leaves:
            raise DocumentError(f"Node with key {key!r} holds no text")
        return Point(leaves[0].key, 0)

    def end_of(self, key: str) -> Point:
        leaves = self.texts(self._element(key))
        if not leaves:
            raise DocumentError(f"Node with key {key!r} holds no text")
        return Point(leaves[-1].key, len(leaves[-1].text))

    def range_of(self, key: str) -> Range:
        return Range(self.start_of(key), self.end_of(key))

    # ------------------------------------------------------------------
    # Cursor arithmetic

    def create_range(self, anchor: Point, focus: Point) -> Range:
        """Create a range after checking both points address existing leaves"""
        self._locate(anchor)
        self._locate(focus)
        return Range(anchor, focus)

    def _locate(self, point: Point, leaves: Optional[List[Text]] = None) -> Tuple[int, int]:
        """Index of the point's leaf and the point's absolute offset over the given leaves"""
        leaves = leaves if leaves is not None else self.texts()
        total = 0
        for index, leaf in enumerate(leaves):
            if leaf.key == point.key:
                if not 0 <= point.offset <= len(leaf.text):
                    raise DocumentError(
                        f"Offset {point.offset} out of bounds for text {leaf.key!r} "
                        f"of length {len(leaf.text)}"
                    )
                return index, total + point.offset
            total += len(leaf.text)
        raise DocumentError(f"Text with key {point.key!r} not found")

    @staticmethod
    def _resolve(leaves: List[Text], offset: int) -> Point:
        """Point at an absolute offset over leaves; a boundary resolves to the earlier leaf's end"""
        total = 0
        for leaf in leaves:
            if total + len(leaf.text) >= offset:
                return Point(leaf.key, offset - total)
            total += len(leaf.text)
        last = leaves[-1]
        return Point(last.key, len(last.text))

    def move_point(self, point: Point, n: int) -> Point:
        """
        Move a point by n text units, backward when n is negative

        Crossing a leaf or block boundary consumes no unit. Moving past either
        end of the document clamps to that end.
        """
        leaves = self.texts()
        _, absolute = self._locate(point, leaves)
        total = sum(len(leaf.text) for leaf in leaves)
        target = max(0, min(absolute + n, total))
        return self._resolve(leaves, target)

    def move_range(self, range: Range, n: int) -> Range:
        return Range(self.move_point(range.anchor, n), self.move_point(range.focus, n))

    def extend_focus(self, range: Range, n: int) -> Range:
        return range.with_focus(self.move_point(range.focus, n))

    def point_at(self, block_key: str, offset: int) -> Point:
        """Point at a character offset of a block's flattened text, clamped to the block"""
        leaves = self.texts(self.get_node(block_key))
        total = sum(len(leaf.text) for leaf in leaves)
        return self._resolve(leaves, max(0, min(offset, total)))

    def offset_of(self, block_key: str, point: Point) -> int:
        """Character offset of a point inside a block's flattened text"""
        _, absolute = self._locate(point, self.texts(self.get_node(block_key)))
        return absolute

    def compare_points(self, a: Point, b: Point) -> int:
        leaves = self.texts()
        first = self._locate(a, leaves)
        second = self._locate(b, leaves)
        key_a = (first[1], first[0])
        key_b = (second[1], second[0])
        return (key_a > key_b) - (key_a < key_b)

    def range_edges(self, range: Range) -> Tuple[Point, Point]:
        """Start and end of a range in document order"""
        if self.compare_points(range.anchor, range.focus) <= 0:
            return range.anchor, range.focus
        return range.focus, range.anchor

    def is_before(self, first_key: str, second_key: str) -> bool:
        """Whether the first node starts before the second in document order"""
        order = [node.key for node in self._walk()]
        return order.index(first_key) < order.index(second_key)

    # ------------------------------------------------------------------
    # Edit primitives

    def insert_text(self, point: Point, text: str) -> None:
        leaf = self.get_node(point.key)
        if not isinstance(leaf, Text):
            raise DocumentError(f"Node with key {point.key!r} is not a text leaf")
        self._locate(point)
        leaf.text = leaf.text[:point.offset] + text + leaf.text[point.offset:]

    def delete_range(self, range: Range) -> None:
        """
        Delete the content spanned by a range

        When the range spans several leaf blocks, the blocks strictly between
        the edges are removed and whatever remains of the end block is merged
        into the start block.
        """
        start, end = self.range_edges(range)
        leaves = self.texts()
        first_index, first_offset = self._locate(start, leaves)
        last_index, last_offset = self._locate(end, leaves)
        if first_offset == last_offset:
            return

        first, last = leaves[first_index], leaves[last_index]
        if first is last:
            first.text = first.text[:start.offset] + first.text[end.offset:]
            self.normalize()
            return

        first.text = first.text[:start.offset]
        last.text = last.text[end.offset:]
        for leaf in leaves[first_index + 1:last_index]:
            leaf.text = ""

        start_block = self.get_closest_block(first.key)
        end_block = self.get_closest_block(last.key)
        if start_block is not end_block:
            blocks = self.leaf_blocks()
            between = blocks[blocks.index(start_block) + 1:blocks.index(end_block)]
            for block in between:
                self._detach(block)
            self._detach(end_block)
            start_block.children.extend(end_block.children)
        self.normalize()

    def set_block(self, key: str, type: str, data: Optional[Dict[str, Any]] = None) -> None:
        block = self.get_block(key)
        block.type = type
        if data is not None:
            block.data = dict(data)

    def wrap_blocks(self, start_key: str, end_key: str, type: str,
                    data: Optional[Dict[str, Any]] = None, key: Optional[str] = None) -> Block:
        """
        Wrap a run of sibling blocks in a new container block

        Args:
            start_key: Key of one end of the run
            end_key: Key of the other end of the run
            type: Type of the new container
            data: Data of the new container
            key: Key for the new container, allocated when omitted

        Returns:
            The new container block

        Raises:
            DocumentError: If the two blocks do not share a parent
        """
        start = self.get_block(start_key)
        end = self.get_block(end_key)
        parent = self.get_parent(start_key)
        if self.get_parent(end_key) is not parent:
            raise DocumentError(f"Blocks {start_key!r} and {end_key!r} are not siblings")
        i = parent.children.index(start)
        j = parent.children.index(end)
        if i > j:
            i, j = j, i
        if key is not None:
            self._reserve_key(key)
        wrapper = Block(key or self.generate_key(), type, data, parent.children[i:j + 1])
        parent.children[i:j + 1] = [wrapper]
        return wrapper

    def wrap_range(self, range: Range, type: str, data: Optional[Dict[str, Any]] = None,
                   key: Optional[str] = None) -> Block:
        """Wrap the top-most sibling blocks spanned by a range"""
        start, end = self.range_edges(range)
        first_path = self.get_path(self.get_closest_block(start.key).key)
        last_path = self.get_path(self.get_closest_block(end.key).key)
        if first_path[-1] is last_path[-1]:
            block = first_path[-1]
            return self.wrap_blocks(block.key, block.key, type, data, key)
        depth = 0
        while first_path[depth] is last_path[depth]:
            depth += 1
        return self.wrap_blocks(first_path[depth].key, last_path[depth].key, type, data, key)

    def add_mark(self, range: Range, mark: str) -> None:
        """Add a mark to every character of a range; code blocks never take marks"""
        for leaf in self._split_range(range):
            if mark not in leaf.marks:
                leaf.marks = leaf.marks + (mark,)
        self.normalize()

    def remove_mark(self, range: Range, mark: str) -> None:
        for leaf in self._split_range(range):
            leaf.marks = tuple(m for m in leaf.marks if m != mark)
        self.normalize()

    def _split_range(self, span: Range) -> List[Text]:
        """Split leaves at the range edges and return the leaves fully inside it"""
        start, end = self.range_edges(span)
        leaves = self.texts()
        first_index, _ = self._locate(start, leaves)
        last_index, _ = self._locate(end, leaves)
        covered = []
        for index in range(first_index, last_index + 1):
            leaf = leaves[index]
            lo = start.offset if index == first_index else 0
            hi = end.offset if index == last_index else len(leaf.text)
            if lo >= hi or self.get_closest_block(leaf.key).type == CODE:
                continue
            covered.append(self._split_text(leaf, lo, hi))
        return covered

    def _split_text(self, leaf: Text, lo: int, hi: int) -> Text:
        """Split a leaf so that [lo, hi) is a leaf of its own; the left piece keeps the key"""
        parent = self.get_parent(leaf.key)
        index = parent.children.index(leaf)
        original = leaf.text
        pieces: List[Text] = []
        if lo > 0:
            leaf.text = original[:lo]
            middle = Text(self.generate_key(), original[lo:hi], leaf.marks)
            pieces.append(middle)
        else:
            leaf.text = original[lo:hi]
            middle = leaf
        if hi < len(original):
            pieces.append(Text(self.generate_key(), original[hi:], leaf.marks))
        parent.children[index + 1:index + 1] = pieces
        return middle

    def insert_node(self, parent_key: Optional[str], index: int, spec: Dict[str, Any]) -> Node:
        """Insert a node built from its JSON form under a parent (the document when None)"""
        parent = self if parent_key in (None, self.key) else self.get_node(parent_key)
        if isinstance(parent, Text):
            raise DocumentError(f"Cannot insert into text leaf {parent_key!r}")
        node = self.node_from_dict(spec)
        if parent is self and not isinstance(node, Block):
            raise DocumentError("Only blocks can be inserted at the top level")
        index = max(0, min(index, len(parent.children)))
        parent.children.insert(index, node)
        self.normalize()
        return node

    def append_block(self, type: str = PARAGRAPH, text: str = "",
                     data: Optional[Dict[str, Any]] = None) -> Block:
        block = self.create_block(type, text, data)
        self.children.append(block)
        return block

    def insert_inline(self, point: Point, spec: Dict[str, Any]) -> Inline:
        """Insert an inline node, e.g. a mention, at a point inside a text leaf"""
        leaf = self.get_node(point.key)
        if not isinstance(leaf, Text):
            raise DocumentError(f"Node with key {point.key!r} is not a text leaf")
        self._locate(point)
        node = self.node_from_dict(dict(spec, object=OBJECT_INLINE))
        parent = self.get_parent(leaf.key)
        index = parent.children.index(leaf)
        rest = Text(self.generate_key(), leaf.text[point.offset:], leaf.marks)
        leaf.text = leaf.text[:point.offset]
        parent.children[index + 1:index + 1] = [node, rest]
        return node

    def remove_node(self, key: str) -> None:
        self._detach(self.get_node(key))
        self.normalize()

    def _detach(self, node: Node) -> None:
        """Remove a node from its parent; a container left empty goes with it"""
        parent = self.get_parent(node.key)
        parent.children.remove(node)
        if isinstance(parent, Block) and not parent.children and isinstance(node, Block):
            self._detach(parent)

    def normalize(self) -> None:
        """
        Restore the tree invariants after an edit

        - adjacent sibling text leaves with the same marks are merged
        - empty text leaves are dropped unless they are the only child
        - inlines without text are dropped
        - leaf blocks always hold at least one text leaf
        - the document always holds at least one block
        """
        self._normalize_element(self)
        if not self.children:
            self.children.append(self.create_block(PARAGRAPH))

    def _normalize_element(self, element: Element) -> None:
        for child in element.children:
            if not isinstance(child, Text):
                self._normalize_element(child)

        merged: List[Node] = []
        for child in element.children:
            if isinstance(child, Inline) and child.text == "":
                continue
            if (isinstance(child, Text) and merged and isinstance(merged[-1], Text)
                    and merged[-1].marks == child.marks):
                merged[-1].text += child.text
                continue
            merged.append(child)

        if any(not (isinstance(c, Text) and c.text == "") for c in merged):
            merged = [c for c in merged if not (isinstance(c, Text) and c.text == "")]
        elif len(merged) > 1:
            merged = merged[:1]

        if not merged and not isinstance(element, Document):
            merged = [Text(self.generate_key())]
        element.children = merged

    def apply(self, operations: Sequence["EditOperation"]) -> None:
        """
        Apply an ordered list of edit operations atomically

        Raises:
            DocumentError: If any operation fails; the document is left untouched
        """
        snapshot = self.clone()
        try:
            for operation in operations:
                operation.apply(self)
        except Exception:
            logger.warning(f"Rolling back {len(operations)} operation(s) after a failure")
            self.children = snapshot.children
            self._last_key = snapshot._last_key
            raise

    def __repr__(self) -> str:
        summaries = []
        for block in self.children:
            text = block.text
            if len(text) > 50:
                text = text[:47] + "..."
            summaries.append(f"{block.type}:{text!r}")
        return f"Document(blocks={len(self.children)}, summaries=[{', '.join(summaries)}])"
