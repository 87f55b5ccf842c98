# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""Plain-text flattening of documents, used for the message display name."""

from ..constants import OBJECT_BLOCK, OBJECT_DOCUMENT, OBJECT_TEXT, PARAGRAPH
from ..model.document import Block, Document, Element


def serialize_plain(document: Document) -> str:
    """
    Flatten a document to plain text

    Leaf blocks contribute their text, containers the flattening of their
    children; siblings are joined with "\\n". Marks are ignored.
    """
    return _flatten(document)


def _flatten(element: Element) -> str:
    if isinstance(element, Block) and not element.is_container:
        return element.text
    return "\n".join(_flatten(child) for child in element.children if isinstance(child, Block))


def deserialize_plain(text: str) -> Document:
    """Build a document holding one paragraph per line of text"""
    return Document.from_dict({
        "object": OBJECT_DOCUMENT,
        "children": [
            {
                "object": OBJECT_BLOCK,
                "type": PARAGRAPH,
                "children": [{"object": OBJECT_TEXT, "text": line}],
            }
            for line in text.split("\n")
        ],
    })
