# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

from .cursor import Point, Range
from .document import Block, Document, Inline, Text
from .operations import (
    AddMark,
    DeleteRange,
    EditOperation,
    InsertNode,
    InsertText,
    RemoveMark,
    RemoveNode,
    SetBlock,
    WrapBlocks,
)

__all__ = [
    'Point', 'Range', 'Block', 'Document', 'Inline', 'Text',
    'EditOperation', 'InsertText', 'DeleteRange', 'SetBlock', 'AddMark',
    'RemoveMark', 'WrapBlocks', 'InsertNode', 'RemoveNode',
]
