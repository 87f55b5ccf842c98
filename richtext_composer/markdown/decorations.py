# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Live-preview decorations

compute_decorations() maps one block to the ranges a renderer should style
while the user is still typing markdown, e.g. "**bold**" shown bold before
the delimiters are converted. It never touches the document.

Only bold, italic and inline code are previewed. Line constructs are handled
structurally by the transformer and never decorated.

A block's text can be split over several leaves by existing marks or
mentions, so a token may start in one leaf and end in another. The walk keeps
a (leaf, offset) cursor and spends each token's length against the remaining
capacity of the current leaf, stepping to the next leaf while the token is
longer than what is left.
"""

import logging
from dataclasses import dataclass
from typing import List

from ..constants import CODE
from ..model.cursor import Point, Range
from ..model.document import Block
from . import tokenizer
from .tokenizer import content_length, item_length, tokenize

logger = logging.getLogger(__name__)

PREVIEWABLE = frozenset([tokenizer.BOLD, tokenizer.ITALIC, tokenizer.CODE])


@dataclass(frozen=True)
class Decoration:
    """An ephemeral styled range, recomputed on every edit and never stored"""
    range: Range
    mark_type: str


def can_preview(token) -> bool:
    return not isinstance(token, str) and token.type in PREVIEWABLE


def compute_decorations(block: Block, disabled: bool = False) -> List[Decoration]:
    """
    Compute the preview decorations of a block

    Args:
        block: Leaf block to decorate
        disabled: Markdown processing is off for the session

    Returns:
        Disjoint decorations ordered along the block's text
    """
    if disabled or block.type == CODE or block.is_container:
        return []

    leaves = block.texts()
    if not leaves:
        return []

    decorations: List[Decoration] = []
    index = 0
    end_offset = 0

    for token in tokenize(block.text):
        start_index, start_offset = index, end_offset
        length = content_length(token) if can_preview(token) else item_length(token)

        available = len(leaves[index].text) - start_offset
        remaining = length
        end_offset = start_offset + remaining

        while available < remaining and index + 1 < len(leaves):
            index += 1
            remaining -= available
            available = len(leaves[index].text)
            end_offset = remaining

        if can_preview(token):
            decorations.append(Decoration(
                Range(Point(leaves[start_index].key, start_offset), Point(leaves[index].key, end_offset)),
                token.type,
            ))

    logger.debug(f"Block {block.key}: {len(decorations)} decoration(s)")
    return decorations
