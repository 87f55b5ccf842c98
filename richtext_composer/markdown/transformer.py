# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
MarkdownTransformer: turns typed markdown into document structure

The transformer runs once for every edited block. It never edits the
document it is given while planning: it plans against a clone, applying
each planned operation to the clone so later steps see the effect of earlier
ones, and returns the ordered operation list. convert_block() then replays
the list on the real document in one atomic Document.apply() call.

PER-BLOCK STEPS:
===============

1. Fence open: a block holding one unmarked text leaf that reads "```lang"
   while no fence is pending records a fence pointer and is left as is.
2. Fence close: with a fence pending, a later block reading "```" replaces
   the blocks from the opener through itself with one code block holding the
   interior lines.
3. Token walk: line markers are deleted and turn the block into a heading,
   quote, list item or horizontal rule; inline delimiters are deleted and the
   text they enclosed is marked. Blocks inside a pending fence are skipped.
4. List wrap: once a block that is not a list item has been processed, the
   pending run of list items is wrapped in a list container.

State that outlives one block (fence pointer, list run) lives on the
ComposerContext passed in, never on the transformer.
"""

import logging
import re
from typing import List

from ..constants import (
    BOLD,
    CODE,
    DEFAULT_CODE_LANGUAGE,
    HORIZONTAL_RULE,
    INLINE_CODE,
    ITALIC,
    LIST,
    LIST_ITEM,
    MAX_HEADING_LEVEL,
    OBJECT_BLOCK,
    OBJECT_TEXT,
    QUOTE,
    URL,
    heading_type,
)
from ..context import ComposerContext, FencePointer
from ..model.cursor import Range
from ..model.document import Block, Document, Text
from ..model.operations import (
    AddMark,
    DeleteRange,
    EditOperation,
    InsertNode,
    RemoveNode,
    SetBlock,
    WrapBlocks,
)
from . import tokenizer
from .tokenizer import Token, tokenize

logger = logging.getLogger(__name__)

FENCE_OPEN_RE = re.compile(r"^```\s?(\S*)$")
FENCE_CLOSE_RE = re.compile(r"^```$")

MARK_FOR_TOKEN = {
    tokenizer.BOLD: BOLD,
    tokenizer.ITALIC: ITALIC,
    tokenizer.CODE: INLINE_CODE,
}


class _Plan:
    """Operations planned so far, mirrored onto a working copy of the document"""

    def __init__(self, document: Document):
        self.document = document
        self.operations: List[EditOperation] = []

    def emit(self, operation: EditOperation) -> None:
        operation.apply(self.document)
        self.operations.append(operation)

    def span(self, block_key: str, start: int, end: int) -> Range:
        return Range(self.document.point_at(block_key, start), self.document.point_at(block_key, end))


class MarkdownTransformer:
    """
    Incremental markdown to structure converter

    Args:
        max_heading_level: Deepest heading level; longer markers are capped to it
        default_code_language: Language recorded on code blocks opened without one
    """

    def __init__(self, max_heading_level: int = MAX_HEADING_LEVEL,
                 default_code_language: str = DEFAULT_CODE_LANGUAGE):
        self.max_heading_level = max_heading_level
        self.default_code_language = default_code_language

    def plan(self, document: Document, block_key: str, context: ComposerContext) -> List[EditOperation]:
        """
        Plan the structural edits derived from one edited block

        The document is not modified. Fence and list-run pointers on the
        context are updated as the plan is built.

        Args:
            document: Document holding the edited block
            block_key: Key of the edited block
            context: Session context holding the fence and list-run pointers

        Returns:
            Ordered edit operations, empty when nothing needs to change
        """
        if context.markdown_disabled:
            return []

        self._drop_dead_pointers(document, context)
        plan = _Plan(document.clone())
        block = plan.document.get_block(block_key)

        if not block.is_container and block.type != CODE:
            handled = self._plan_fence(plan, block, context)
            pending = context.fence is not None and plan.document.is_before(context.fence.key, block_key)
            if not handled and not pending:
                self._plan_token_walk(plan, block_key, context)

        if not plan.document.has_node(block_key) or plan.document.get_block(block_key).type != LIST_ITEM:
            self._plan_list_wrap(plan, context)

        if plan.operations:
            logger.debug(f"Planned {len(plan.operations)} operation(s) for block {block_key}")
        return plan.operations

    def convert_block(self, document: Document, block_key: str, context: ComposerContext) -> List[EditOperation]:
        """Plan the edits for one block and apply them to the document"""
        operations = self.plan(document, block_key, context)
        if operations:
            document.apply(operations)
        return operations

    def finalize(self, document: Document, context: ComposerContext) -> List[EditOperation]:
        """
        End-of-session pass, run on commit or blur rather than per keystroke

        A fence still pending is dropped without conversion, so its opener stays
        plain text. A pending list run is wrapped.

        Returns:
            The operations applied to the document
        """
        if context.fence is not None:
            logger.debug(f"Unterminated code fence on block {context.fence.key} left as text")
        context.clear_fence()
        if context.markdown_disabled:
            return []

        self._drop_dead_pointers(document, context)
        plan = _Plan(document.clone())
        self._plan_list_wrap(plan, context)
        if plan.operations:
            document.apply(plan.operations)
        return plan.operations

    # ------------------------------------------------------------------
    # Code fences

    @staticmethod
    def _single_plain_text(block: Block) -> bool:
        return (len(block.children) == 1 and isinstance(block.children[0], Text)
                and not block.children[0].marks)

    def _plan_fence(self, plan: _Plan, block: Block, context: ComposerContext) -> bool:
        """Handle the fence steps; True when the block was consumed as a fence line"""
        single = self._single_plain_text(block)
        fence = context.fence

        if fence is not None and fence.key == block.key:
            match = FENCE_OPEN_RE.match(block.text) if single else None
            if match:
                fence.language = match.group(1)
                return True
            context.clear_fence()
            return False

        if fence is None:
            match = FENCE_OPEN_RE.match(block.text) if single else None
            if match:
                context.fence = FencePointer(block.key, match.group(1))
                logger.debug(f"Code fence opened on block {block.key} (language={match.group(1)!r})")
                return True
            return False

        if single and FENCE_CLOSE_RE.match(block.text) and plan.document.is_before(fence.key, block.key):
            self._plan_fence_close(plan, fence, block)
            context.clear_fence()
            return True
        return False

    def _plan_fence_close(self, plan: _Plan, fence: FencePointer, closing: Block) -> None:
        document = plan.document
        opening = document.get_block(fence.key)
        blocks = document.leaf_blocks()
        first = blocks.index(opening)
        last = blocks.index(closing)
        interior = blocks[first + 1:last]

        parent = document.get_parent(opening.key)
        index = parent.children.index(opening)
        node = {
            "object": OBJECT_BLOCK,
            "key": document.generate_key(),
            "type": CODE,
            "data": {"language": fence.language or self.default_code_language},
            "children": [{
                "object": OBJECT_TEXT,
                "key": document.generate_key(),
                "text": "\n".join(block.text for block in interior),
            }],
        }
        plan.emit(InsertNode(None if parent is document else parent.key, index, node))
        for block in blocks[first:last + 1]:
            plan.emit(RemoveNode(block.key))
        logger.debug(f"Code fence closed: {len(interior)} line(s) into code block {node['key']}")

    # ------------------------------------------------------------------
    # Token walk

    def _plan_token_walk(self, plan: _Plan, block_key: str, context: ComposerContext) -> None:
        offset = 0
        for token in tokenize(plan.document.text_of(block_key)):
            if isinstance(token, str):
                offset += len(token)
            elif token.type in tokenizer.LINE_TYPES:
                self._plan_line(plan, block_key, token, offset, context)
            elif token.type == tokenizer.URL:
                plan.emit(AddMark(plan.span(block_key, offset, offset + token.length), URL))
                offset += token.length
            else:
                mark = MARK_FOR_TOKEN[token.type]
                for part in token.content:
                    if isinstance(part, str):
                        plan.emit(AddMark(plan.span(block_key, offset, offset + len(part)), mark))
                        offset += len(part)
                    else:
                        plan.emit(DeleteRange(plan.span(block_key, offset, offset + part.length)))

    def _plan_line(self, plan: _Plan, block_key: str, token: Token, offset: int,
                   context: ComposerContext) -> None:
        plan.emit(DeleteRange(plan.span(block_key, offset, offset + token.length)))

        if token.type == tokenizer.LIST:
            marker = token.content[0].content
            plan.emit(SetBlock(block_key, LIST_ITEM, list_data(marker)))
            parent = plan.document.get_parent(block_key)
            if not (isinstance(parent, Block) and parent.type == LIST):
                context.list_run.extend(block_key)
        elif token.type == tokenizer.TITLE:
            level = min(len(token.content[0].content), self.max_heading_level)
            plan.emit(SetBlock(block_key, heading_type(level)))
        elif token.type == tokenizer.BLOCKQUOTE:
            plan.emit(SetBlock(block_key, QUOTE))
        elif token.type == tokenizer.HR:
            plan.emit(SetBlock(block_key, HORIZONTAL_RULE))

    # ------------------------------------------------------------------
    # List runs

    def _plan_list_wrap(self, plan: _Plan, context: ComposerContext) -> None:
        run = context.list_run
        if not run.is_open:
            return
        document = plan.document
        if not (document.has_node(run.start) and document.has_node(run.end)):
            run.clear()
            return

        parent = document.get_parent(run.start)
        if document.get_parent(run.end) is not parent:
            logger.debug(f"List run {run.start}..{run.end} is not a sibling run, not wrapping")
            run.clear()
            return

        indices = sorted([
            parent.children.index(document.get_node(run.start)),
            parent.children.index(document.get_node(run.end)),
        ])
        first = parent.children[indices[0]]
        data = {key: value for key, value in first.data.items() if key in ("ordered", "start")}
        plan.emit(WrapBlocks(run.start, run.end, LIST, data, key=document.generate_key()))
        logger.debug(f"Wrapped list run {run.start}..{run.end}")
        run.clear()

    @staticmethod
    def _drop_dead_pointers(document: Document, context: ComposerContext) -> None:
        if context.fence is not None and not document.has_node(context.fence.key):
            context.clear_fence()
        run = context.list_run
        if run.is_open and not (document.has_node(run.start) and document.has_node(run.end)):
            run.clear()


def list_data(marker: str) -> dict:
    """Block data for a list item opened with the given marker"""
    if marker.endswith(".") and marker[:-1].isdigit():
        return {"ordered": True, "start": int(marker[:-1])}
    return {"ordered": False}
