# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
ComposerSession: one editor session around a Document

SESSION ARCHITECTURE:
====================

A session owns one Document, one ComposerContext and the selection the host
last reported. Host edits go through the session so that every edited block
is handed to the MarkdownTransformer right after the edit:

```
host edit -> Document mutated -> transformer.convert_block() -> decorate()
```

COMMIT FLOW:
===========

commit(send) builds the outbound message and hands it to the host's send
callable:

1. displayName: plain-text flattening of the document
2. transformer.finalize(): pending list runs wrapped, open fences dropped
3. content: HTML serialization, then clean_up_content()
4. mentions / groupMentions: drained from the context, present only when non-empty

When send() returns True the document and context are reset; otherwise the
document is left as is so the user can retry. Either way the host receives a
FOCUS_REQUESTED event afterwards.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .config import ComposerConfig
from .constants import GROUP_MENTION, MENTION, OBJECT_INLINE, OBJECT_TEXT, PARAGRAPH
from .context import ComposerContext
from .errors import DocumentError
from .markdown.decorations import Decoration, compute_decorations
from .markdown.transformer import MarkdownTransformer
from .model.cursor import Point, Range
from .model.document import Document, Inline
from .model.operations import EditOperation
from .serializer.html import HtmlSerializer, clean_up_content
from .serializer.plain import serialize_plain

logger = logging.getLogger(__name__)


class ComposerEventType(Enum):
    """Event types a session reports to its host"""
    DOCUMENT_CHANGED = "document_changed"
    MESSAGE_SENT = "message_sent"
    FOCUS_REQUESTED = "focus_requested"


class ComposerSession:
    """
    One composer session: document, transient context and commit handling

    Args:
        config: Session settings, defaults when omitted
        document: Draft to start from, an empty document when omitted
        event_callback: Called as callback(event_type, event_data) for ComposerEventType events
    """

    def __init__(self, config: Optional[ComposerConfig] = None, document: Optional[Document] = None,
                 event_callback: Optional[Callable[[str, Dict[str, Any]], None]] = None):
        self.config = config or ComposerConfig()
        self.context = ComposerContext(markdown_disabled=self.config.markdown_disabled)
        self.transformer = MarkdownTransformer(
            max_heading_level=self.config.max_heading_level,
            default_code_language=self.config.default_code_language,
        )
        self.serializer = HtmlSerializer(
            mention_tag=self.config.mention_tag,
            default_code_language=self.config.default_code_language,
        )
        self._event_callback = event_callback
        self._pristine = document is None
        self.document = document if document is not None else Document.empty()
        self.selection: Range = Range.collapsed(self.document.end_of(self.document.key))

    # ------------------------------------------------------------------
    # Host edits

    def set_selection(self, selection: Range) -> None:
        """Record the host's selection; both points must address live text leaves"""
        self.document.create_range(selection.anchor, selection.focus)
        self.selection = selection

    def insert_text(self, text: str, point: Optional[Point] = None) -> List[EditOperation]:
        """
        Insert text at a point (the selection focus by default) and convert the edited block

        Returns:
            The structural operations the transformer applied
        """
        point = point or self.selection.focus
        block_key = self.document.get_closest_block(point.key).key
        self.document.insert_text(point, text)
        self.selection = Range.collapsed(point.move(len(text)))
        self._pristine = False
        return self.on_block_changed(block_key)

    def delete(self, selection: Optional[Range] = None) -> List[EditOperation]:
        """Delete the content of a range (the current selection by default)"""
        selection = selection or self.selection
        start, _ = self.document.range_edges(selection)
        block_key = self.document.get_closest_block(start.key).key
        self.document.delete_range(selection)
        self.selection = Range.collapsed(start)
        return self.on_block_changed(block_key)

    def type_block(self, text: str) -> List[EditOperation]:
        """
        Type a whole line as a new block at the end of the document

        The first line of a fresh session goes into its initial empty paragraph.
        """
        if self._pristine:
            block = self.document.leaf_blocks()[-1]
            self.document.insert_text(self.document.start_of(block.key), text)
            self._pristine = False
        else:
            block = self.document.append_block(PARAGRAPH, text)
        self.selection = Range.collapsed(self.document.end_of(block.key))
        return self.on_block_changed(block.key)

    def insert_mention(self, mention_id: str, display: str, object_type: str = "user",
                       point: Optional[Point] = None) -> Inline:
        """
        Insert a mention inline at a point (the selection focus by default)

        Args:
            mention_id: Target id; the group type for group mentions
            display: Label shown for the mention
            object_type: Target kind, "groupMention" for group mentions
            point: Insertion point

        Returns:
            The inserted mention inline
        """
        point = point or self.selection.focus
        data: Dict[str, Any] = {"objectType": object_type, "mentionDisplay": display}
        if object_type == GROUP_MENTION:
            data["groupType"] = mention_id
        else:
            data["id"] = mention_id
        inline = self.document.insert_inline(point, {
            "object": OBJECT_INLINE,
            "type": MENTION,
            "data": data,
            "children": [{"object": OBJECT_TEXT, "text": display}],
        })
        after = self.document.get_parent(inline.key).children
        following = after[after.index(inline) + 1]
        self.selection = Range.collapsed(Point(following.key, 0))
        self._pristine = False
        self._emit_event(ComposerEventType.DOCUMENT_CHANGED, {"mention": inline.key})
        return inline

    # ------------------------------------------------------------------
    # Markdown

    def on_block_changed(self, block_key: str) -> List[EditOperation]:
        """Run the transformer over one edited block and apply what it plans"""
        operations = self.transformer.convert_block(self.document, block_key, self.context)
        self._repair_selection(block_key)
        self._emit_event(ComposerEventType.DOCUMENT_CHANGED, {
            "block": block_key,
            "operations": [operation.to_dict() for operation in operations],
        })
        return operations

    def _repair_selection(self, block_key: str) -> None:
        """Collapse the selection to the end of the edited block when an edit invalidated it"""
        try:
            self.document.create_range(self.selection.anchor, self.selection.focus)
        except DocumentError:
            key = block_key if self.document.has_node(block_key) else self.document.key
            self.selection = Range.collapsed(self.document.end_of(key))

    def decorate(self, block_key: str) -> List[Decoration]:
        """Preview decorations of one block"""
        block = self.document.get_block(block_key)
        return compute_decorations(block, disabled=self.context.markdown_disabled)

    def finalize(self) -> List[EditOperation]:
        return self.transformer.finalize(self.document, self.context)

    # ------------------------------------------------------------------
    # Commit

    def build_message(self) -> Dict[str, Any]:
        """
        Build the outbound message and drain the mention channels

        Returns:
            {"displayName", "content", "mentions"?, "groupMentions"?}
        """
        display_name = serialize_plain(self.document)
        self.finalize()
        content = clean_up_content(self.serializer.serialize(self.document, self.context))

        message: Dict[str, Any] = {
            "displayName": display_name,
            "content": content,
        }
        mentions, group_mentions = self.context.drain_mentions()
        if mentions:
            message["mentions"] = mentions
        if group_mentions:
            message["groupMentions"] = group_mentions
        return message

    def commit(self, send: Callable[[Dict[str, Any]], bool]) -> bool:
        """
        Build the message and hand it to send()

        Args:
            send: Host callable returning True when the message was accepted

        Returns:
            Whether the message was accepted
        """
        message = self.build_message()
        accepted = bool(send(message))
        if accepted:
            logger.info(f"Message sent ({len(message['content'])} chars of content)")
            self._emit_event(ComposerEventType.MESSAGE_SENT, {"message": message})
            self._reset()
        else:
            logger.warning("Message rejected by send(), keeping the draft")
        self._emit_event(ComposerEventType.FOCUS_REQUESTED, {})
        return accepted

    def clear(self) -> None:
        """Discard the draft"""
        self._reset()
        self._emit_event(ComposerEventType.FOCUS_REQUESTED, {})

    def _reset(self) -> None:
        self.document = Document.empty()
        self.context.reset()
        self.selection = Range.collapsed(self.document.end_of(self.document.key))
        self._pristine = True
        self._emit_event(ComposerEventType.DOCUMENT_CHANGED, {"reset": True})

    def _emit_event(self, event_type: ComposerEventType, event_data: Dict[str, Any]) -> None:
        """
        Deliver an event to the host callback

        Events are fire-and-forget: a raising callback is logged and never
        breaks the session operation that emitted the event.
        """
        if self._event_callback:
            try:
                self._event_callback(event_type.value, {"session": self, **event_data})
            except Exception as e:
                logger.warning(f"Error in event callback: {e}")
