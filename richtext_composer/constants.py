# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Node kinds, mark kinds and wire names shared across the composer.
"""

# Node object kinds
OBJECT_DOCUMENT = "document"
OBJECT_BLOCK = "block"
OBJECT_INLINE = "inline"
OBJECT_TEXT = "text"

# Block types
PARAGRAPH = "paragraph"
QUOTE = "quote"
CODE = "code"
LIST = "list"
LIST_ITEM = "list-item"
PLAIN = "plain"
HORIZONTAL_RULE = "horizontal-rule"
HEADING_PREFIX = "heading-"
MAX_HEADING_LEVEL = 5
HEADINGS = tuple(f"{HEADING_PREFIX}{level}" for level in range(1, MAX_HEADING_LEVEL + 1))

# Inline types
MENTION = "mention"
GROUP_MENTION = "groupMention"

# Mark types
BOLD = "bold"
ITALIC = "italic"
UNDERLINE = "underline"
INLINE_CODE = "code"
URL = "url"
PLAIN_MARK = "plain"
DELETE = "delete"
CLEAR = "clear"

MARK_TYPES = (BOLD, ITALIC, UNDERLINE, INLINE_CODE, URL, PLAIN_MARK, DELETE, CLEAR)

# Wire format
DEFAULT_CODE_LANGUAGE = "none"
DEFAULT_MENTION_TAG = "spark-mention"


def heading_type(level: int) -> str:
    """Block type for a heading marker of the given length, capped at the deepest level"""
    level = max(1, min(level, MAX_HEADING_LEVEL))
    return f"{HEADING_PREFIX}{level}"


def heading_level(block_type: str) -> int:
    """Heading level of a heading block type, 0 for anything else"""
    if block_type in HEADINGS:
        return int(block_type[len(HEADING_PREFIX):])
    return 0
