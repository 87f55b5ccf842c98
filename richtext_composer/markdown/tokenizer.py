# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Tokenizer for the markdown subset recognized while typing

The tokenizer turns a flat text run into a sequence of plain strings and
Tokens. Concatenating the raw text of the sequence gives back the input, so
the lengths of all items always add up to len(text).

GRAMMAR:
========

Line constructs, only at the start of a line:
- hr          "---", "***", "___" (three or more, alone on the line)
- title       "#" markers, whitespace, then content
- blockquote  ">" and optional whitespace before content
- list        "-", "*", "+" or "N." then whitespace and content

Inline constructs, anywhere:
- code        `text`
- url         [text](href), ![alt](src), <scheme:...>
- bold        **text**, __text__
- italic      *text*, _text_

Composite inline tokens (code, bold, italic) hold three parts: the opening
delimiter as a "punctuation" Token, the inner text as a string and the
closing delimiter as a "punctuation" Token. The title and list tokens hold
their marker as a "punctuation" Token followed by the whitespace string.
"""

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

HR = "hr"
TITLE = "title"
BLOCKQUOTE = "blockquote"
LIST = "list"
CODE = "code"
URL = "url"
BOLD = "bold"
ITALIC = "italic"
PUNCTUATION = "punctuation"

LINE_TYPES = frozenset([HR, TITLE, BLOCKQUOTE, LIST])

HR_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
TITLE_RE = re.compile(r"^(#+)([ \t]+)(?=\S)")
BLOCKQUOTE_RE = re.compile(r"^>[ \t]*(?=\S)")
LIST_RE = re.compile(r"^([*+-]|\d+\.)([ \t]+)(?=\S)")

INLINE_RE = re.compile(
    r"(?P<code>`[^`\n]+`)"
    r"|(?P<url>!?\[[^\]\n]+\]\([^\s)]+\)|<(?:https?|ftp|mailto):[^\s<>]+>)"
    r"|(?P<bold>\*\*(?=\S)[^\n]*?\S\*\*|(?<!\w)__(?=\S)[^\n]*?\S__(?!\w))"
    r"|(?P<italic>\*(?=[^\s*])[^*\n]*?[^\s*]\*|(?<!\w)_(?=[^\s_])[^_\n]*?[^\s_]_(?!\w))"
)

DELIMITER_LENGTHS = {CODE: 1, BOLD: 2, ITALIC: 1}


@dataclass(frozen=True)
class Token:
    """A recognized construct; length is the exact number of characters it consumed"""
    type: str
    content: Union[str, Tuple[Union[str, "Token"], ...]]
    length: int

    @property
    def is_composite(self) -> bool:
        return not isinstance(self.content, str)

    @property
    def raw(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "".join(raw_text(part) for part in self.content)


TokenStream = List[Union[str, Token]]


def make_token(type: str, content: Union[str, Sequence[Union[str, Token]]]) -> Token:
    if isinstance(content, str):
        return Token(type, content, len(content))
    parts = tuple(content)
    return Token(type, parts, sum(item_length(part) for part in parts))


def item_length(item: Union[str, Token]) -> int:
    return len(item) if isinstance(item, str) else item.length


def raw_text(item: Union[str, Token]) -> str:
    return item if isinstance(item, str) else item.raw


def content_length(item: Union[str, Token]) -> int:
    """Length of an item computed from its nested parts"""
    if isinstance(item, str):
        return len(item)
    if isinstance(item.content, str):
        return len(item.content)
    return sum(content_length(part) for part in item.content)


def _push_string(tokens: TokenStream, text: str) -> None:
    if not text:
        return
    if tokens and isinstance(tokens[-1], str):
        tokens[-1] += text
    else:
        tokens.append(text)


def _line_token(line: str) -> Tuple[Union[Token, None], int]:
    if HR_RE.match(line):
        return make_token(HR, line), len(line)
    match = TITLE_RE.match(line)
    if match:
        return make_token(TITLE, [make_token(PUNCTUATION, match.group(1)), match.group(2)]), match.end()
    match = BLOCKQUOTE_RE.match(line)
    if match:
        return make_token(BLOCKQUOTE, match.group(0)), match.end()
    match = LIST_RE.match(line)
    if match:
        return make_token(LIST, [make_token(PUNCTUATION, match.group(1)), match.group(2)]), match.end()
    return None, 0


def _inline_token(kind: str, text: str) -> Token:
    if kind == URL:
        return make_token(URL, text)
    size = DELIMITER_LENGTHS[kind]
    return make_token(kind, [
        make_token(PUNCTUATION, text[:size]),
        text[size:-size],
        make_token(PUNCTUATION, text[-size:]),
    ])


def _tokenize_line(line: str, tokens: TokenStream) -> None:
    token, position = _line_token(line)
    if token is not None:
        tokens.append(token)
    for match in INLINE_RE.finditer(line, position):
        _push_string(tokens, line[position:match.start()])
        tokens.append(_inline_token(match.lastgroup, match.group(0)))
        position = match.end()
    _push_string(tokens, line[position:])


def tokenize(text: str) -> TokenStream:
    """
    Tokenize a text run

    Args:
        text: Flattened text of a block, possibly spanning several lines

    Returns:
        Plain strings and Tokens, in order, covering the whole input
    """
    tokens: TokenStream = []
    lines = text.split("\n")
    for index, line in enumerate(lines):
        _tokenize_line(line, tokens)
        if index < len(lines) - 1:
            _push_string(tokens, "\n")
    return tokens
