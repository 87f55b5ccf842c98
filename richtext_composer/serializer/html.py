# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
HtmlSerializer: Document <-> HTML wire format

RULE TABLE:
==========

Every node and mark kind the wire format knows has exactly one Rule, keyed by
(object, type). A rule lists the tags it claims when reading HTML, a
serialize function and a deserialize function. Lookups go by kind; there is
no probing of rules in sequence.

Block rules          tags                       HTML written
-----------          ----                       ------------
paragraph            div, p                     <div class?>
quote                blockquote                 <blockquote>
code                 pre                        <pre><code class="language-L">
heading-1..5         h1..h6                     <h1>..<h5>
list                 ul, ol                     <ul> / <ol start?>
list-item            li                         <li>
horizontal-rule      hr                         <hr>
plain                -                          children only

Mark rules                                      HTML written
----------                                      ------------
bold                 strong, b                  <strong>
italic               em, i                      <em>
underline            u                          <u>
code                 code                       <code class="language-none">
url                  -                          markdown-it rendering of the raw text
plain                -                          children + "\\n"
clear                -                          children
delete               -                          nothing

Inline rule: mention <-> <spark-mention data-object-type=... data-object-id=...>
(or data-group-type=... for group mentions).

Unknown tags are skipped on read with their children still read; unknown
kinds render nothing on write.

MENTION CHANNELS:
================

Serializing a mention appends {id, objectType} to context.mentions, or
{groupType, objectType} to context.group_mentions for group mentions. The
channels accumulate across serialize calls until the caller drains them with
ComposerContext.drain_mentions().
"""

import html
import logging
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..constants import (
    BOLD,
    CLEAR,
    CODE,
    DEFAULT_CODE_LANGUAGE,
    DEFAULT_MENTION_TAG,
    DELETE,
    GROUP_MENTION,
    HEADINGS,
    HORIZONTAL_RULE,
    INLINE_CODE,
    ITALIC,
    LIST,
    LIST_ITEM,
    MENTION,
    OBJECT_BLOCK,
    OBJECT_INLINE,
    OBJECT_TEXT,
    PARAGRAPH,
    PLAIN,
    PLAIN_MARK,
    QUOTE,
    UNDERLINE,
    URL,
    heading_level,
    heading_type,
)
from ..context import ComposerContext
from ..model.document import Block, Document, Inline, Text
from .markdown_renderer import MarkdownRenderer

logger = logging.getLogger(__name__)

OBJECT_MARK = "mark"

VOID_TAGS = frozenset(["area", "base", "br", "col", "embed", "hr", "img", "input",
                       "link", "meta", "param", "source", "track", "wbr"])


###############################################################################
# HTML reading

class HtmlElement:
    """A parsed HTML element: tag, attributes and children (elements or strings)"""

    def __init__(self, tag: str, attrs: Sequence[Tuple[str, Optional[str]]] = ()):
        self.tag = tag
        self.attrs: Dict[str, str] = {name: value or "" for name, value in attrs}
        self.children: List[Union["HtmlElement", str]] = []

    @property
    def text(self) -> str:
        return "".join(child if isinstance(child, str) else child.text for child in self.children)

    def find(self, tag: str) -> Optional["HtmlElement"]:
        for child in self.children:
            if isinstance(child, HtmlElement):
                if child.tag == tag:
                    return child
                found = child.find(tag)
                if found is not None:
                    return found
        return None


class _TreeBuilder(HTMLParser):
    """Builds an HtmlElement tree; unmatched end tags are ignored"""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.root = HtmlElement("#root")
        self._stack = [self.root]

    def handle_starttag(self, tag, attrs):
        element = HtmlElement(tag, attrs)
        self._stack[-1].children.append(element)
        if tag not in VOID_TAGS:
            self._stack.append(element)

    def handle_startendtag(self, tag, attrs):
        self._stack[-1].children.append(HtmlElement(tag, attrs))

    def handle_endtag(self, tag):
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data):
        children = self._stack[-1].children
        if children and isinstance(children[-1], str):
            children[-1] += data
        else:
            children.append(data)


def parse_html(content: str) -> HtmlElement:
    builder = _TreeBuilder()
    builder.feed(content)
    builder.close()
    return builder.root


###############################################################################
# Rule table

Serialize = Callable[["HtmlSerializer", Any, str, Optional[ComposerContext]], str]
Deserialize = Callable[["HtmlSerializer", HtmlElement, Tuple[str, ...], bool], List[Dict[str, Any]]]


@dataclass(frozen=True)
class Rule:
    """Serialization rule of one node or mark kind"""
    object: str
    type: str
    tags: Tuple[str, ...]
    serialize: Serialize
    deserialize: Optional[Deserialize] = None


def _attributes(attrs: Dict[str, Any]) -> str:
    return "".join(
        f' {name}="{html.escape(str(value))}"'
        for name, value in attrs.items()
        if value is not None and value != ""
    )


def _block_node(type: str, children: List[Dict[str, Any]], data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"object": OBJECT_BLOCK, "type": type, "data": data or {}, "children": children}


def _text_node(text: str, marks: Sequence[str] = ()) -> Dict[str, Any]:
    return {"object": OBJECT_TEXT, "text": text, "marks": list(marks)}


# Blocks

def _serialize_paragraph(serializer, node, children, context):
    return f"<div{_attributes({'class': node.data.get('className')})}>{children}</div>"


def _deserialize_paragraph(serializer, element, marks, top_level):
    data = {"className": element.attrs["class"]} if element.attrs.get("class") else {}
    return [_block_node(PARAGRAPH, serializer.read_children(element, marks), data)]


def _serialize_code(serializer, node, children, context):
    language = node.data.get("language") or serializer.default_code_language
    return f'<pre><code class="language-{html.escape(language)}">{children}</code></pre>'


def _deserialize_code(serializer, element, marks, top_level):
    data: Dict[str, Any] = {"language": serializer.default_code_language}
    inner = element.find("code")
    for name in (inner.attrs.get("class", "") if inner is not None else "").split():
        if name.startswith("language-") and len(name) > len("language-"):
            data["language"] = name[len("language-"):]
    if element.attrs.get("class"):
        data["className"] = element.attrs["class"]
    return [_block_node(CODE, [_text_node(element.text)], data)]


def _simple_block(tag: str) -> Serialize:
    def serialize(serializer, node, children, context):
        return f"<{tag}>{children}</{tag}>"
    return serialize


def _simple_block_reader(type: str) -> Deserialize:
    def deserialize(serializer, element, marks, top_level):
        return [_block_node(type, serializer.read_children(element, marks))]
    return deserialize


def _serialize_heading(serializer, node, children, context):
    level = heading_level(node.type)
    return f"<h{level}>{children}</h{level}>"


def _deserialize_heading(serializer, element, marks, top_level):
    level = int(element.tag[1:])
    return [_block_node(heading_type(level), serializer.read_children(element, marks))]


def _serialize_list(serializer, node, children, context):
    if node.data.get("ordered"):
        return f"<ol{_attributes({'start': node.data.get('start')})}>{children}</ol>"
    return f"<ul>{children}</ul>"


def _deserialize_list(serializer, element, marks, top_level):
    data: Dict[str, Any] = {"ordered": element.tag == "ol"}
    start = element.attrs.get("start", "")
    if data["ordered"] and start.isdigit():
        data["start"] = int(start)
    return [_block_node(LIST, serializer.read_children(element, marks), data)]


def _serialize_rule(serializer, node, children, context):
    return "<hr>"


def _deserialize_rule(serializer, element, marks, top_level):
    return [_block_node(HORIZONTAL_RULE, [_text_node("")])]


def _serialize_plain_block(serializer, node, children, context):
    return children


def _deserialize_break(serializer, element, marks, top_level):
    if top_level:
        return [_block_node(PARAGRAPH, [_text_node("")])]
    return [_text_node("\n", marks)]


# Inlines

def _serialize_mention(serializer, node, children, context):
    object_type = node.data.get("objectType")
    display = html.escape(str(node.data.get("mentionDisplay") or node.text), quote=False)
    tag = serializer.mention_tag

    if object_type == GROUP_MENTION:
        group_type = node.data.get("groupType")
        if context is not None:
            context.group_mentions.append({"groupType": group_type, "objectType": object_type})
        attributes = _attributes({"data-object-type": object_type, "data-group-type": group_type})
        return f"<{tag}{attributes}>{display}</{tag}>"

    mention_id = node.data.get("id")
    if context is not None:
        context.mentions.append({"id": mention_id, "objectType": object_type})
    attributes = _attributes({"data-object-type": object_type, "data-object-id": mention_id})
    return f"<{tag}{attributes}>{display}</{tag}>"


def _deserialize_mention(serializer, element, marks, top_level):
    object_type = element.attrs.get("data-object-type", "")
    data: Dict[str, Any] = {"objectType": object_type, "mentionDisplay": element.text}
    if object_type == GROUP_MENTION:
        data["groupType"] = element.attrs.get("data-group-type", "")
    else:
        data["id"] = element.attrs.get("data-object-id", "")
    return [{
        "object": OBJECT_INLINE,
        "type": MENTION,
        "data": data,
        "children": [_text_node(element.text, marks)],
    }]


# Marks

def _simple_mark(tag: str, attributes: str = "") -> Serialize:
    def serialize(serializer, leaf, children, context):
        return f"<{tag}{attributes}>{children}</{tag}>"
    return serialize


def _mark_reader(mark: str) -> Deserialize:
    def deserialize(serializer, element, marks, top_level):
        return serializer.read_children(element, marks + (mark,))
    return deserialize


def _serialize_url(serializer, leaf, children, context):
    return serializer.renderer.render(leaf.text)


def _serialize_plain_mark(serializer, leaf, children, context):
    return f"{children}\n" if children else children


def _serialize_clear(serializer, leaf, children, context):
    return children


def _serialize_delete(serializer, leaf, children, context):
    return ""


def build_rules() -> Tuple[Rule, ...]:
    """The closed rule table of the wire format"""
    rules = [
        Rule(OBJECT_BLOCK, PARAGRAPH, ("div", "p"), _serialize_paragraph, _deserialize_paragraph),
        Rule(OBJECT_BLOCK, QUOTE, ("blockquote",), _simple_block("blockquote"), _simple_block_reader(QUOTE)),
        Rule(OBJECT_BLOCK, CODE, ("pre",), _serialize_code, _deserialize_code),
        Rule(OBJECT_BLOCK, LIST, ("ul", "ol"), _serialize_list, _deserialize_list),
        Rule(OBJECT_BLOCK, LIST_ITEM, ("li",), _simple_block("li"), _simple_block_reader(LIST_ITEM)),
        Rule(OBJECT_BLOCK, HORIZONTAL_RULE, ("hr",), _serialize_rule, _deserialize_rule),
        Rule(OBJECT_BLOCK, PLAIN, ("br",), _serialize_plain_block, _deserialize_break),
        Rule(OBJECT_INLINE, MENTION, (), _serialize_mention, _deserialize_mention),
        Rule(OBJECT_MARK, BOLD, ("strong", "b"), _simple_mark("strong"), _mark_reader(BOLD)),
        Rule(OBJECT_MARK, ITALIC, ("em", "i"), _simple_mark("em"), _mark_reader(ITALIC)),
        Rule(OBJECT_MARK, UNDERLINE, ("u",), _simple_mark("u"), _mark_reader(UNDERLINE)),
        Rule(OBJECT_MARK, INLINE_CODE, ("code",), _simple_mark("code", ' class="language-none"'),
             _mark_reader(INLINE_CODE)),
        Rule(OBJECT_MARK, URL, (), _serialize_url),
        Rule(OBJECT_MARK, PLAIN_MARK, (), _serialize_plain_mark),
        Rule(OBJECT_MARK, CLEAR, (), _serialize_clear),
        Rule(OBJECT_MARK, DELETE, (), _serialize_delete),
    ]
    headings = [
        Rule(OBJECT_BLOCK, heading, (f"h{level}",), _serialize_heading, _deserialize_heading)
        for level, heading in enumerate(HEADINGS, start=1)
    ]
    # h6 and deeper read as the deepest heading
    headings[-1] = Rule(OBJECT_BLOCK, HEADINGS[-1], (f"h{len(HEADINGS)}", "h6"),
                        _serialize_heading, _deserialize_heading)
    return tuple(rules + headings)


DEFAULT_RULES = build_rules()


###############################################################################
# Serializer

class HtmlSerializer:
    """
    Bidirectional Document <-> HTML mapping over a closed rule table

    Args:
        rules: Rule table, DEFAULT_RULES unless testing
        mention_tag: Custom element name used for mentions
        default_code_language: Language written for code blocks without one
    """

    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES, mention_tag: str = DEFAULT_MENTION_TAG,
                 default_code_language: str = DEFAULT_CODE_LANGUAGE):
        self.mention_tag = mention_tag
        self.default_code_language = default_code_language
        self.renderer = MarkdownRenderer()
        self.rules: Dict[Tuple[str, str], Rule] = {(rule.object, rule.type): rule for rule in rules}
        self._tags: Dict[str, Rule] = {}
        for rule in rules:
            tags = (mention_tag,) if (rule.object, rule.type) == (OBJECT_INLINE, MENTION) else rule.tags
            for tag in tags:
                self._tags[tag] = rule

    # ------------------------------------------------------------------
    # Document -> HTML

    def serialize(self, document: Document, context: Optional[ComposerContext] = None) -> str:
        """
        Serialize a document to HTML

        Args:
            document: Document to serialize
            context: Session context receiving mention entries; None discards them

        Returns:
            HTML string, before clean_up_content()
        """
        return "".join(self._serialize_node(block, context) for block in document.children)

    def _serialize_node(self, node: Union[Block, Inline, Text], context: Optional[ComposerContext]) -> str:
        if isinstance(node, Text):
            return self._serialize_leaf(node, context)
        rule = self.rules.get((node.object, node.type))
        if rule is None:
            logger.debug(f"No rule for {node.object} {node.type!r}, rendering nothing")
            return ""
        children = "".join(self._serialize_node(child, context) for child in node.children)
        return rule.serialize(self, node, children, context)

    def _serialize_leaf(self, leaf: Text, context: Optional[ComposerContext]) -> str:
        content = html.escape(leaf.text, quote=False)
        for mark in reversed(leaf.marks):
            rule = self.rules.get((OBJECT_MARK, mark))
            if rule is None:
                logger.debug(f"No rule for mark {mark!r}, rendering nothing")
                return ""
            content = rule.serialize(self, leaf, content, context)
        return content

    # ------------------------------------------------------------------
    # HTML -> Document

    def deserialize(self, content: str) -> Document:
        """
        Build a document from HTML

        Unknown tags are skipped and their children read in their place.
        """
        root = parse_html(content)
        children = self._coerce_blocks(self._read(root.children, (), True), top_level=True)
        return Document.from_dict({"object": "document", "children": children})

    def read_children(self, element: HtmlElement, marks: Tuple[str, ...]) -> List[Dict[str, Any]]:
        """Read the children of a block-level element, wrapping loose text when blocks are mixed in"""
        return self._coerce_blocks(self._read(element.children, marks, False), top_level=False)

    def _read(self, children: Sequence[Union[HtmlElement, str]], marks: Tuple[str, ...],
              top_level: bool) -> List[Dict[str, Any]]:
        nodes: List[Dict[str, Any]] = []
        for child in children:
            if isinstance(child, str):
                nodes.append(_text_node(child, marks))
                continue
            rule = self._tags.get(child.tag)
            if rule is None or rule.deserialize is None:
                logger.debug(f"Skipping unknown tag <{child.tag}>")
                nodes.extend(self._read(child.children, marks, top_level))
                continue
            nodes.extend(rule.deserialize(self, child, marks, top_level))
        return nodes

    @staticmethod
    def _coerce_blocks(nodes: List[Dict[str, Any]], top_level: bool) -> List[Dict[str, Any]]:
        """Group loose text and inlines next to blocks into paragraphs"""
        if not top_level and not any(node["object"] == OBJECT_BLOCK for node in nodes):
            return nodes

        result: List[Dict[str, Any]] = []
        loose: List[Dict[str, Any]] = []

        def flush():
            if any(node["object"] != OBJECT_TEXT or node["text"].strip() for node in loose):
                result.append(_block_node(PARAGRAPH, list(loose)))
            loose.clear()

        for node in nodes:
            if node["object"] == OBJECT_BLOCK:
                flush()
                result.append(node)
            else:
                loose.append(node)
        flush()
        return result


def clean_up_content(content: str) -> str:
    """
    Normalize serialized HTML before it goes on the wire, in this order:

    1. drop the newline right before a closing code tag
    2. give every bare <code> the "language-none" class
    3. turn empty <div></div> pairs into <br>
    """
    content = content.replace("\n</code>", "</code>")
    content = content.replace("<code>", '<code class="language-none">')
    content = content.replace("<div></div>", "<br>")
    return content
