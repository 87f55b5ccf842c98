#!/usr/bin/env python3
# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Test suite for the incremental markdown transformer.

Blocks are typed one at a time through a ComposerSession, the same way a host
editor reports them, and the resulting document structure is checked.
"""

import pytest

from richtext_composer.composer import ComposerSession
from richtext_composer.config import ComposerConfig
from richtext_composer.context import ComposerContext
from richtext_composer.markdown.transformer import MarkdownTransformer, list_data
from richtext_composer.model import AddMark, DeleteRange, Document, Point, Range


def typed(*lines, **config):
    session = ComposerSession(ComposerConfig(**config))
    for line in lines:
        session.type_block(line)
    return session


def summary(document):
    """(type, text) of every top-level block"""
    return [(block.type, block.text) for block in document.children]


class TestInlineMarks:
    """Inline delimiters become marks"""

    def test_bold_operation_list(self):
        document = Document.empty()
        document.insert_text(Point("2", 0), "hello **world**")
        operations = MarkdownTransformer().plan(document, "1", ComposerContext())

        assert operations == [
            DeleteRange(Range(Point("2", 6), Point("2", 8))),
            AddMark(Range(Point("2", 6), Point("2", 11)), "bold"),
            DeleteRange(Range(Point("3", 5), Point("4", 2))),
        ]

    def test_plan_leaves_document_untouched(self):
        document = Document.empty()
        document.insert_text(Point("2", 0), "**hi**")
        before = document.to_dict()
        MarkdownTransformer().plan(document, "1", ComposerContext())
        assert document.to_dict() == before

    def test_convert_applies_plan(self):
        document = Document.empty()
        document.insert_text(Point("2", 0), "hello **world**")
        MarkdownTransformer().convert_block(document, "1", ComposerContext())
        leaves = document.get_block("1").texts()
        assert [(leaf.text, leaf.marks) for leaf in leaves] == [("hello ", ()), ("world", ("bold",))]

    @pytest.mark.parametrize("line, text, mark", [
        ("an *italic* word", "italic", "italic"),
        ("an _italic_ word", "italic", "italic"),
        ("run `ls -la` now", "ls -la", "code"),
        ("a __strong__ word", "strong", "bold"),
    ])
    def test_inline_kinds(self, line, text, mark):
        session = typed(line)
        leaves = session.document.children[0].texts()
        marked = [leaf for leaf in leaves if leaf.marks]
        assert [(leaf.text, leaf.marks) for leaf in marked] == [(text, (mark,))]

    def test_several_inline_tokens(self):
        session = typed("**a** and *b*")
        leaves = session.document.children[0].texts()
        assert [(leaf.text, leaf.marks) for leaf in leaves] == [
            ("a", ("bold",)), (" and ", ()), ("b", ("italic",)),
        ]

    def test_link_is_marked_and_kept(self):
        session = typed("see [Docs](https://example.com)")
        leaves = session.document.children[0].texts()
        assert leaves[-1].text == "[Docs](https://example.com)"
        assert leaves[-1].marks == ("url",)

    def test_disabled_context_plans_nothing(self):
        document = Document.empty()
        document.insert_text(Point("2", 0), "# **x**")
        context = ComposerContext(markdown_disabled=True)
        assert MarkdownTransformer().plan(document, "1", context) == []

    def test_disabled_session_keeps_text(self):
        session = typed("# Title", "**bold**", markdown_disabled=True)
        assert summary(session.document) == [("paragraph", "# Title"), ("paragraph", "**bold**")]


class TestLineConstructs:
    """Line markers change the block type"""

    def test_heading(self):
        assert summary(typed("## Section").document) == [("heading-2", "Section")]

    def test_heading_level_is_capped(self):
        assert summary(typed("####### Deep").document) == [("heading-5", "Deep")]

    def test_heading_cap_follows_config(self):
        assert summary(typed("#### Four", max_heading_level=3).document) == [("heading-3", "Four")]

    def test_heading_with_bold_content(self):
        session = typed("# **Big** news")
        block = session.document.children[0]
        assert block.type == "heading-1"
        assert [(leaf.text, leaf.marks) for leaf in block.texts()] == [("Big", ("bold",)), (" news", ())]

    def test_blockquote(self):
        assert summary(typed("> wise words").document) == [("quote", "wise words")]

    def test_horizontal_rule(self):
        assert summary(typed("above", "---").document)[-1] == ("horizontal-rule", "")


class TestCodeFences:
    """Fenced code blocks typed over several blocks"""

    def test_fence_with_language(self):
        session = typed("```js", "const a = 1;", "let b = 2;", "```")
        (block,) = session.document.children
        assert block.type == "code"
        assert block.data["language"] == "js"
        assert block.text == "const a = 1;\nlet b = 2;"

    def test_fence_without_language_defaults_to_none(self):
        session = typed("```", "x", "```")
        assert session.document.children[0].data["language"] == "none"

    def test_fence_default_language_follows_config(self):
        session = typed("```", "x", "```", default_code_language="text")
        assert session.document.children[0].data["language"] == "text"

    def test_fence_interior_is_not_converted(self):
        session = typed("```py", "# comment", "**kwargs", "```")
        assert session.document.children[0].text == "# comment\n**kwargs"

    def test_blocks_before_fence_are_kept(self):
        session = typed("intro", "```", "code", "```", "outro")
        assert summary(session.document) == [
            ("paragraph", "intro"), ("code", "code"), ("paragraph", "outro"),
        ]

    def test_pending_fence_is_recorded_on_context(self):
        session = typed("```rb")
        assert session.context.fence.key == "1"
        assert session.context.fence.language == "rb"

    def test_unterminated_fence_degrades_at_finalize(self):
        session = typed("```py", "print(1)")
        session.finalize()
        assert session.context.fence is None
        assert summary(session.document) == [("paragraph", "```py"), ("paragraph", "print(1)")]

    def test_editing_opener_away_clears_fence(self):
        session = typed("```py")
        session.delete(Range(Point("2", 0), Point("2", 3)))
        assert session.context.fence is None

    def test_removed_opener_drops_pointer(self):
        session = typed("intro", "```py")
        opener = session.context.fence.key
        session.document.remove_node(opener)
        session.type_block("```")
        # the closer opens a new fence instead of closing a dead one
        assert session.context.fence is not None
        assert session.context.fence.key != opener


class TestListRuns:
    """Consecutive list items are wrapped in a list container"""

    def test_three_items_then_paragraph(self):
        session = typed("- one", "- two", "- three", "after")
        document = session.document
        assert [block.type for block in document.children] == ["list", "paragraph"]
        items = document.children[0].children
        assert [(item.type, item.text) for item in items] == [
            ("list-item", "one"), ("list-item", "two"), ("list-item", "three"),
        ]
        assert document.children[0].data == {"ordered": False}
        assert not session.context.list_run.is_open

    def test_items_are_not_wrapped_while_run_is_open(self):
        session = typed("- one", "- two")
        assert [block.type for block in session.document.children] == ["list-item", "list-item"]
        assert session.context.list_run.start == "1"
        assert session.context.list_run.end == "3"

    def test_ordered_list_keeps_start(self):
        session = typed("3. three", "4. four", "done")
        assert session.document.children[0].data == {"ordered": True, "start": 3}

    def test_finalize_wraps_pending_run(self):
        session = typed("- a", "- b")
        session.finalize()
        assert [block.type for block in session.document.children] == ["list"]

    def test_list_data(self):
        assert list_data("-") == {"ordered": False}
        assert list_data("7.") == {"ordered": True, "start": 7}
