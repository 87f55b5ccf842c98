#!/usr/bin/env python3
# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Test suite for live-preview decorations.
"""

from richtext_composer.markdown.decorations import Decoration, compute_decorations
from richtext_composer.model import Document, Point, Range


def block_of(*texts, type="paragraph"):
    document = Document.from_dict({
        "object": "document",
        "children": [{
            "object": "block",
            "key": "1",
            "type": type,
            "children": [
                {"object": "text", "key": key, "text": text, "marks": list(marks)}
                for key, text, marks in texts
            ],
        }],
    })
    return document.get_block("1")


class TestDecorations:
    """Decoration ranges over one block"""

    def test_single_leaf(self):
        block = block_of(("2", "say **hi** now", ()))
        assert compute_decorations(block) == [
            Decoration(Range(Point("2", 4), Point("2", 10)), "bold"),
        ]

    def test_range_spans_leaves(self):
        block = block_of(("2", "a **b", ()), ("3", "c** d", ("underline",)))
        assert compute_decorations(block) == [
            Decoration(Range(Point("2", 2), Point("3", 3)), "bold"),
        ]

    def test_ordered_and_disjoint(self):
        block = block_of(("2", "*a* `b` **c**", ()))
        decorations = compute_decorations(block)
        assert [d.mark_type for d in decorations] == ["italic", "code", "bold"]
        assert [(d.range.anchor.offset, d.range.focus.offset) for d in decorations] == [
            (0, 3), (4, 7), (8, 13),
        ]

    def test_links_consume_length_without_decoration(self):
        block = block_of(("2", "[x](http://y.z) *i*", ()))
        assert compute_decorations(block) == [
            Decoration(Range(Point("2", 16), Point("2", 19)), "italic"),
        ]

    def test_line_constructs_are_not_decorated(self):
        block = block_of(("2", "# title *x*", ()))
        assert compute_decorations(block) == [
            Decoration(Range(Point("2", 8), Point("2", 11)), "italic"),
        ]

    def test_code_block_is_not_decorated(self):
        assert compute_decorations(block_of(("2", "**x**", ()), type="code")) == []

    def test_disabled(self):
        assert compute_decorations(block_of(("2", "**x**", ())), disabled=True) == []

    def test_decorations_do_not_touch_the_block(self):
        block = block_of(("2", "**x**", ()))
        compute_decorations(block)
        assert block.text == "**x**"
        assert block.texts()[0].marks == ()
