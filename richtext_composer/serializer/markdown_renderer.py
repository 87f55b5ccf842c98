# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Full markdown renderer for url-marked runs

Runs marked "url" keep their raw markdown (links, autolinks, images) and are
rendered through markdown-it at serialization time, a richer grammar than the
one recognized while typing.
"""

import re

from markdown_it import MarkdownIt

SINGLE_PARAGRAPH_RE = re.compile(r"<p>((?:(?!</?p>)[\s\S])*)</p>\s?")


class MarkdownRenderer:
    """CommonMark renderer returning inline-friendly HTML"""

    def __init__(self):
        self._md = MarkdownIt("commonmark", {"html": False})
        self._md.enable("strikethrough")
        self._md.enable("table")

    def render(self, text: str) -> str:
        """
        Render markdown to HTML, unwrapping a single enclosing paragraph

        Args:
            text: Raw markdown

        Returns:
            HTML; "<p>x</p>\\n" comes back as "x"
        """
        html = self._md.render(text)
        match = SINGLE_PARAGRAPH_RE.fullmatch(html)
        if match:
            return match.group(1)
        return html
