# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

from .html import HtmlSerializer, Rule, build_rules, clean_up_content
from .markdown_renderer import MarkdownRenderer
from .plain import deserialize_plain, serialize_plain

__all__ = [
    'HtmlSerializer', 'Rule', 'build_rules', 'clean_up_content',
    'MarkdownRenderer', 'deserialize_plain', 'serialize_plain',
]
