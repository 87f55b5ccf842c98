#!/usr/bin/env python3
# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Test suite for the command line interface.
"""

import json

from click.testing import CliRunner

from richtext_composer.cli import main


class TestCli:
    """Commands run through click's test runner"""

    def test_compose(self):
        result = CliRunner().invoke(main, ["compose"], input="# Title\n- one\n- two\ndone **now**\n")
        assert result.exit_code == 0, result.output
        message = json.loads(result.output)
        assert message["displayName"] == "Title\none\ntwo\ndone now"
        assert message["content"] == (
            "<h1>Title</h1><ul><li>one</li><li>two</li></ul><div>done <strong>now</strong></div>"
        )

    def test_compose_without_markdown(self):
        result = CliRunner().invoke(main, ["compose", "--no-markdown"], input="# Title\n")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["content"] == "<div># Title</div>"

    def test_parse_html(self):
        result = CliRunner().invoke(main, ["parse-html"], input="<p>hi <b>there</b></p>")
        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        (block,) = document["children"]
        assert block["type"] == "paragraph"
        assert [(leaf["text"], leaf["marks"]) for leaf in block["children"]] == [
            ("hi ", []), ("there", ["bold"]),
        ]

    def test_render(self):
        document = {
            "document": {
                "object": "document",
                "children": [
                    {"object": "block", "type": "quote", "children": [{"object": "text", "text": "wise"}]},
                    {"object": "block", "type": "paragraph", "children": [{"object": "text", "text": ""}]},
                ],
            }
        }
        result = CliRunner().invoke(main, ["render"], input=json.dumps(document))
        assert result.exit_code == 0, result.output
        assert result.output == "<blockquote>wise</blockquote><br>\n"

    def test_render_rejects_bad_json(self):
        result = CliRunner().invoke(main, ["render"], input="{not json")
        assert result.exit_code != 0
        assert "Invalid JSON" in result.output

    def test_log_level_option(self):
        result = CliRunner().invoke(main, ["--log-level", "ERROR", "parse-html"], input="<div>x</div>")
        assert result.exit_code == 0, result.output
