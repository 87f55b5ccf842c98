#!/usr/bin/env python3
# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
Test suite for composer sessions: host edits, commit payloads and events.
"""

import pytest

from richtext_composer import ComposerConfig, ComposerEventType, ComposerSession
from richtext_composer.model import Point, Range


class Recorder:
    """Collects the messages handed to send() and answers with a fixed result"""

    def __init__(self, accept=True):
        self.accept = accept
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)
        return self.accept


@pytest.fixture
def events():
    return []


@pytest.fixture
def session(events):
    return ComposerSession(event_callback=lambda event_type, data: events.append(event_type))


class TestCommit:
    """Building and sending the outbound message"""

    def test_payload_shape(self, session):
        session.type_block("# Title")
        session.type_block("- one")
        session.type_block("- two")
        session.type_block("done **now**")
        send = Recorder()

        assert session.commit(send) is True
        assert send.messages == [{
            "displayName": "Title\none\ntwo\ndone now",
            "content": "<h1>Title</h1><ul><li>one</li><li>two</li></ul><div>done <strong>now</strong></div>",
        }]

    def test_mentions_in_payload(self, session):
        session.type_block("hi ")
        session.insert_mention("u1", "@ann")
        session.insert_text(" and ")
        session.insert_mention("channel", "@channel", object_type="groupMention")
        send = Recorder()
        session.commit(send)

        (message,) = send.messages
        assert message["displayName"] == "hi @ann and @channel"
        assert message["mentions"] == [{"id": "u1", "objectType": "user"}]
        assert message["groupMentions"] == [{"groupType": "channel", "objectType": "groupMention"}]
        assert message["content"] == (
            '<div>hi <spark-mention data-object-type="user" data-object-id="u1">@ann</spark-mention>'
            ' and <spark-mention data-object-type="groupMention" data-group-type="channel">'
            '@channel</spark-mention></div>'
        )

    def test_no_mention_keys_without_mentions(self, session):
        session.type_block("plain")
        send = Recorder()
        session.commit(send)
        assert set(send.messages[0]) == {"displayName", "content"}

    def test_accepted_commit_resets(self, session):
        session.type_block("```py")
        session.type_block("- item")
        session.commit(Recorder())
        assert session.document.text == ""
        assert len(session.document.children) == 1
        assert session.context.fence is None
        assert not session.context.list_run.is_open

    def test_rejected_commit_keeps_document(self, session):
        session.type_block("keep me")
        session.insert_mention("u1", "@ann")
        send = Recorder(accept=False)

        assert session.commit(send) is False
        assert session.document.text == "keep me@ann"
        # channels are drained even when the send is rejected
        assert session.context.mentions == []

    def test_rejected_commit_does_not_duplicate_mentions(self, session):
        session.type_block("hey ")
        session.insert_mention("u1", "@ann")
        session.commit(Recorder(accept=False))
        send = Recorder()
        session.commit(send)
        assert send.messages[0]["mentions"] == [{"id": "u1", "objectType": "user"}]

    def test_unterminated_fence_is_sent_as_text(self, session):
        session.type_block("```py")
        session.type_block("print(1)")
        send = Recorder()
        session.commit(send)
        assert send.messages[0]["content"] == "<div>```py</div><div>print(1)</div>"

    def test_code_block_payload(self, session):
        for line in ("```js", "let a = 1;", "```", ""):
            session.type_block(line)
        send = Recorder()
        session.commit(send)
        assert send.messages[0]["content"] == '<pre><code class="language-js">let a = 1;</code></pre><br>'


class TestEvents:
    """Notifications delivered to the host"""

    def test_focus_requested_after_commit(self, session, events):
        session.type_block("x")
        session.commit(Recorder(accept=False))
        assert events[-1] == ComposerEventType.FOCUS_REQUESTED.value

    def test_sent_event_on_success(self, session, events):
        session.type_block("x")
        session.commit(Recorder())
        assert ComposerEventType.MESSAGE_SENT.value in events
        assert events[-1] == ComposerEventType.FOCUS_REQUESTED.value

    def test_clear_requests_focus(self, session, events):
        session.type_block("draft")
        session.clear()
        assert session.document.text == ""
        assert events[-1] == ComposerEventType.FOCUS_REQUESTED.value

    def test_raising_callback_is_swallowed(self):
        def callback(event_type, data):
            raise RuntimeError("host failure")

        session = ComposerSession(event_callback=callback)
        session.type_block("still works")
        assert session.commit(Recorder()) is True


class TestEditing:
    """Host edits routed through the session"""

    def test_insert_text_converts_block(self, session):
        operations = session.insert_text("**hi**")
        assert [operation.type for operation in operations] == ["delete_range", "add_mark", "delete_range"]
        leaf = session.document.children[0].texts()[0]
        assert (leaf.text, leaf.marks) == ("hi", ("bold",))

    def test_selection_is_repaired_after_conversion(self, session):
        session.insert_text("**hi**")
        focus = session.selection.focus
        session.document.create_range(focus, focus)
        assert focus == session.document.end_of("1")

    def test_delete_selection(self, session):
        session.type_block("hello")
        session.set_selection(Range(Point("2", 1), Point("2", 4)))
        session.delete()
        assert session.document.text == "ho"
        assert session.selection == Range.collapsed(Point("2", 1))

    def test_decorate_block(self, session):
        session.type_block("x")
        session.insert_text(" *y")
        assert session.decorate("1") == []

    def test_decorate_respects_disabled(self):
        session = ComposerSession(ComposerConfig(markdown_disabled=True))
        session.type_block("**x**")
        assert session.decorate("1") == []
        decorated = ComposerSession()
        decorated.document.insert_text(Point("2", 0), "**x**")
        assert [d.mark_type for d in decorated.decorate("1")] == ["bold"]


class TestConfig:
    """ComposerConfig construction"""

    def test_defaults(self):
        config = ComposerConfig()
        assert config.markdown_disabled is False
        assert config.mention_tag == "spark-mention"
        assert config.default_code_language == "none"
        assert config.max_heading_level == 5

    def test_from_dict_accepts_camel_and_snake_case(self):
        config = ComposerConfig.from_dict({
            "markdownDisabled": True,
            "mention_tag": "x-mention",
            "maxHeadingLevel": 9,
            "somethingElse": 1,
        })
        assert config.markdown_disabled is True
        assert config.mention_tag == "x-mention"
        assert config.max_heading_level == 5
