"""
Tests for the chat SSE stream parser and prompt builder.
"""

import json

import pytest

from fintrack.agents.finance_chat import (
    ChatStreamParser,
    assemble_content,
    build_chat_messages,
    build_system_prompt,
)


def sse_line(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n"


STREAM = (
    ": keep-alive\n"
    + sse_line("Bạn đã chi ")
    + "\n"
    + sse_line("50.000 ₫")
    + sse_line(" cho ăn uống.")
    + "data: [DONE]\n"
)
EXPECTED = "Bạn đã chi 50.000 ₫ cho ăn uống."


class TestChatStreamParser:

    def test_line_split_across_chunks(self):
        parser = ChatStreamParser()

        first = parser.feed(b'data: {"choices":')
        second = parser.feed(b'[{"delta":{"content":"hi"}}]}\n')

        assert first == []
        assert second == ["hi"]
        assert parser.content == "hi"

    def test_every_split_point_gives_same_content(self):
        raw = STREAM.encode("utf-8")

        for i in range(len(raw) + 1):
            assert assemble_content([raw[:i], raw[i:]]) == EXPECTED, f"split at {i}"

    def test_byte_at_a_time(self):
        raw = STREAM.encode("utf-8")

        assert assemble_content(raw[i:i + 1] for i in range(len(raw))) == EXPECTED

    def test_str_chunks_accepted(self):
        assert assemble_content([STREAM[:17], STREAM[17:]]) == EXPECTED

    def test_done_marker_stops_accumulation(self):
        parser = ChatStreamParser()

        parser.feed(sse_line("a") + "data: [DONE]\n" + sse_line("b"))

        assert parser.done is True
        assert parser.content == "a"
        assert "[DONE]" not in parser.content
        assert parser.feed(sse_line("c")) == []

    def test_crlf_line_endings(self):
        parser = ChatStreamParser()

        parser.feed(sse_line("x").replace("\n", "\r\n"))

        assert parser.content == "x"

    def test_trailing_line_without_newline_flushed_on_finish(self):
        parser = ChatStreamParser()

        assert parser.feed(sse_line("tail").rstrip("\n")) == []
        assert parser.finish() == ["tail"]
        assert parser.content == "tail"

    def test_malformed_and_foreign_lines_ignored(self):
        chunks = [
            "event: ping\n",
            "data: {not json}\n",
            'data: {"choices": []}\n',
            'data: {"choices": [{"delta": {"role": "assistant"}}]}\n',
            sse_line("ok"),
        ]

        assert assemble_content(chunks) == "ok"


class TestPrompts:

    def test_system_prompt_embeds_pretty_json(self):
        prompt = build_system_prompt({"total_balance": 1500000, "note": "ví"}, "Vietnamese")

        assert '"total_balance": 1500000' in prompt
        assert "ví" in prompt
        assert "Answer in Vietnamese" in prompt

    def test_system_message_is_prepended(self):
        turns = [{"role": "user", "content": "hello"}]

        messages = build_chat_messages(turns, None, "English")

        assert messages[0]["role"] == "system"
        assert "{}" in messages[0]["content"]
        assert messages[1:] == turns


@pytest.mark.parametrize("chunk_size", [1, 3, 7, 64])
def test_fixed_size_chunks(chunk_size):
    raw = STREAM.encode("utf-8")
    chunks = [raw[i:i + chunk_size] for i in range(0, len(raw), chunk_size)]

    assert assemble_content(chunks) == EXPECTED
