"""
Incremental parser for the AI gateway's server-sent-events stream.

Each event is a line `data: <json>` whose payload looks like
`{"choices": [{"delta": {"content": "..."}}]}`; the stream ends with
`data: [DONE]`. Network chunks may split lines, JSON payloads and multi-byte
UTF-8 characters at any position, so input is buffered until a full line is
available.
"""

import codecs
import json
import logging
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"
_DATA_PREFIX = "data: "


class ChatStreamParser:
    """
    Accumulates assistant content from SSE chunks.

    Usage:
        >>> parser = ChatStreamParser()
        >>> parser.feed(b'data: {"choices":')
        []
        >>> parser.feed(b'[{"delta":{"content":"hi"}}]}\\n')
        ['hi']
        >>> parser.content
        'hi'
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._parts: List[str] = []
        self.done = False

    @property
    def content(self) -> str:
        return "".join(self._parts)

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """
        Consume a chunk and return the content fragments it completed.

        Input after the [DONE] marker is ignored.
        """
        if self.done:
            return []

        if isinstance(chunk, bytes):
            self._buffer += self._decoder.decode(chunk)
        else:
            self._buffer += chunk

        fragments: List[str] = []
        while not self.done:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]
            fragment = self._process_line(line)
            if fragment:
                fragments.append(fragment)

        self._parts.extend(fragments)
        return fragments

    def finish(self) -> List[str]:
        """Flush the decoder and process a trailing line with no newline."""
        if self.done:
            return []

        self._buffer += self._decoder.decode(b"", final=True)
        line, self._buffer = self._buffer, ""

        fragment = self._process_line(line)
        self.done = True
        if not fragment:
            return []
        self._parts.append(fragment)
        return [fragment]

    def _process_line(self, line: str) -> Optional[str]:
        if line.endswith("\r"):
            line = line[:-1]
        if line.startswith(":") or line.strip() == "":
            return None
        if not line.startswith(_DATA_PREFIX):
            return None

        payload = line[len(_DATA_PREFIX):].strip()
        if payload == DONE_MARKER:
            self.done = True
            return None

        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Skipping malformed data line in chat stream")
            return None

        try:
            content = parsed["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return None

        return content if isinstance(content, str) and content else None


def assemble_content(chunks: Iterable[Union[bytes, str]]) -> str:
    """Parse a complete sequence of chunks and return the assembled content."""
    parser = ChatStreamParser()
    for chunk in chunks:
        parser.feed(chunk)
        if parser.done:
            break
    parser.finish()
    return parser.content
