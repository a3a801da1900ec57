"""
Finance chat assistant.

The model itself runs behind an OpenAI-compatible AI gateway; this package
only builds the prompt and decodes the gateway's server-sent-events stream.
"""

from .prompts import build_chat_messages, build_system_prompt
from .stream import ChatStreamParser, assemble_content

__all__ = [
    "build_chat_messages",
    "build_system_prompt",
    "ChatStreamParser",
    "assemble_content",
]
