"""
Finance Chat Prompt Templates

The system prompt defines the assistant's role and embeds the user's
financial summary as pretty-printed JSON. Conversation turns from the client
follow it unchanged.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

FINANCE_CHAT_SYSTEM_PROMPT = """You are a smart personal finance advisor. Your job is to analyse the user's financial situation and give useful advice.

<financial_data>
{financial_data}
</financial_data>

<guidelines>
- Answer in {language}
- Analyse spending and income clearly
- Give practical advice on saving and investing
- Use concrete figures from the data provided
- Keep answers short and easy to understand
- Format with markdown when helpful
</guidelines>"""


def build_system_prompt(financial_data: Optional[Mapping[str, Any]], language: str) -> str:
    """Render the system prompt with the financial summary embedded."""
    rendered = json.dumps(
        financial_data if financial_data is not None else {},
        indent=2,
        ensure_ascii=False,
        default=str,
    )
    return FINANCE_CHAT_SYSTEM_PROMPT.format(financial_data=rendered, language=language)


def build_chat_messages(
    messages: List[Dict[str, str]],
    financial_data: Optional[Mapping[str, Any]],
    language: str,
) -> List[Dict[str, str]]:
    """Prepend the system prompt to the client's conversation."""
    return [
        {"role": "system", "content": build_system_prompt(financial_data, language)},
        *messages,
    ]
