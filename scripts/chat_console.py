#!/usr/bin/env python3
"""
Finance chat console.

Streams an assistant reply from the AI gateway to the terminal using the same
request building and SSE parsing as POST /chat. Requires AI_GATEWAY_API_KEY.

Usage:
    python scripts/chat_console.py "How much did I spend on food this month?"
    python scripts/chat_console.py --data summary.json "Can I afford a new laptop?"
    python scripts/chat_console.py --interactive
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ.setdefault("VALIDATE_CONFIG", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fintrack.agents.finance_chat import ChatStreamParser
from fintrack.services.chat_service import ChatServiceError, open_gateway_stream
from fintrack.utils.logging import LOG_FORMAT, resolve_level

logging.basicConfig(level=resolve_level(), format=LOG_FORMAT)
logger = logging.getLogger(__name__)


SAMPLE_FINANCIAL_DATA: Dict[str, Any] = {
    "total_balance": 15250000,
    "accounts": [
        {"name": "Vietcombank", "type": "bank", "balance": 12000000, "currency": "VND"},
        {"name": "Wallet", "type": "cash", "balance": 750000, "currency": "VND"},
        {"name": "MoMo", "type": "e_wallet", "balance": 2500000, "currency": "VND"},
    ],
    "recent_transactions": [
        {"type": "expense", "category": "food", "amount": 85000, "date": "2025-10-28",
         "description": "Lunch"},
        {"type": "income", "category": "salary", "amount": 18000000, "date": "2025-10-25",
         "description": "October salary"},
        {"type": "expense", "category": "bills", "amount": 1200000, "date": "2025-10-20",
         "description": "Electricity"},
    ],
    "monthly_income": 18000000,
    "monthly_expense": 4350000,
    "top_expense_categories": [
        {"category": "bills", "amount": 2100000},
        {"category": "food", "amount": 1650000},
        {"category": "transport", "amount": 600000},
    ],
}


async def stream_reply(messages: List[Dict[str, str]], financial_data: Dict[str, Any]) -> str:
    """Print the reply as it arrives and return the assembled text."""
    stream = await open_gateway_stream(messages, financial_data)
    parser = ChatStreamParser()

    try:
        async for chunk in stream.iter_bytes():
            for piece in parser.feed(chunk):
                print(piece, end="", flush=True)
            if parser.done:
                break
    finally:
        await stream.aclose()

    for piece in parser.finish():
        print(piece, end="", flush=True)
    print()
    return parser.content


async def run_console(
    first_question: str | None,
    financial_data: Dict[str, Any],
    interactive: bool,
) -> int:
    history: List[Dict[str, str]] = []
    question = first_question

    while True:
        if question is None:
            if not interactive:
                return 0
            try:
                question = input("\nyou> ").strip()
            except EOFError:
                return 0
            if not question or question in ("exit", "quit"):
                return 0

        history.append({"role": "user", "content": question})
        print("\nassistant> ", end="", flush=True)

        try:
            reply = await stream_reply(history, financial_data)
        except ChatServiceError as e:
            print(f"\n[error {e.status_code}] {e.message}")
            return 1

        history.append({"role": "assistant", "content": reply})
        question = None


def main():
    parser = argparse.ArgumentParser(
        description="Chat with the finance assistant from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("question", nargs="?", help="First question to ask")
    parser.add_argument(
        "--data", "-d",
        type=str,
        help="Path to a JSON financial summary (default: built-in sample)"
    )
    parser.add_argument(
        "--interactive", "-i",
        action="store_true",
        help="Keep asking follow-up questions until 'exit'"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        for name in list(logging.root.manager.loggerDict):
            if name.startswith("fintrack"):
                logging.getLogger(name).setLevel(logging.DEBUG)

    if not args.question and not args.interactive:
        parser.print_help()
        sys.exit(1)

    financial_data = SAMPLE_FINANCIAL_DATA
    if args.data:
        with open(args.data, encoding="utf-8") as f:
            financial_data = json.load(f)

    sys.exit(asyncio.run(run_console(args.question, financial_data, args.interactive)))


if __name__ == "__main__":
    main()
