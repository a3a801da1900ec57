"""
AI assistant components for the fintrack backend.

- finance_chat: prompt construction and SSE stream parsing for the
  personal-finance chat assistant served through the AI gateway.
"""
