"""
SDK for Chat Ledger.

Provides the remote chat completion client.
"""

from .openai_client import ChatCompletionClient, ChatCompletionError, ChatReply

__all__ = ["ChatCompletionClient", "ChatCompletionError", "ChatReply"]
