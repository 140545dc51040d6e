"""
Conversation orchestration.

Runs one prompt through the full pipeline, strictly in order:

1. Persist the prompt as a user turn
2. Read the recent turns that form the context window
3. Call the chat completion API (single attempt)
4. Persist the usage record and the assistant reply
5. Export the ledger row with the running total

A failed API call ends the pipeline after step 3 with nothing recorded
beyond the prompt itself.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .pricing import RateTable, calculate_cost
from chat_ledger.sdk.openai_client import ChatCompletionClient, ChatCompletionError
from chat_ledger.storage.export import LedgerExporter
from chat_ledger.storage.models import HistoryTurn, LedgerRow, Role
from chat_ledger.storage.repository import HistoryRepository, UsageRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExchangeResult:
    """Outcome of a successful prompt."""
    reply: str
    tokens_used: int
    model: str
    cost: float
    total_cost: float


def build_context(
    turns: List[HistoryTurn],
    prompt: str,
    prompt_turn_id: Optional[int] = None,
    resend_prompt: bool = False
) -> List[Dict[str, str]]:
    """Assemble the messages sent to the API.

    The window is read after the prompt was stored, so it normally ends
    with the prompt's own turn. Unless resend_prompt is set, that turn is
    dropped so the prompt appears exactly once, as the final message.

    Args:
        turns: Recent turns, oldest first
        prompt: The current prompt
        prompt_turn_id: Id of the stored prompt turn
        resend_prompt: Keep the stored turn and append the prompt again

    Returns:
        Role/content message dictionaries
    """
    if not resend_prompt and prompt_turn_id is not None:
        turns = [turn for turn in turns if turn.id != prompt_turn_id]
    messages = [turn.as_message() for turn in turns]
    messages.append({"role": Role.USER.value, "content": prompt})
    return messages


class ConversationOrchestrator:
    """Sends prompts with conversational context and records the cost."""

    def __init__(
        self,
        history: HistoryRepository,
        usage: UsageRepository,
        client: ChatCompletionClient,
        rates: RateTable,
        exporter: LedgerExporter,
        context_window: int = 5,
        resend_prompt: bool = False
    ):
        self.history = history
        self.usage = usage
        self.client = client
        self.rates = rates
        self.exporter = exporter
        self.context_window = context_window
        self.resend_prompt = resend_prompt

    def submit(self, prompt: str) -> Optional[ExchangeResult]:
        """Send a prompt and record the result.

        Args:
            prompt: Non-empty user prompt

        Returns:
            ExchangeResult on success, None if the API call failed

        Raises:
            sqlite3.Error: If a history or usage write fails
            OSError: If the ledger export fails
        """
        prompt_turn = self.history.append(Role.USER.value, prompt)

        recent = self.history.recent_turns(self.context_window)
        messages = build_context(
            recent,
            prompt,
            prompt_turn_id=prompt_turn.id,
            resend_prompt=self.resend_prompt
        )
        logger.info("Sending %d messages to the API", len(messages))

        try:
            reply = self.client.complete(messages)
        except ChatCompletionError as e:
            if e.detail is not None:
                logger.error("Error calling the API: %s", e.detail)
            else:
                logger.error("Error calling the API: %s", e)
            return None

        cost = calculate_cost(reply.total_tokens, reply.model, self.rates)
        previous_total = self.usage.total_cost()
        record = self.usage.append(reply.total_tokens, reply.model, cost)
        self.history.append(Role.ASSISTANT.value, reply.content)

        total_cost = previous_total + cost
        self.exporter.write_row(LedgerRow.from_record(record, total_cost))

        return ExchangeResult(
            reply=reply.content,
            tokens_used=reply.total_tokens,
            model=reply.model,
            cost=cost,
            total_cost=total_cost
        )
