"""
Data models for storage layer.

Defines the conversation and usage records kept in the local database,
and the denormalized row written to the usage export.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Author of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class HistoryTurn:
    """One recorded message of the conversation.
    
    Turns are append-only and ordered by timestamp, ties broken by id.
    """
    id: int
    role: str
    content: str
    timestamp: datetime

    def as_message(self) -> dict:
        """Message dict in the shape the chat completion API expects."""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class UsageRecord:
    """Immutable billing event for a single successful API call."""
    id: int
    timestamp: datetime
    tokens_used: int
    model: str
    cost: float


def format_cost(amount: float) -> str:
    """Render a USD amount as a fixed 4-decimal string."""
    return f"{amount:.4f}"


LEDGER_HEADER = ["Timestamp", "Tokens Used", "Model", "Cost (USD)", "Total Cost (USD)"]


@dataclass(frozen=True)
class LedgerRow:
    """Human-readable export of a usage record plus the running total."""
    timestamp: str
    tokens_used: int
    model: str
    cost: str
    total_cost: str

    @classmethod
    def from_record(cls, record: UsageRecord, total_cost: float) -> "LedgerRow":
        """Build an export row, formatting both amounts to 4 decimals."""
        return cls(
            timestamp=record.timestamp.isoformat(),
            tokens_used=record.tokens_used,
            model=record.model,
            cost=format_cost(record.cost),
            total_cost=format_cost(total_cost),
        )

    def as_list(self) -> list:
        return [self.timestamp, self.tokens_used, self.model, self.cost, self.total_cost]
