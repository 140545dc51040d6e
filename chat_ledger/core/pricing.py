"""
Pricing calculations and rate management.

Computes the cost of an API call from its total token count and the
configured per-model rate table.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict

# Price per 1K tokens applied to models missing from the rate table
DEFAULT_RATE = 0.002


@dataclass(frozen=True)
class RateTable:
    """Per-model price per 1K tokens, loaded once at startup."""
    rates: Dict[str, float] = field(default_factory=dict)
    default_rate: float = DEFAULT_RATE

    def rate_for(self, model: str) -> float:
        """Get the rate for a model, falling back to the default rate.

        Args:
            model: Model identifier as echoed by the API

        Returns:
            Price per 1K tokens
        """
        return self.rates.get(model, self.default_rate)

    def __contains__(self, model: str) -> bool:
        return model in self.rates

    def __len__(self) -> int:
        return len(self.rates)


def calculate_cost(tokens: int, model: str, rates: RateTable) -> float:
    """Calculate the cost of a call.

    cost = (tokens / 1000) * rate, computed in Decimal so that rates such
    as 0.03 do not pick up binary float error.

    Args:
        tokens: Total tokens consumed by the call
        model: Model identifier
        rates: Rate table to price against

    Returns:
        Cost in USD, unrounded

    Raises:
        ValueError: If tokens is negative
    """
    if tokens < 0:
        raise ValueError(f"tokens must be >= 0, got {tokens}")

    rate = Decimal(str(rates.rate_for(model)))
    cost = (Decimal(tokens) / Decimal("1000")) * rate
    return float(cost)
