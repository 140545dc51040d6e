"""
Unit tests for pricing calculations.

Tests rate lookup, default fallback and cost accuracy.
"""

import pytest

from chat_ledger.core.pricing import DEFAULT_RATE, RateTable, calculate_cost


class TestRateTable:
    """Test rate table lookups."""
    
    def test_known_model_rate(self):
        """Verify the table entry is returned for a known model."""
        rates = RateTable({"gpt-4": 0.03})
        assert rates.rate_for("gpt-4") == 0.03
        assert "gpt-4" in rates
        assert len(rates) == 1
    
    def test_unknown_model_uses_default(self):
        """Verify unknown models fall back to the default rate."""
        rates = RateTable({"gpt-4": 0.03})
        assert rates.rate_for("mystery-model") == DEFAULT_RATE == 0.002
    
    def test_default_rate_is_overridable(self):
        """Verify a custom default rate is honored."""
        rates = RateTable({}, default_rate=0.01)
        assert rates.rate_for("anything") == 0.01
    
    def test_zero_rate_is_not_replaced_by_default(self):
        """Verify an explicit zero rate stays zero."""
        rates = RateTable({"free-model": 0.0})
        assert rates.rate_for("free-model") == 0.0


class TestCostCalculation:
    """Test cost calculation accuracy."""
    
    def test_gpt4_scenario(self):
        """Verify 1500 tokens at $0.03/1K costs $0.045."""
        rates = RateTable({"gpt-4": 0.03})
        cost = calculate_cost(1500, "gpt-4", rates)
        assert cost == 0.045
        assert f"{cost:.4f}" == "0.0450"
    
    @pytest.mark.parametrize("tokens,rate", [
        (0, 0.03),
        (1, 0.002),
        (999, 0.0005),
        (250000, 0.06),
    ])
    def test_known_model_formula(self, tokens, rate):
        """Verify cost == tokens / 1000 * rate for listed models."""
        rates = RateTable({"model-a": rate})
        assert calculate_cost(tokens, "model-a", rates) == pytest.approx(tokens / 1000 * rate)
    
    def test_unknown_model_formula(self):
        """Verify unknown models are priced at the default rate."""
        rates = RateTable({"gpt-4": 0.03})
        cost = calculate_cost(2000, "gpt-4-0613", rates)
        assert cost == pytest.approx(2000 / 1000 * 0.002)
    
    def test_zero_tokens_cost(self):
        """Verify zero tokens cost nothing."""
        assert calculate_cost(0, "gpt-4", RateTable({"gpt-4": 0.03})) == 0.0
    
    def test_negative_tokens_raise(self):
        """Verify negative token counts are rejected."""
        with pytest.raises(ValueError, match="tokens must be >= 0"):
            calculate_cost(-1, "gpt-4", RateTable())
