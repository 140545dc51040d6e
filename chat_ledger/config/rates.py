"""
Model rate table loading.

Reads the per-model price per 1K tokens from a CSV file with at least
the columns ``model`` and ``rate-1k-tkns``.
"""

import csv
from pathlib import Path

from chat_ledger.core.pricing import DEFAULT_RATE, RateTable

MODEL_COLUMN = "model"
RATE_COLUMN = "rate-1k-tkns"


def load_rate_table(path: str, default_rate: float = DEFAULT_RATE) -> RateTable:
    """Load the rate table from a CSV file.

    Runs once at startup; any problem with the file is fatal.

    Args:
        path: Path to the rates CSV
        default_rate: Rate applied to models missing from the file

    Returns:
        RateTable mapping model name to price per 1K tokens

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing or a rate is invalid
    """
    rates_path = Path(path)
    if not rates_path.exists():
        raise FileNotFoundError(f"Model rates file not found: {path}")

    rates = {}
    with open(rates_path, 'r', newline='', encoding='utf-8-sig') as f:
        reader = csv.DictReader(f)
        fieldnames = [name.strip() for name in (reader.fieldnames or [])]
        missing = [c for c in (MODEL_COLUMN, RATE_COLUMN) if c not in fieldnames]
        if missing:
            raise ValueError(f"Model rates file {path} is missing columns: {missing}")
        reader.fieldnames = fieldnames

        # Header is line 1
        for line_number, row in enumerate(reader, start=2):
            model = (row.get(MODEL_COLUMN) or "").strip()
            if not model:
                continue
            raw_rate = (row.get(RATE_COLUMN) or "").strip()
            try:
                rate = float(raw_rate)
            except ValueError:
                raise ValueError(
                    f"Invalid rate {raw_rate!r} for model {model!r} on line {line_number} of {path}"
                )
            if rate < 0:
                raise ValueError(
                    f"Negative rate for model {model!r} on line {line_number} of {path}"
                )
            rates[model] = rate

    return RateTable(rates=rates, default_rate=default_rate)
