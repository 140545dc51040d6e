"""
Unit tests for the usage ledger CSV export.
"""

import csv
import os
import shutil
import tempfile
from datetime import datetime

from chat_ledger.storage.export import LedgerExporter
from chat_ledger.storage.models import LEDGER_HEADER, LedgerRow, UsageRecord, format_cost


def _read_rows(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.reader(f))


class TestLedgerRow:
    """Test building export rows from usage records."""
    
    def test_from_record_formats_amounts(self):
        """Verify cost and total are 4-decimal strings."""
        record = UsageRecord(
            id=1,
            timestamp=datetime(2024, 1, 5, 10, 30, 0),
            tokens_used=1500,
            model="gpt-4",
            cost=0.045
        )
        
        row = LedgerRow.from_record(record, total_cost=0.12346)
        
        assert row.timestamp == "2024-01-05T10:30:00"
        assert row.cost == "0.0450"
        assert row.total_cost == "0.1235"
        assert row.as_list() == ["2024-01-05T10:30:00", 1500, "gpt-4", "0.0450", "0.1235"]
    
    def test_format_cost(self):
        """Verify fixed 4-decimal formatting."""
        assert format_cost(0) == "0.0000"
        assert format_cost(1.5) == "1.5000"


class TestLedgerExporter:
    """Test appending rows to the CSV file."""
    
    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "usage_costs.csv")
    
    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)
    
    def _row(self, cost: str, total: str) -> LedgerRow:
        return LedgerRow("2024-01-05T10:30:00", 100, "gpt-4", cost, total)
    
    def test_new_file_gets_header_once(self):
        """Test that the header is written before the first row only."""
        exporter = LedgerExporter(self.path)
        exporter.write_row(self._row("0.0030", "0.0030"))
        exporter.write_row(self._row("0.0030", "0.0060"))
        
        rows = _read_rows(self.path)
        
        assert rows[0] == LEDGER_HEADER
        assert rows[0] == ["Timestamp", "Tokens Used", "Model", "Cost (USD)", "Total Cost (USD)"]
        assert len(rows) == 3
        assert rows[2] == ["2024-01-05T10:30:00", "100", "gpt-4", "0.0030", "0.0060"]
    
    def test_existing_file_is_appended_without_header(self):
        """Test that a file present at startup is never given a second header."""
        LedgerExporter(self.path).write_row(self._row("0.0030", "0.0030"))
        
        exporter = LedgerExporter(self.path)
        exporter.write_row(self._row("0.0010", "0.0040"))
        
        rows = _read_rows(self.path)
        
        assert [r[0] for r in rows].count("Timestamp") == 1
        assert rows[-1][-1] == "0.0040"
    
    def test_no_write_no_file(self):
        """Test that creating an exporter does not touch the file."""
        LedgerExporter(self.path)
        
        assert not os.path.exists(self.path)
