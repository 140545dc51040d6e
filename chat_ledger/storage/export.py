"""
Usage ledger CSV export.

Appends one denormalized row per successful API call to a CSV file that
accountants can open directly. The file is never rewritten.
"""

import csv
import logging
from pathlib import Path

from .models import LEDGER_HEADER, LedgerRow

logger = logging.getLogger(__name__)


class LedgerExporter:
    """Append-only writer for the usage cost CSV.

    The header is written once, and only when the file did not exist
    when the exporter was created.
    """

    def __init__(self, path: str = "usage_costs.csv"):
        self.path = Path(path)
        self._needs_header = not self.path.exists()

    def write_row(self, row: LedgerRow) -> None:
        """Append a row to the export file.

        Raises:
            OSError: If the file cannot be written
        """
        with open(self.path, "a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            if self._needs_header:
                writer.writerow(LEDGER_HEADER)
                self._needs_header = False
            writer.writerow(row.as_list())
        logger.info("Exported usage row to %s (total %s)", self.path, row.total_cost)
