"""
Command parsing for the interactive loop.

Each input line is parsed once into one of: Prompt, HistoryQuery, Exit
or Empty. A malformed ``history`` command raises CommandError.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Union

EXIT_KEYWORD = "sair"
HISTORY_KEYWORD = "history"
HISTORY_USAGE = 'Invalid "history" command. Use the format: history DD/MM/YYYY - DD/MM/YYYY'

_HISTORY_PATTERN = re.compile(
    r"history\s+(\d{2}/\d{2}/\d{4})\s+-\s+(\d{2}/\d{2}/\d{4})",
    re.IGNORECASE
)


class CommandError(ValueError):
    """Raised when an input line is a malformed command."""


@dataclass(frozen=True)
class Prompt:
    """Free text to send to the assistant."""
    text: str


@dataclass(frozen=True)
class HistoryQuery:
    """Request for the turns recorded between two dates, both inclusive."""
    start: date
    end: date

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def end_at(self) -> datetime:
        return datetime.combine(self.end, time.max)


@dataclass(frozen=True)
class Exit:
    pass


@dataclass(frozen=True)
class Empty:
    pass


Command = Union[Prompt, HistoryQuery, Exit, Empty]


def _parse_date(value: str) -> date:
    """Parse DD/MM/YYYY without relying on the locale."""
    day, month, year = (int(part) for part in value.split("/"))
    try:
        return date(year, month, day)
    except ValueError:
        raise CommandError(f"Invalid date {value!r}. {HISTORY_USAGE}")


def parse_command(line: str) -> Command:
    """Parse one line of terminal input.

    Args:
        line: Raw input line

    Returns:
        The parsed command

    Raises:
        CommandError: If the line starts with "history" but does not
            match ``history DD/MM/YYYY - DD/MM/YYYY``
    """
    text = line.strip()
    if not text:
        return Empty()
    if text.lower() == EXIT_KEYWORD:
        return Exit()
    if text.lower().startswith(HISTORY_KEYWORD):
        match = _HISTORY_PATTERN.fullmatch(text)
        if not match:
            raise CommandError(HISTORY_USAGE)
        start = _parse_date(match.group(1))
        end = _parse_date(match.group(2))
        if start > end:
            raise CommandError(
                f"Start date {start.isoformat()} is after end date {end.isoformat()}."
            )
        return HistoryQuery(start=start, end=end)
    return Prompt(text=text)
