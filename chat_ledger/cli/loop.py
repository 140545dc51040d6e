"""
Interactive command loop.

Reads one line at a time and dispatches it. A prompt is fully processed
(API call, persistence, export, printing) before the next line is read.
"""

import logging
import sqlite3
from typing import Callable, List, Optional

from rich.console import Console
from rich.text import Text

from chat_ledger.core.commands import (
    CommandError,
    Empty,
    Exit,
    HistoryQuery,
    Prompt,
    parse_command,
    EXIT_KEYWORD
)
from chat_ledger.core.orchestrator import ConversationOrchestrator, ExchangeResult
from chat_ledger.storage.models import HistoryTurn, format_cost
from chat_ledger.storage.repository import ChatStore

logger = logging.getLogger(__name__)

PROMPT_TEXT = f'[green]Type your question or a command (or "{EXIT_KEYWORD}" to quit): [/]'


class CommandLoop:
    """Blocking read-dispatch loop for the chat client.

    Owns the store for its lifetime and closes it exactly once.
    """

    def __init__(
        self,
        store: ChatStore,
        orchestrator: ConversationOrchestrator,
        console: Console,
        read_line: Optional[Callable[[str], str]] = None
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.console = console
        self.read_line = read_line or (lambda prompt: console.input(prompt))
        self.closed = False

    def run(self) -> None:
        """Process input until the exit keyword or end of input."""
        try:
            while True:
                try:
                    line = self.read_line(PROMPT_TEXT)
                except (EOFError, KeyboardInterrupt):
                    self.console.print()
                    break
                if not self.dispatch(line):
                    break
        finally:
            self.close()
        self.console.print("Program finished.")

    def dispatch(self, line: str) -> bool:
        """Handle one input line.

        Returns:
            False when the loop should stop, True otherwise
        """
        try:
            command = parse_command(line)
        except CommandError as e:
            self.console.print(str(e), markup=False)
            return True

        if isinstance(command, Exit):
            return False
        if isinstance(command, Empty):
            return True
        if isinstance(command, HistoryQuery):
            self._show_history(command)
            return True
        if isinstance(command, Prompt):
            self._ask(command.text)
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.store.close()

    def _ask(self, prompt: str) -> None:
        try:
            result = self.orchestrator.submit(prompt)
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to record the exchange: %s", e)
            self.console.print(f"[red]Error recording the exchange:[/] {e}")
            return
        if result is not None:
            self._print_result(result)

    def _print_result(self, result: ExchangeResult) -> None:
        self.console.print("\n[bold]Assistant reply:[/bold]\n")
        self.console.print(Text(result.reply))
        self.console.print()
        self.console.print(
            f"Tokens used: {result.tokens_used}, "
            f"Cost: ${format_cost(result.cost)}, "
            f"Total: ${format_cost(result.total_cost)}",
            style="dim",
            markup=False
        )

    def _show_history(self, query: HistoryQuery) -> None:
        turns = self.store.history.turns_in_range(query.start_at, query.end_at)
        if not turns:
            self.console.print("No history found for this period.")
            return
        self.console.print(
            f"\nHistory from {query.start.isoformat()} to {query.end.isoformat()}:"
        )
        for line in format_turns(turns):
            self.console.print(line, markup=False, highlight=False)


def format_turns(turns: List[HistoryTurn]) -> List[str]:
    """Render turns as ``[timestamp] (role): content`` lines."""
    return [
        f"[{turn.timestamp.isoformat(sep=' ')}] ({turn.role}): {turn.content}"
        for turn in turns
    ]
