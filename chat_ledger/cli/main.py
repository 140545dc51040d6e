"""
CLI interface for Chat Ledger.

Starts the interactive chat session.
"""

import logging
import sqlite3
import sys
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler

from chat_ledger.cli.loop import CommandLoop
from chat_ledger.config.loader import load_api_settings, load_client_settings
from chat_ledger.config.rates import load_rate_table
from chat_ledger.core.orchestrator import ConversationOrchestrator
from chat_ledger.sdk.openai_client import ChatCompletionClient
from chat_ledger.storage.export import LedgerExporter
from chat_ledger.storage.repository import open_store

app = typer.Typer()
console = Console()

EXIT_CODE_OK = 0
EXIT_CODE_FAIL = 1


def _setup_logging(verbose: bool) -> None:
    """Route log records through Rich on the shared console."""
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def chat(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML settings file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show informational log messages"
    )
):
    """
    Chat with the configured model and keep a cost ledger.

    Commands inside the session:

    history DD/MM/YYYY - DD/MM/YYYY   show the conversation in a date range

    sair                              quit
    """
    _setup_logging(verbose)

    try:
        settings = load_client_settings(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading settings:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    try:
        rates = load_rate_table(settings.rates_path, settings.default_rate)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading model rates:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    client = ChatCompletionClient(load_api_settings(), timeout=settings.request_timeout)
    if client.settings.missing():
        console.print(
            "[yellow]Warning:[/] missing " + ", ".join(client.settings.missing())
            + "; requests will fail until they are set"
        )

    try:
        store = open_store(settings.db_path)
    except sqlite3.Error as e:
        console.print(f"[red]Error opening database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    orchestrator = ConversationOrchestrator(
        history=store.history,
        usage=store.usage,
        client=client,
        rates=rates,
        exporter=LedgerExporter(settings.export_path),
        context_window=settings.context_window,
        resend_prompt=settings.resend_prompt
    )
    CommandLoop(store, orchestrator, console).run()
    sys.exit(EXIT_CODE_OK)


if __name__ == "__main__":
    app()
