"""
RelayChat CLI

Command-line chat client for a remote AI agent webhook.

Usage:
    relaychat chat                  # Interactive REPL mode
    relaychat ask "Summarize..."    # Single turn in the active session
    relaychat sessions list         # List saved sessions
    relaychat sessions show [ID]    # Print a session transcript
    relaychat sessions use ID       # Switch the active session
    relaychat sessions new          # Start a new chat on the next message
    relaychat sessions delete ID    # Delete a session
    relaychat status                # Show configuration and storage status
    relaychat reset                 # Remove all saved sessions
"""

import asyncio
import logging
import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from relaychat import __version__
from relaychat.chat import ChatService
from relaychat.config import LoggingSettings, Settings, get_settings
from relaychat.conversations import ConversationStore
from relaychat.exceptions import StorageError
from relaychat.formatting import format_message_time, format_relative_time
from relaychat.models import Message, Session
from relaychat.storage import JsonFileStorage
from relaychat.transport import WebhookClient

console = Console()

CHAT_HELP = (
    "[bold]/new[/bold] start a new chat  "
    "[bold]/list[/bold] list chats  "
    "[bold]/use ID[/bold] switch chat  "
    "[bold]/delete ID[/bold] delete chat  "
    "[bold]exit[/bold] leave"
)


def configure_cli_logging(settings: LoggingSettings, verbose: bool = False) -> None:
    """
    Apply LOG_* settings without cluttering the terminal.

    Verbose mode logs everything at DEBUG to stderr and LOG_FILE. Otherwise
    only LOG_FILE, when set, receives records at LOG_LEVEL.
    """
    for logger_name in ("relaychat", "httpx", "httpcore", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.NOTSET)
    if verbose:
        settings.model_copy(update={"level": "DEBUG"}).configure()
        return

    quiet = ["httpx", "httpcore", "asyncio"]
    if settings.file:
        settings.configure(console=False)
    else:
        logging.basicConfig(level=logging.CRITICAL)
        quiet.append("relaychat")
    for logger_name in quiet:
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        sys.exit(1)


def _open_store(settings: Settings) -> ConversationStore:
    store = ConversationStore.from_settings(settings)
    store.load()
    return store


def _should_exit_chat(text: str) -> bool:
    return text.strip().lower() in {"exit", "quit", "q", "/exit", "/quit", "bye"}


def _find_session(store: ConversationStore, session_ref: str) -> Session | None:
    """Resolve a full id or an unambiguous id prefix."""
    session = store.get(session_ref)
    if session is not None:
        return session
    matches = [s for s in store.sessions if s.id.startswith(session_ref)]
    if len(matches) == 1:
        return matches[0]
    return None


# ============================================================================
# Rendering
# ============================================================================


def _print_message(message: Message) -> None:
    time_label = format_message_time(message.timestamp)
    if message.role == "user":
        console.print(f"[bold cyan]You[/bold cyan] [dim]{time_label}[/dim]")
        console.print(escape(message.content))
    else:
        console.print(
            Panel(
                Markdown(message.content),
                title="[bold green]Assistant[/bold green]",
                subtitle=f"[dim]{time_label}[/dim]",
                border_style="green",
            )
        )


def _print_transcript(session: Session) -> None:
    console.print(f"[bold]{escape(session.title)}[/bold] [dim]({session.id})[/dim]")
    if not session.messages:
        console.print("[dim]No messages yet.[/dim]")
    for message in session.messages:
        _print_message(message)


def _print_sessions(store: ConversationStore) -> None:
    if not store.sessions:
        console.print("[dim]No chats yet[/dim]")
        return

    active = store.active
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("", width=1)
    table.add_column("Title")
    table.add_column("Updated")
    table.add_column("Messages", justify="right")
    table.add_column("ID", style="dim", no_wrap=True)
    for session in store.sessions:
        table.add_row(
            "*" if active is not None and active.id == session.id else "",
            escape(session.title),
            format_relative_time(session.updated_at),
            str(len(session.messages)),
            session.id[:8],
        )
    console.print(table)


def _handle_chat_command(service: ChatService, text: str) -> None:
    command, _, argument = text.strip().partition(" ")
    argument = argument.strip()
    store = service.store

    if command == "/new":
        service.new_chat()
        console.print("[green]Started a new chat.[/green]")
    elif command == "/list":
        _print_sessions(store)
    elif command == "/use":
        session = _find_session(store, argument) if argument else None
        if session is None:
            console.print(f"[red]No chat matches '{escape(argument)}'.[/red]")
            return
        service.select(session.id)
        _print_transcript(session)
    elif command == "/delete":
        session = _find_session(store, argument) if argument else None
        if session is None:
            console.print(f"[red]No chat matches '{escape(argument)}'.[/red]")
            return
        if click.confirm(f"Delete '{session.title}'?", default=False):
            service.delete(session.id)
            console.print("[green]✓ Chat deleted[/green]")
    elif command == "/help":
        console.print(CHAT_HELP)
    else:
        console.print(f"[yellow]Unknown command {escape(command)}.[/yellow] {CHAT_HELP}")


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="RelayChat")
@click.option("--verbose", is_flag=True, help="Log debug output, including raw webhook replies.")
def cli(verbose: bool):
    """RelayChat - Terminal chat client for AI agent webhooks."""
    settings = _load_settings()
    configure_cli_logging(settings.logging, verbose or settings.debug)


@cli.command()
def chat():
    """Interactive REPL mode for conversations."""
    settings = _load_settings()
    store = _open_store(settings)

    console.print(
        Panel.fit(
            f"[bold green]{escape(settings.app_name)} Interactive Mode[/bold green]\n"
            "Type a message to chat. /help lists commands, 'exit' leaves.",
            border_style="green",
        )
    )
    if store.active is not None:
        _print_transcript(store.active)

    async def run_chat():
        transport = WebhookClient.from_settings(settings.webhook)
        service = ChatService(store, transport)
        try:
            while True:
                try:
                    text = console.input("[bold cyan]You:[/bold cyan] ")
                except EOFError:
                    break
                except KeyboardInterrupt:
                    console.print("\n[yellow]Interrupted. Type 'exit' to quit.[/yellow]")
                    continue

                if not text.strip():
                    continue
                if _should_exit_chat(text):
                    console.print("\n[yellow]Goodbye![/yellow]")
                    break
                if text.lstrip().startswith("/"):
                    _handle_chat_command(service, text)
                    continue

                with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                    reply = await service.submit(text)
                if reply is not None:
                    _print_message(reply)
        finally:
            await transport.close()

    asyncio.run(run_chat())


@cli.command()
@click.argument("message")
@click.option("--new", "new_chat", is_flag=True, help="Send the message in a new chat.")
def ask(message: str, new_chat: bool):
    """Ask a single question in the active chat."""
    settings = _load_settings()
    store = _open_store(settings)

    async def run_turn() -> Message | None:
        transport = WebhookClient.from_settings(settings.webhook)
        service = ChatService(store, transport)
        try:
            if new_chat:
                service.new_chat()
            with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                return await service.submit(message)
        finally:
            await transport.close()

    reply = asyncio.run(run_turn())
    if reply is None:
        raise click.ClickException("Message is empty.")
    _print_message(reply)


@cli.group(name="sessions")
def sessions():
    """Manage saved chat sessions."""
    pass


@sessions.command(name="list")
def list_sessions():
    """List saved chats, most recent first."""
    _print_sessions(_open_store(_load_settings()))


@sessions.command(name="show")
@click.argument("session_id", required=False)
def show_session(session_id: str | None):
    """Print a chat transcript (the active chat by default)."""
    store = _open_store(_load_settings())
    session = _find_session(store, session_id) if session_id else store.active
    if session is None:
        raise click.ClickException("No matching chat.")
    _print_transcript(session)


@sessions.command(name="use")
@click.argument("session_id")
def use_session(session_id: str):
    """Make a chat the active one."""
    store = _open_store(_load_settings())
    session = _find_session(store, session_id)
    if session is None:
        raise click.ClickException(f"No chat matches '{session_id}'.")
    store.set_active(session.id)
    console.print(f"[green]✓ Active chat:[/green] {escape(session.title)}")


@sessions.command(name="new")
def new_session():
    """Start a new chat with the next message."""
    store = _open_store(_load_settings())
    store.set_active(None)
    console.print("[green]✓ The next message starts a new chat.[/green]")


@sessions.command(name="delete")
@click.argument("session_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
def delete_session(session_id: str, yes: bool):
    """Delete a chat permanently."""
    store = _open_store(_load_settings())
    session = _find_session(store, session_id)
    if session is None:
        raise click.ClickException(f"No chat matches '{session_id}'.")
    if not yes and not click.confirm(f"Delete '{session.title}'?", default=False):
        console.print("[yellow]Delete cancelled.[/yellow]")
        return
    store.delete_session(session.id)
    console.print("[green]✓ Chat deleted[/green]")


@cli.command()
def status():
    """Show configuration and storage status."""
    settings = _load_settings()
    store = _open_store(settings)

    table = Table(title="RelayChat Status", show_header=True, header_style="bold cyan")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    table.add_row("Configuration", "✓", f"Debug logging: {'on' if settings.debug else 'off'}")
    log_file = settings.logging.file
    table.add_row("Log file", "✓" if log_file else "-", str(log_file) if log_file else "None")
    if settings.webhook.url:
        table.add_row("Webhook", "✓", settings.webhook.url)
    else:
        table.add_row("Webhook", "✗", "WEBHOOK_URL not set")
    table.add_row("Storage", "✓", str(settings.storage.path))
    table.add_row("Chats", "✓", str(len(store.sessions)))
    active = store.active
    table.add_row("Active chat", "✓" if active else "-", escape(active.title) if active else "None")

    console.print(table)


@cli.command()
@click.option("--yes", is_flag=True, help="Skip confirmation prompts (use with caution).")
def reset(yes: bool):
    """Remove all saved chats."""
    settings = _load_settings()
    if not yes:
        console.print(
            Panel.fit(
                "[bold red]Reset RelayChat State[/bold red]\n"
                f"This deletes {escape(str(settings.storage.path))}.",
                border_style="red",
            )
        )
        if not click.confirm("Continue?", default=False, show_default=True):
            console.print("[yellow]Reset cancelled.[/yellow]")
            return
    try:
        JsonFileStorage(settings.storage.path).clear()
    except StorageError as e:
        raise click.ClickException(e.message) from e
    console.print("[green]✓ Saved chats removed[/green]")


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
