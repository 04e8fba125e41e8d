"""Rich-based display and prompt functions for mail-cli."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from .models import MailResult, ParsedMail

console = Console()
err_console = Console(stderr=True)


def _field(value: str | None) -> str:
    """Trimmed header value, or '-' when absent."""
    if value is None:
        return "-"
    return value.strip() or "-"


def render_mail(mail: ParsedMail) -> Panel:
    """Render one mail as a panel: headers, then the body."""
    headers = Table.grid(padding=(0, 2))
    headers.add_column(style="bold")
    headers.add_column()
    headers.add_row("From:", _field(mail.sender))
    headers.add_row("To:", _field(mail.to))
    headers.add_row("Send Date:", mail.date.isoformat(sep=" ") if mail.date else "-")
    headers.add_row("Subject:", _field(mail.subject))

    return Panel(
        Group(headers, Rule(style="dim"), Text(mail.body.strip())),
        title=_field(mail.subject),
        title_align="left",
    )


def display_results(results: Sequence[MailResult]) -> None:
    """Print each requested slot in order; failed slots get an error panel."""
    if not results:
        console.print("[yellow]No messages found.[/yellow]")
        return

    for result in results:
        if result.ok:
            console.print(render_mail(result.mail))
        else:
            console.print(
                Panel(
                    f"[red]{result.error}[/red]",
                    title=f"Message {result.index}",
                    title_align="left",
                    border_style="red",
                )
            )


def display_accounts(accounts: Sequence[str]) -> None:
    if not accounts:
        console.print("[dim]No logged in accounts.[/dim]")
        return
    table = Table(title="Accounts")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Account")
    for idx, account in enumerate(accounts, start=1):
        table.add_row(str(idx), account)
    console.print(table)


def prompt_account(accounts: Sequence[str]) -> str | None:
    """Ask the user to pick one of *accounts*."""
    lines = ["[bold]Choose an account from the list:[/bold]"]
    lines.extend(f"  - {account}" for account in accounts)
    console.print("\n".join(lines))
    answer = Prompt.ask("Account", choices=list(accounts), show_choices=False, console=console)
    return answer or None


def confirm_override(account: str) -> bool:
    return Confirm.ask(
        f"Do you want to override the existing data for {account}?",
        default=True,
        console=console,
    )


def prompt_auth_code(url: str) -> str:
    """Show the consent URL and read the pasted authorization code."""
    console.print(Panel(url, title="Visit this link and authorize access"))
    return Prompt.ask("[bold]Paste the code here[/bold]", console=console).strip()
