"""CLI entry point for mail-cli."""

from __future__ import annotations

import logging

import click
from dotenv import load_dotenv
from rich.logging import RichHandler

from . import constants
from .auth import TokenProvider
from .config import ImapSettings, OAuthConfig
from .display import (
    confirm_override,
    console,
    display_accounts,
    display_results,
    err_console,
    prompt_account,
    prompt_auth_code,
)
from .errors import MailCliError
from .imap_client import ImapConnector
from .models import AccountCredential, DateFailurePolicy
from .reader import fetch_n_recent
from .session import SessionEstablisher
from .store import CredentialStore, select_account


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("mail_cli")
    package_logger.handlers.clear()
    package_logger.addHandler(
        RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
    )
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def _fail(exc: MailCliError) -> click.ClickException:
    return click.ClickException(str(exc))


def _load_store() -> tuple[CredentialStore, dict[str, AccountCredential]]:
    store = CredentialStore(constants.ACCOUNTS_PATH)
    try:
        credentials = store.load()
    except MailCliError as exc:
        raise _fail(exc) from exc
    return store, credentials


def _token_provider(settings: ImapSettings) -> TokenProvider:
    try:
        oauth = OAuthConfig.from_env()
    except MailCliError as exc:
        raise _fail(exc) from exc
    return TokenProvider(oauth, timeout=settings.timeout)


@click.group()
@click.version_option(version="0.1.0", prog_name="mail-cli")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging on stderr.")
def cli(verbose: bool) -> None:
    """mail-cli - read your most recent mails over IMAP with OAuth2."""
    load_dotenv()
    _configure_logging(verbose)


@cli.command()
@click.argument("email")
def login(email: str) -> None:
    """Log in to the mail account EMAIL and store its tokens."""
    store, credentials = _load_store()

    if email in credentials and not confirm_override(email):
        console.print("[dim]Login cancelled.[/dim]")
        return

    tokens = _token_provider(ImapSettings())
    code = prompt_auth_code(tokens.authorization_url())
    if not code:
        raise click.ClickException("No authorization code entered.")

    try:
        credential = tokens.exchange_code(code)
        store.upsert(email, credential)
    except MailCliError as exc:
        raise _fail(exc) from exc

    console.print(f"[green]Logged in as {email}.[/green]")


@cli.command()
@click.argument("count", type=click.IntRange(min=1))
@click.option(
    "-b",
    "--mailbox",
    default=constants.DEFAULT_MAILBOX,
    show_default=True,
    help="Mailbox to read from.",
)
@click.option(
    "-m",
    "--account",
    default=None,
    help="Logged in account to use. Prompts for one when omitted.",
)
@click.option(
    "--skip-undated",
    is_flag=True,
    help="Leave out messages without a valid Date header instead of failing.",
)
def read(count: int, mailbox: str, account: str | None, skip_undated: bool) -> None:
    """Show the COUNT most recent mails, newest first."""
    store, credentials = _load_store()

    if account is None:
        picked = select_account(credentials, prompt_account)
        if picked is None:
            raise click.ClickException(
                "No logged in account selected. Run 'mail-cli login <email>' first."
            )
        account = picked[0]
    elif account not in credentials:
        raise click.ClickException(
            f"{account} is not logged in. Run 'mail-cli login {account}' first."
        )

    settings = ImapSettings()
    establisher = SessionEstablisher(store, _token_provider(settings), ImapConnector(settings))
    policy = DateFailurePolicy.SKIP if skip_undated else DateFailurePolicy.ABORT

    try:
        with establisher.establish(account) as session:
            with console.status(f"Reading {mailbox} of {account}..."):
                results = fetch_n_recent(session, mailbox, count, on_undated=policy)
    except MailCliError as exc:
        message = str(exc)
        if exc.relogin_required:
            message += f"\nRun 'mail-cli login {account}' to log in again."
        raise click.ClickException(message) from exc

    display_results(results)


@cli.command(name="accounts")
def accounts_cmd() -> None:
    """List the logged in accounts."""
    _, credentials = _load_store()
    display_accounts(sorted(credentials))
