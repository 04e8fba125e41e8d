"""JSON-backed credential store, keyed by account address."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

from .constants import ACCOUNTS_PATH
from .errors import StoragePersistFailed, StorageReadFailed, UnknownAccount
from .models import AccountCredential

logger = logging.getLogger(__name__)

_CREDENTIAL_KEYS = ("access_token", "refresh_token")


class CredentialStore:
    """Persistent mapping of account id -> AccountCredential.

    The whole mapping is rewritten on every mutation, so the file always
    mirrors the in-memory state after a successful ``upsert``.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or ACCOUNTS_PATH)
        self._credentials: dict[str, AccountCredential] = {}

    # --- public API ---

    def load(self) -> dict[str, AccountCredential]:
        """Read the store from disk. A missing file is an empty store."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No credential file at %s, starting empty", self.path)
            self._credentials = {}
            return {}
        except OSError as exc:
            raise StorageReadFailed(f"Cannot read {self.path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise StorageReadFailed(f"{self.path} is not valid UTF-8: {exc}") from exc

        self._credentials = _decode(text, self.path)
        logger.debug("Loaded %d account(s) from %s", len(self._credentials), self.path)
        return dict(self._credentials)

    def upsert(self, account: str, credential: AccountCredential) -> None:
        """Insert or replace *account*, then persist the full mapping.

        Raises StoragePersistFailed when the write fails; the in-memory
        entry is already updated at that point.
        """
        self._credentials[account] = credential
        self._persist()
        logger.info("Stored credentials for %s", account)

    def get(self, account: str) -> AccountCredential:
        try:
            return self._credentials[account]
        except KeyError:
            raise UnknownAccount(account) from None

    @property
    def accounts(self) -> dict[str, AccountCredential]:
        return dict(self._credentials)

    def __contains__(self, account: object) -> bool:
        return account in self._credentials

    # --- internals ---

    def _persist(self) -> None:
        document = {
            account: {"access_token": cred.access_token, "refresh_token": cred.refresh_token}
            for account, cred in self._credentials.items()
        }
        text = json.dumps(document, indent=2, sort_keys=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file with mode 0600; os.replace swaps it in atomically.
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as exc:
            raise StoragePersistFailed(f"Cannot write {self.path}: {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoragePersistFailed(f"Cannot write {self.path}: {exc}") from exc


def _decode(text: str, path: Path) -> dict[str, AccountCredential]:
    if not text.strip():
        return {}
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StorageReadFailed(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise StorageReadFailed(f"{path} must contain a JSON object")

    credentials: dict[str, AccountCredential] = {}
    for account, entry in document.items():
        if not isinstance(entry, dict) or not all(
            isinstance(entry.get(key), str) for key in _CREDENTIAL_KEYS
        ):
            raise StorageReadFailed(
                f"Entry for {account} in {path} needs string access_token and refresh_token"
            )
        credentials[account] = AccountCredential(
            access_token=entry["access_token"],
            refresh_token=entry["refresh_token"],
        )
    return credentials


def select_account(
    credentials: dict[str, AccountCredential],
    choose: Callable[[Sequence[str]], str | None],
) -> tuple[str, AccountCredential] | None:
    """Pick one stored account.

    With no accounts returns None, with exactly one returns it without
    asking; otherwise *choose* gets the sorted ids and its answer is looked up.
    """
    if not credentials:
        return None
    if len(credentials) == 1:
        return next(iter(credentials.items()))

    picked = choose(sorted(credentials))
    if picked is None or picked not in credentials:
        return None
    return picked, credentials[picked]
