"""Constants for mail-cli."""

import os
from pathlib import Path

# --- Data paths ---
DATA_DIR = Path(os.environ.get("MAIL_CLI_HOME", Path.home() / ".mail-cli"))
ACCOUNTS_FILENAME = "accounts.json"
ACCOUNTS_PATH = DATA_DIR / ACCOUNTS_FILENAME

# --- Google OAuth2 ---
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
MAIL_SCOPES = ("https://mail.google.com/",)

# --- IMAP ---
GOOGLE_IMAP_HOST = "imap.gmail.com"
GOOGLE_IMAP_PORT = 993
DEFAULT_MAILBOX = "INBOX"
DEFAULT_TIMEOUT = 30.0  # seconds, socket and token endpoint
# Longest message set sent in one FETCH; larger requests are split.
MAX_MESSAGE_SET_LENGTH = 1000
