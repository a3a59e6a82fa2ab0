"""IMAP and Maildir access shared by the planner and the CLI."""

from .client import MailboxClient
from .maildir import MaildirEntry, iter_maildir_entries, scan_maildir

__all__ = [
    "MailboxClient",
    "MaildirEntry",
    "iter_maildir_entries",
    "scan_maildir",
]
