"""mailsync - IMAP/Maildir flag and message reconciliation."""

__version__ = "0.1.0"
