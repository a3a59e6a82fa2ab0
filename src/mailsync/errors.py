"""Exceptions raised while building mailbox snapshots.

``SnapshotError`` and its subclasses are fatal to the current sync
cycle: no partial snapshot is ever returned, and the caller is expected
to skip reconciliation until the next scheduled run.
``CorruptBaselineError`` means the recorded baseline cannot be trusted;
it stays in place until an operator removes it or records a new one.
"""


class SnapshotError(Exception):
    """Base exception for snapshot normalization failures."""


class MissingRemoteIdError(SnapshotError):
    """A fetched IMAP record carried no UID.

    Attributes:
        sequence: Message sequence number of the offending record.
    """

    def __init__(self, sequence: int | None):
        super().__init__(f"cannot find uid on imap message {sequence}")
        self.sequence = sequence


class InvalidLocalEntryError(SnapshotError):
    """A Maildir entry could not be read or parsed.

    Attributes:
        detail: Description of the underlying failure.
    """

    def __init__(self, detail: str):
        super().__init__(f"cannot get maildir entry: {detail}")
        self.detail = detail


class CorruptBaselineError(Exception):
    """A saved baseline file could not be decoded.

    Attributes:
        path: Location of the offending state file.
        detail: What was wrong with it.
    """

    def __init__(self, path, detail: str):
        super().__init__(f"corrupt baseline {path}: {detail}")
        self.path = path
        self.detail = detail
