"""Translate raw IMAP and Maildir listings into mailbox snapshots.

Two independent conversions, both all-or-nothing:

* ``envelopes_from_fetch`` consumes an IMAPClient ``fetch()`` response
  requested with ``UID`` and ``FLAGS``.
* ``envelopes_from_maildir`` consumes ``MaildirEntry`` values from the
  Maildir scanner.

Flags with no canonical counterpart (IMAP keywords, ``\\Recent``, Maildir
letters such as ``P``) are dropped silently.  Neither function performs
any I/O of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from imapclient import ANSWERED, DELETED, DRAFT, FLAGGED, SEEN

from mailsync.core.maildir import MaildirEntry
from mailsync.errors import InvalidLocalEntryError, MissingRemoteIdError
from mailsync.sync.models import Envelope, Flag, MailboxSnapshot

logger = logging.getLogger(__name__)

# Keyed by the lower-cased system flag so server casing does not matter.
IMAP_FLAG_MAP: dict[bytes, Flag] = {
    SEEN.lower(): Flag.SEEN,
    ANSWERED.lower(): Flag.REPLIED,
    FLAGGED.lower(): Flag.FLAGGED,
    DELETED.lower(): Flag.TRASHED,
    DRAFT.lower(): Flag.DRAFT,
}

MAILDIR_FLAG_MAP: dict[str, Flag] = {
    "S": Flag.SEEN,
    "R": Flag.REPLIED,
    "F": Flag.FLAGGED,
    "T": Flag.TRASHED,
    "D": Flag.DRAFT,
}


def flags_from_imap(raw_flags: Iterable[bytes | str]) -> frozenset[Flag]:
    """Map IMAP system flags to canonical flags, ignoring the rest."""
    flags = set()
    for raw in raw_flags:
        if isinstance(raw, str):
            raw = raw.encode("ascii", "replace")
        flag = IMAP_FLAG_MAP.get(raw.lower())
        if flag is not None:
            flags.add(flag)
    return frozenset(flags)


def flags_from_maildir(markers: str) -> frozenset[Flag]:
    """Map Maildir info letters to canonical flags, ignoring the rest."""
    return frozenset(
        MAILDIR_FLAG_MAP[c] for c in markers if c in MAILDIR_FLAG_MAP
    )


def envelopes_from_fetch(
    fetches: Mapping[int, Mapping[bytes, Any]],
) -> MailboxSnapshot:
    """Build the remote snapshot from an IMAP fetch response.

    Args:
        fetches: Response of ``IMAPClient.fetch(..., ["UID", "FLAGS"])``,
            keyed by message number.  Each record may carry ``b"SEQ"``,
            ``b"UID"`` and ``b"FLAGS"``.

    Returns:
        Snapshot keyed by the UID rendered as text.

    Raises:
        MissingRemoteIdError: If any record lacks a UID.  Nothing is
            returned for the records that were already converted.
    """
    snapshot: MailboxSnapshot = {}
    for key, data in fetches.items():
        uid = data.get(b"UID")
        if uid is None:
            seq = data.get(b"SEQ", key)
            logger.error("IMAP record %s has no UID", seq)
            raise MissingRemoteIdError(seq)
        id = str(uid)
        snapshot[id] = Envelope(
            id=id, flags=flags_from_imap(data.get(b"FLAGS", ()))
        )
    logger.debug("Normalized %d IMAP records", len(snapshot))
    return snapshot


def envelopes_from_maildir(
    entries: Iterable[MaildirEntry],
) -> MailboxSnapshot:
    """Build the local snapshot from a Maildir listing.

    Args:
        entries: Maildir entries; iterating may raise ``OSError`` or
            ``ValueError`` for unreadable or malformed entries.

    Returns:
        Snapshot keyed by the Maildir unique name.

    Raises:
        InvalidLocalEntryError: If reading any entry fails.  The whole
            conversion is aborted.
    """
    snapshot: MailboxSnapshot = {}
    try:
        for entry in entries:
            snapshot[entry.id] = Envelope(
                id=entry.id, flags=flags_from_maildir(entry.flags)
            )
    except (OSError, ValueError) as exc:
        logger.error("Invalid Maildir entry: %s", exc)
        raise InvalidLocalEntryError(str(exc)) from exc
    logger.debug("Normalized %d Maildir entries", len(snapshot))
    return snapshot
