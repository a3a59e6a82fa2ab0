"""Maildir directory scanner.

Lists the messages of a Maildir without reading their contents.  A
delivered message lives in ``new/`` (no info part yet) or ``cur/`` with a
name of the form ``<unique>:2,<flags>``, where ``<flags>`` is a run of
single-letter markers (``S``, ``R``, ``F``, ``T``, ``D``, ...).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mailsync.sync.models import MailboxSnapshot

logger = logging.getLogger(__name__)

MAILDIR_SUBDIRS = ("new", "cur")


@dataclass(frozen=True)
class MaildirEntry:
    """One message file in a Maildir.

    Attributes:
        id: Unique name of the message (file name without info part).
        flags: Raw flag letters from the info part, ``""`` if none.
        path: Location of the message file.
    """

    id: str
    flags: str = ""
    path: Path | None = None


def parse_entry_name(name: str, info_separator: str = ":") -> tuple[str, str]:
    """Split a Maildir file name into ``(unique, flags)``.

    Raises:
        ValueError: If the unique part is empty or the info part is not
            a ``2,`` flags block.
    """
    unique, sep, info = name.partition(info_separator)
    if not unique:
        raise ValueError(f"empty unique name in '{name}'")
    if not sep:
        return unique, ""
    if not info.startswith("2,"):
        raise ValueError(f"unsupported info '{info}' in '{name}'")
    return unique, info[2:]


def iter_maildir_entries(
    root: Path, info_separator: str = ":"
) -> Iterator[MaildirEntry]:
    """Lazily yield the entries of the Maildir at *root*.

    Dotfiles and subdirectories are skipped.

    Raises:
        FileNotFoundError: If ``new/`` or ``cur/`` is missing.
        ValueError: If a file name cannot be parsed.
    """
    for subdir in MAILDIR_SUBDIRS:
        directory = root / subdir
        if not directory.is_dir():
            raise FileNotFoundError(f"not a maildir: {directory} missing")
        for path in sorted(directory.iterdir()):
            if path.name.startswith(".") or not path.is_file():
                continue
            unique, flags = parse_entry_name(path.name, info_separator)
            yield MaildirEntry(id=unique, flags=flags, path=path)


def scan_maildir(
    root: Path, info_separator: str = ":"
) -> MailboxSnapshot:
    """Scan *root* and return its snapshot.

    Raises:
        InvalidLocalEntryError: If the Maildir cannot be listed.
    """
    # Imported here, the normalizer imports MaildirEntry from this module.
    from mailsync.sync.normalizer import envelopes_from_maildir

    logger.debug("Scanning maildir %s", root)
    return envelopes_from_maildir(iter_maildir_entries(root, info_separator))
