"""Baseline snapshot persistence layer.

Stores the remote and local snapshots recorded after the last successful
sync in the ``.mailsync/`` directory.  Each sync profile gets its own
state file (``snapshots_{profile_name}.json``)::

    {
      "version": 1,
      "last_sync": "2026-01-01T00:00:00+00:00",
      "profile": "inbox",
      "remote": {"4021": ["flagged", "seen"]},
      "local": {"1700000000.M1P2.host": ["seen"]}
    }

Key design choices:

* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Dict-based state** -- state is a plain ``dict`` so callers can
  replace snapshots freely and persist once at the end.
* **Lenient flag decoding** -- unknown flag names in a state file are
  dropped with a warning rather than failing the load.  A file that is
  not JSON, or whose sides are not ``{id: [name, ...]}`` objects, raises
  ``CorruptBaselineError``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from mailsync.errors import CorruptBaselineError
from mailsync.sync.models import (
    FLAG_ORDER,
    Envelope,
    Flag,
    MailboxSnapshot,
    Side,
)

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class SnapshotCache:
    """Load, save, and query baseline snapshots for a given profile.

    Args:
        state_dir: Path to the directory where state files are stored
            (typically ``.mailsync/``).
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, profile_name: str) -> dict:
        """Load baseline state from disk.

        Args:
            profile_name: The sync profile name (used in the filename).

        Returns:
            The state dict.  If the file does not exist an empty state
            with no recorded sync is returned.

        Raises:
            CorruptBaselineError: If the file is not JSON or does not
                hold a ``{id: [flag, ...]}`` mapping per side.
        """
        path = self._state_path(profile_name)
        if not path.exists():
            return self.empty(profile_name)
        with open(path, encoding="utf-8") as fh:
            try:
                state = json.load(fh)
            except ValueError as exc:
                raise CorruptBaselineError(
                    path, f"invalid JSON: {exc}"
                ) from exc
        _check_shape(path, state)
        return state

    def empty(self, profile_name: str) -> dict:
        """Return a state with no recorded sync."""
        return {
            "version": STATE_VERSION,
            "last_sync": None,
            "profile": profile_name,
            "remote": {},
            "local": {},
        }

    def save(self, profile_name: str, state: dict) -> None:
        """Persist baseline state to disk atomically.

        The ``last_sync`` field is set to the current UTC ISO 8601
        timestamp before writing.  Creates ``state_dir`` if needed.

        Args:
            profile_name: The sync profile name.
            state: The state dict to persist.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)
        state["last_sync"] = datetime.now(timezone.utc).isoformat()

        target = self._state_path(profile_name)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._state_dir), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state, fh, indent=2, sort_keys=True)
            os.replace(tmp_path, target)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("Saved baseline for %s to %s", profile_name, target)

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def get_snapshot(self, state: dict, side: Side) -> MailboxSnapshot:
        """Rebuild the recorded snapshot for *side*."""
        snapshot: MailboxSnapshot = {}
        for id, names in state.get(side.value, {}).items():
            snapshot[id] = Envelope(id=id, flags=_decode_flags(id, names))
        return snapshot

    def set_snapshot(
        self, state: dict, side: Side, snapshot: MailboxSnapshot
    ) -> None:
        """Replace the recorded snapshot for *side*.

        Mutates *state* in place.
        """
        state[side.value] = {
            id: [f.value for f in FLAG_ORDER if f in envelope.flags]
            for id, envelope in snapshot.items()
        }

    def has_baseline(self, state: dict) -> bool:
        """Return ``True`` if *state* was ever saved."""
        return state.get("last_sync") is not None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _state_path(self, profile_name: str) -> Path:
        """Return the path to the state file for *profile_name*."""
        return self._state_dir / f"snapshots_{profile_name}.json"


def _check_shape(path: Path, state) -> None:
    if not isinstance(state, dict):
        raise CorruptBaselineError(path, "top level is not an object")
    for side in Side:
        entries = state.get(side.value, {})
        if not isinstance(entries, dict):
            raise CorruptBaselineError(
                path, f"'{side.value}' is not an object"
            )
        for id, names in entries.items():
            if not isinstance(names, list) or not all(
                isinstance(n, str) for n in names
            ):
                raise CorruptBaselineError(
                    path,
                    f"flags of {side.value} {id!r} are not a list of names",
                )


def _decode_flags(id: str, names: list[str]) -> frozenset[Flag]:
    flags = set()
    for name in names:
        try:
            flags.add(Flag(name))
        except ValueError:
            logger.warning("Dropping unknown flag %r on %s", name, id)
    return frozenset(flags)
