"""Sync planner that gathers snapshots and computes the patch.

The ``SyncPlanner`` ties together the IMAP client, the Maildir scanner,
the baseline cache and the reconciler.  A planning run:

1. Fetches UID/FLAGS for the profile's IMAP folder.
2. Scans the profile's Maildir.
3. Loads the baseline snapshots recorded for the profile.
4. Reconciles the four snapshots into a patch.
5. Builds and returns a ``PlanReport``.

Applying the patch is left to an external executor.  Once it has done
so, ``record_baseline()`` stores the converged state as the baseline for
the next run.

Snapshot errors are fatal to the run: they are logged and re-raised
unchanged, and the baseline is left untouched.  A corrupt baseline file
stops ``plan()`` the same way; ``record_baseline()`` replaces it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from mailsync.config_schema import SyncProfileConfig
from mailsync.core.maildir import scan_maildir
from mailsync.errors import CorruptBaselineError, SnapshotError
from mailsync.sync.models import MailboxSnapshot, PlanReport, Side
from mailsync.sync.normalizer import envelopes_from_fetch
from mailsync.sync.reconciler import reconcile
from mailsync.sync.state import SnapshotCache

logger = logging.getLogger(__name__)


class FlagSource(Protocol):
    """Anything that can return an IMAP ``UID FLAGS`` fetch response."""

    def fetch_flags(
        self, folder: str
    ) -> dict[int, dict[bytes, Any]]: ...  # pragma: no cover


class SyncPlanner:
    """Compute the sync plan for one profile.

    Args:
        client: Connected source of remote flags (``MailboxClient``).
        profile: The sync profile configuration.
        profile_name: Name of the sync profile (used for state files).
    """

    def __init__(
        self,
        client: FlagSource,
        profile: SyncProfileConfig,
        profile_name: str,
    ) -> None:
        self.client = client
        self.profile = profile
        self.profile_name = profile_name
        self.cache = SnapshotCache(Path(profile.state_dir).expanduser())

    # ------------------------------------------------------------------
    # Main entry points
    # ------------------------------------------------------------------

    def plan(self) -> PlanReport:
        """Observe both sides and diff them against the baseline.

        Returns:
            A ``PlanReport`` carrying the patch.

        Raises:
            SnapshotError: If either side cannot be normalized.
            CorruptBaselineError: If the saved baseline cannot be read.
        """
        started_at = datetime.now(timezone.utc).isoformat()

        remote_next, local_next = self._observe()

        try:
            state = self.cache.load(self.profile_name)
        except CorruptBaselineError as exc:
            logger.error("Cannot plan %s: %s", self.profile_name, exc)
            raise
        if not self.cache.has_baseline(state):
            logger.warning(
                "No baseline for profile %s; every message counts as new",
                self.profile_name,
            )
        remote_prev = self.cache.get_snapshot(state, Side.REMOTE)
        local_prev = self.cache.get_snapshot(state, Side.LOCAL)

        hunks = reconcile(remote_prev, remote_next, local_prev, local_next)
        logger.info(
            "Planned %d hunks for %s (%d remote, %d local messages)",
            len(hunks),
            self.profile_name,
            len(remote_next),
            len(local_next),
        )

        return PlanReport(
            profile_name=self.profile_name,
            folder=self.profile.folder,
            hunks=hunks,
            remote_count=len(remote_next),
            local_count=len(local_next),
            baseline_sync=state.get("last_sync"),
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    def record_baseline(self) -> tuple[MailboxSnapshot, MailboxSnapshot]:
        """Store the current state of both sides as the new baseline.

        Returns:
            The ``(remote, local)`` snapshots that were saved.

        Raises:
            SnapshotError: If either side cannot be normalized.
        """
        remote, local = self._observe()

        # Both sides are replaced; a corrupt old file is overwritten.
        state = self.cache.empty(self.profile_name)
        self.cache.set_snapshot(state, Side.REMOTE, remote)
        self.cache.set_snapshot(state, Side.LOCAL, local)
        self.cache.save(self.profile_name, state)

        logger.info(
            "Recorded baseline for %s (%d remote, %d local messages)",
            self.profile_name,
            len(remote),
            len(local),
        )
        return remote, local

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _observe(self) -> tuple[MailboxSnapshot, MailboxSnapshot]:
        """Return the current ``(remote, local)`` snapshots."""
        try:
            fetches = self.client.fetch_flags(self.profile.folder)
            remote = envelopes_from_fetch(fetches)
            local = scan_maildir(
                Path(self.profile.maildir).expanduser(),
                self.profile.info_separator,
            )
        except SnapshotError as exc:
            logger.error(
                "Skipping sync cycle for %s: %s", self.profile_name, exc
            )
            raise
        return remote, local
