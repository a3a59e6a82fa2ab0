"""IMAP/Maildir reconciliation engine.

Public API for computing the operations that bring a remote IMAP folder
and a local Maildir back into agreement.

Architecture
------------
The engine uses **archive-based three-way reconciliation**: each side is
compared against its own baseline snapshot recorded at the last sync, so
a change on one side is never confused with a difference that has always
existed.  Conflicting flag changes are resolved with **remote wins**.

Modules:

- ``models``      -- ``Flag``, ``Envelope``, ``Side``, ``HunkOp``, ``Hunk``,
  ``PlanReport``: core data contracts.
- ``normalizer``  -- IMAP fetch response / Maildir listing to snapshot.
- ``reconciler``  -- ``reconcile()``: four snapshots to a patch.
- ``state``       -- ``SnapshotCache``: load/save baseline snapshots.
- ``planner``     -- ``SyncPlanner``: orchestrates a planning run.
- ``reporter``    -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from mailsync.config_schema import SyncProfileConfig
    from mailsync.core import MailboxClient
    from mailsync.sync import SyncPlanner, format_plan_report

    profile = SyncProfileConfig(folder="INBOX", maildir="~/Mail/INBOX")

    with MailboxClient(config) as client:
        planner = SyncPlanner(client, profile, profile_name="inbox")
        report = planner.plan()
        print(format_plan_report(report))

        # ... apply report.hunks with an executor, then:
        planner.record_baseline()
"""

from .models import (
    FLAG_ORDER,
    Envelope,
    Flag,
    Hunk,
    HunkOp,
    MailboxSnapshot,
    Patch,
    PlanReport,
    Side,
    make_snapshot,
)
from .normalizer import envelopes_from_fetch, envelopes_from_maildir
from .planner import SyncPlanner
from .reconciler import reconcile
from .reporter import format_patch, format_plan_report, plan_to_json
from .state import SnapshotCache

__all__ = [
    "FLAG_ORDER",
    "Envelope",
    "Flag",
    "Hunk",
    "HunkOp",
    "MailboxSnapshot",
    "Patch",
    "PlanReport",
    "Side",
    "SnapshotCache",
    "SyncPlanner",
    "envelopes_from_fetch",
    "envelopes_from_maildir",
    "format_patch",
    "format_plan_report",
    "make_snapshot",
    "plan_to_json",
    "reconcile",
]
