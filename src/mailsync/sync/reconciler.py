"""Three-way reconciliation of remote and local mailbox snapshots.

Each side is compared against its own baseline snapshot (the state
recorded after the last successful sync), so "changed since last sync"
can be told apart from "always was this way".  Every id in the union of
the four snapshots is classified on its own:

==========================  ==========================================
Presence (rp, rn, lp, ln)   Hunk
==========================  ==========================================
(-, +, -, -)                ``LOCAL ADD_MESSAGE``
(-, -, -, +)                ``REMOTE ADD_MESSAGE``
(+, -, +, +)                ``LOCAL REMOVE_MESSAGE``
(+, +, +, -)                ``REMOTE REMOVE_MESSAGE``
(+, +, +, +)                per-flag comparison, see ``_flag_hunks``
anything else               nothing
==========================  ==========================================

Flag conflicts are resolved with **remote wins**: when both sides
changed the same flag since the baseline, the remote change is applied
to the local copy and the local change is discarded silently.

The ids are visited in sorted order so the same inputs always produce
the same patch.  Only the per-id order of flag hunks (``FLAG_ORDER``) is
part of the contract.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from mailsync.sync.models import (
    FLAG_ORDER,
    Envelope,
    Hunk,
    Patch,
    Side,
)

logger = logging.getLogger(__name__)


def reconcile(
    remote_prev: Mapping[str, Envelope],
    remote_next: Mapping[str, Envelope],
    local_prev: Mapping[str, Envelope],
    local_next: Mapping[str, Envelope],
) -> Patch:
    """Compute the hunks that bring both sides into agreement.

    Args:
        remote_prev: Remote snapshot recorded at the last sync.
        remote_next: Remote snapshot observed now.
        local_prev: Local snapshot recorded at the last sync.
        local_next: Local snapshot observed now.

    Returns:
        The patch.  Empty when neither side changed since the baseline.
    """
    ids = (
        set(remote_prev) | set(remote_next) | set(local_prev) | set(local_next)
    )

    patch: Patch = []
    for id in sorted(ids):
        patch.extend(
            _classify(
                id,
                remote_prev.get(id),
                remote_next.get(id),
                local_prev.get(id),
                local_next.get(id),
            )
        )

    logger.debug("Reconciled %d ids into %d hunks", len(ids), len(patch))
    return patch


def _classify(
    id: str,
    remote_prev: Envelope | None,
    remote_next: Envelope | None,
    local_prev: Envelope | None,
    local_next: Envelope | None,
) -> list[Hunk]:
    """Return the hunks for one id given its envelope in each snapshot."""
    presence = (
        remote_prev is not None,
        remote_next is not None,
        local_prev is not None,
        local_next is not None,
    )

    if presence == (False, True, False, False):
        return [Hunk.add_message(Side.LOCAL, id)]

    if presence == (False, False, False, True):
        return [Hunk.add_message(Side.REMOTE, id)]

    if presence == (True, False, True, True):
        return [Hunk.remove_message(Side.LOCAL, id)]

    if presence == (True, True, True, False):
        return [Hunk.remove_message(Side.REMOTE, id)]

    if all(presence):
        return _flag_hunks(
            id, remote_prev, remote_next, local_prev, local_next
        )

    logger.debug("No action for %s (presence=%s)", id, presence)
    return []


def _flag_hunks(
    id: str,
    remote_prev: Envelope,
    remote_next: Envelope,
    local_prev: Envelope,
    local_next: Envelope,
) -> list[Hunk]:
    """Compare each flag across the four envelopes of a message."""
    hunks: list[Hunk] = []
    for flag in FLAG_ORDER:
        was_remote = remote_prev.has(flag)
        is_remote = remote_next.has(flag)
        was_local = local_prev.has(flag)
        is_local = local_next.has(flag)

        if is_remote and not was_remote:
            hunks.append(Hunk.set_flag(Side.LOCAL, id, flag))
        elif was_remote and not is_remote:
            hunks.append(Hunk.clear_flag(Side.LOCAL, id, flag))
        elif is_local and not was_local:
            hunks.append(Hunk.set_flag(Side.REMOTE, id, flag))
        elif was_local and not is_local:
            hunks.append(Hunk.clear_flag(Side.REMOTE, id, flag))
    return hunks
