"""Tests for the three-way reconciler.

Covers:
- Message additions and removals on either side
- Per-flag set/clear propagation in both directions
- Remote-wins precedence when both sides change the same flag
- Combinations that produce no hunk
- Exclusivity of message-level and flag hunks per id
- Side symmetry, no-op baseline, and idempotence after convergence
- Deterministic ordering and read-only inputs
"""

from __future__ import annotations

import itertools
from types import MappingProxyType

from mailsync.sync.models import (
    FLAG_ORDER,
    Envelope,
    Flag,
    Hunk,
    MailboxSnapshot,
    Side,
)
from mailsync.sync.reconciler import reconcile

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _env(id: str, *flags: Flag) -> Envelope:
    return Envelope(id=id, flags=frozenset(flags))


def _snap(*envelopes: Envelope) -> MailboxSnapshot:
    return {e.id: e for e in envelopes}


def _swap(hunks: list[Hunk]) -> list[Hunk]:
    """Return *hunks* with every target side flipped."""
    return [h.model_copy(update={"target": h.target.opposite}) for h in hunks]


E1 = _env("1", Flag.SEEN, Flag.REPLIED)
E2 = _env("1", Flag.SEEN, Flag.FLAGGED, Flag.REPLIED)


# ---------------------------------------------------------------------------
# Message-level hunks
# ---------------------------------------------------------------------------


class TestMessageHunks:
    """Adding and removing whole messages."""

    def test_new_local_message_is_added_remotely(self):
        """A message that only appeared locally is added to the remote."""
        env1 = _env("1", Flag.SEEN)
        env2 = _env("2", Flag.FLAGGED)

        patch = reconcile(
            _snap(env1), _snap(env1), _snap(env1), _snap(env1, env2)
        )

        assert patch == [Hunk.add_message(Side.REMOTE, "2")]

    def test_new_remote_message_is_added_locally(self):
        """A message that only appeared remotely is added locally."""
        env1 = _env("1", Flag.SEEN)
        env2 = _env("2", Flag.FLAGGED)

        patch = reconcile(
            _snap(env1), _snap(env1, env2), _snap(env1), _snap(env1)
        )

        assert patch == [Hunk.add_message(Side.LOCAL, "2")]

    def test_local_deletion_is_removed_remotely(self):
        """A message deleted locally is removed from the remote."""
        env1 = _env("1", Flag.SEEN)
        env2 = _env("2", Flag.FLAGGED)
        both = _snap(env1, env2)

        patch = reconcile(both, both, both, _snap(env1))

        assert patch == [Hunk.remove_message(Side.REMOTE, "2")]

    def test_remote_deletion_is_removed_locally(self):
        """A message deleted remotely is removed locally."""
        env1 = _env("1", Flag.SEEN)
        env2 = _env("2", Flag.FLAGGED)
        both = _snap(env1, env2)

        patch = reconcile(both, _snap(env1), both, both)

        assert patch == [Hunk.remove_message(Side.LOCAL, "2")]

    def test_new_message_ignores_its_flags(self):
        """Additions carry no flag hunks even when the message has flags."""
        env = _env("7", Flag.SEEN, Flag.FLAGGED, Flag.DRAFT)

        patch = reconcile({}, _snap(env), {}, {})

        assert patch == [Hunk.add_message(Side.LOCAL, "7")]


# ---------------------------------------------------------------------------
# Flag hunks
# ---------------------------------------------------------------------------


class TestFlagHunks:
    """Per-flag comparison for messages present in all four snapshots."""

    def test_local_flag_added_is_set_remotely(self):
        patch = reconcile(_snap(E1), _snap(E1), _snap(E1), _snap(E2))
        assert patch == [Hunk.set_flag(Side.REMOTE, "1", Flag.FLAGGED)]

    def test_remote_flag_added_is_set_locally(self):
        patch = reconcile(_snap(E1), _snap(E2), _snap(E1), _snap(E1))
        assert patch == [Hunk.set_flag(Side.LOCAL, "1", Flag.FLAGGED)]

    def test_remote_flag_removed_is_cleared_locally(self):
        patch = reconcile(_snap(E2), _snap(E1), _snap(E2), _snap(E2))
        assert patch == [Hunk.clear_flag(Side.LOCAL, "1", Flag.FLAGGED)]

    def test_local_flag_removed_is_cleared_remotely(self):
        patch = reconcile(_snap(E2), _snap(E2), _snap(E2), _snap(E1))
        assert patch == [Hunk.clear_flag(Side.REMOTE, "1", Flag.FLAGGED)]

    def test_flag_hunks_follow_flag_order(self):
        """Several flags on one id are emitted Draft..Trashed."""
        bare = _env("1")
        full = _env("1", *reversed(FLAG_ORDER))

        patch = reconcile(_snap(bare), _snap(bare), _snap(bare), _snap(full))

        assert [h.flag for h in patch] == list(FLAG_ORDER)
        assert all(h.target == Side.REMOTE for h in patch)

    def test_both_sides_changing_different_flags(self):
        """Independent changes to different flags propagate both ways."""
        base = _env("1", Flag.SEEN)
        remote = _env("1", Flag.SEEN, Flag.FLAGGED)
        local = _env("1")

        patch = reconcile(
            _snap(base), _snap(remote), _snap(base), _snap(local)
        )

        assert patch == [
            Hunk.set_flag(Side.LOCAL, "1", Flag.FLAGGED),
            Hunk.clear_flag(Side.REMOTE, "1", Flag.SEEN),
        ]

    def test_same_change_on_both_sides_is_still_mirrored_locally(self):
        """Remote changes are always applied locally, even if redundant."""
        patch = reconcile(_snap(E1), _snap(E2), _snap(E1), _snap(E2))
        assert patch == [Hunk.set_flag(Side.LOCAL, "1", Flag.FLAGGED)]

    def test_local_gain_with_remote_unchanged_present(self):
        """Remote unchanged with the flag set still receives the local gain."""
        base_remote = _env("1", Flag.FLAGGED)
        patch = reconcile(
            _snap(base_remote),
            _snap(base_remote),
            _snap(_env("1")),
            _snap(_env("1", Flag.FLAGGED)),
        )
        assert patch == [Hunk.set_flag(Side.REMOTE, "1", Flag.FLAGGED)]


class TestRemoteWins:
    """Conflicting changes to the same flag resolve in favour of remote."""

    def test_remote_set_beats_local_clear(self):
        patch = reconcile(_snap(E1), _snap(E2), _snap(E2), _snap(E1))
        assert patch == [Hunk.set_flag(Side.LOCAL, "1", Flag.FLAGGED)]

    def test_remote_clear_beats_local_set(self):
        patch = reconcile(_snap(E2), _snap(E1), _snap(E1), _snap(E2))
        assert patch == [Hunk.clear_flag(Side.LOCAL, "1", Flag.FLAGGED)]

    def test_local_change_discarded_without_remote_hunk(self):
        """No hunk targets the remote for a flag the remote changed."""
        patch = reconcile(_snap(E2), _snap(E1), _snap(E1), _snap(E2))
        assert [h for h in patch if h.target == Side.REMOTE] == []


# ---------------------------------------------------------------------------
# Ignored combinations
# ---------------------------------------------------------------------------


class TestIgnoredCombinations:
    """Presence patterns outside the five cases yield nothing."""

    def test_deleted_on_both_sides(self):
        env = _env("1", Flag.SEEN)
        assert reconcile(_snap(env), {}, _snap(env), {}) == []

    def test_created_on_both_sides_without_baseline(self):
        env = _env("1", Flag.SEEN)
        assert reconcile({}, _snap(env), {}, _snap(env)) == []

    def test_missing_from_local_baseline_only(self):
        env = _env("1", Flag.SEEN)
        assert reconcile(_snap(env), _snap(env), {}, _snap(env)) == []

    def test_remote_deleted_while_local_deleted_and_readded(self):
        env = _env("1")
        assert reconcile(_snap(env), {}, {}, _snap(env)) == []

    def test_known_only_to_remote_baseline(self):
        assert reconcile(_snap(_env("1")), {}, {}, {}) == []


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

_FLAG_CHOICES = [frozenset(), frozenset({Flag.SEEN}), frozenset({Flag.FLAGGED})]


def _all_cases():
    """Every presence pattern combined with a few flag sets for one id."""
    for presence in itertools.product([False, True], repeat=4):
        for flags in itertools.product(_FLAG_CHOICES, repeat=4):
            yield tuple(
                _snap(Envelope(id="x", flags=f)) if present else {}
                for present, f in zip(presence, flags)
            )


class TestProperties:
    """Invariants that hold for every input."""

    def test_exclusivity(self):
        """At most one message hunk per id, never mixed with flag hunks."""
        for rp, rn, lp, ln in _all_cases():
            patch = reconcile(rp, rn, lp, ln)
            message = [h for h in patch if h.op.is_message_level]
            assert len(message) <= 1
            if message:
                assert patch == message

    def test_no_op_baseline(self):
        """Unchanged sides produce an empty patch whatever they contain."""
        remote = _snap(_env("1", Flag.SEEN), _env("2"), _env("3"))
        local = _snap(_env("1"), _env("4", Flag.DRAFT))
        assert reconcile(remote, remote, local, local) == []

    def test_idempotent_after_convergence(self):
        """Once next becomes the baseline, reconciling again is a no-op."""
        prev = _snap(_env("1", Flag.SEEN), _env("2"))
        nxt = _snap(_env("1"), _env("3", Flag.FLAGGED))
        assert reconcile(prev, nxt, prev, nxt) == [
            Hunk.clear_flag(Side.LOCAL, "1", Flag.SEEN),
        ]
        assert reconcile(nxt, nxt, nxt, nxt) == []

    def test_empty_snapshots(self):
        assert reconcile({}, {}, {}, {}) == []

    def test_message_hunks_are_side_symmetric(self):
        """Swapping the sides swaps the targets of message hunks."""
        for rp, rn, lp, ln in _all_cases():
            patch = reconcile(rp, rn, lp, ln)
            if not patch or not patch[0].op.is_message_level:
                continue
            assert reconcile(lp, ln, rp, rn) == _swap(patch)

    def test_flag_hunks_symmetric_when_one_side_changes(self):
        """With the other side unchanged, flag propagation is symmetric."""
        changed_prev = _snap(_env("1", Flag.SEEN))
        changed_next = _snap(_env("1", Flag.FLAGGED))
        still = _snap(_env("1", Flag.DRAFT))

        patch = reconcile(still, still, changed_prev, changed_next)
        swapped = reconcile(changed_prev, changed_next, still, still)

        assert swapped == _swap(patch)

    def test_ids_are_processed_in_sorted_order(self):
        """Output order is deterministic (lexicographic by id)."""
        remote = _snap(_env("2"), _env("10"), _env("1"))
        patch = reconcile({}, remote, {}, {})
        assert [h.id for h in patch] == ["1", "10", "2"]

    def test_inputs_are_only_read(self):
        """Read-only mappings are accepted and left unchanged."""
        snap = _snap(E1)
        frozen = MappingProxyType(snap)
        assert reconcile(frozen, frozen, frozen, frozen) == []
        assert snap == {"1": E1}
