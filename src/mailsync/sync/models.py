"""Pydantic models for the mailbox reconciliation engine.

Defines the core data contracts used across all sync modules:

- ``Flag``: Closed enum of the five canonical message flags.
- ``Envelope``: Identity and flag set of one message on one side.
- ``Side``: Which copy of the mailbox a hunk addresses.
- ``HunkOp``: Enum of the atomic operations a hunk can describe.
- ``Hunk``: One atomic, one-sided synchronisation instruction.
- ``PlanReport``: Aggregate result of one planning run.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, model_validator


class Flag(str, Enum):
    """Canonical message flags shared by both sides."""

    DRAFT = "draft"
    FLAGGED = "flagged"
    REPLIED = "replied"
    SEEN = "seen"
    TRASHED = "trashed"


# Per-id flag hunks are always emitted in this order.
FLAG_ORDER: tuple[Flag, ...] = (
    Flag.DRAFT,
    Flag.FLAGGED,
    Flag.REPLIED,
    Flag.SEEN,
    Flag.TRASHED,
)


class Envelope(BaseModel):
    """A message as observed on one side at one point in time.

    Attributes:
        id: Stable message identifier (IMAP UID as text, or the Maildir
            unique name).
        flags: Canonical flags set on the message.
    """

    id: str
    flags: frozenset[Flag] = frozenset()

    model_config = {"frozen": True}

    def has(self, flag: Flag) -> bool:
        """Return ``True`` if *flag* is set on this envelope."""
        return flag in self.flags


# Complete observed state of one side, keyed by envelope id.
MailboxSnapshot = Dict[str, Envelope]


def make_snapshot(envelopes: Iterable[Envelope]) -> MailboxSnapshot:
    """Build a snapshot from *envelopes*; later duplicates win."""
    return {envelope.id: envelope for envelope in envelopes}


class Side(str, Enum):
    """The copy of the mailbox a hunk must be applied to."""

    REMOTE = "remote"
    LOCAL = "local"

    @property
    def opposite(self) -> Side:
        return Side.LOCAL if self is Side.REMOTE else Side.REMOTE


class HunkOp(str, Enum):
    """Atomic operations an executor can apply to one side."""

    ADD_MESSAGE = "add_message"
    REMOVE_MESSAGE = "remove_message"
    SET_FLAG = "set_flag"
    CLEAR_FLAG = "clear_flag"

    @property
    def is_message_level(self) -> bool:
        return self in (HunkOp.ADD_MESSAGE, HunkOp.REMOVE_MESSAGE)


class Hunk(BaseModel):
    """One synchronisation instruction addressed to a single side.

    Attributes:
        target: Side the operation must be applied to.
        op: The operation.
        id: Envelope id the operation refers to.
        flag: The flag for ``SET_FLAG``/``CLEAR_FLAG``; ``None`` for
            message-level operations.
    """

    target: Side
    op: HunkOp
    id: str
    flag: Flag | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_flag(self) -> Hunk:
        if self.op.is_message_level and self.flag is not None:
            raise ValueError(f"{self.op.value} hunk cannot carry a flag")
        if not self.op.is_message_level and self.flag is None:
            raise ValueError(f"{self.op.value} hunk requires a flag")
        return self

    @classmethod
    def add_message(cls, target: Side, id: str) -> Hunk:
        return cls(target=target, op=HunkOp.ADD_MESSAGE, id=id)

    @classmethod
    def remove_message(cls, target: Side, id: str) -> Hunk:
        return cls(target=target, op=HunkOp.REMOVE_MESSAGE, id=id)

    @classmethod
    def set_flag(cls, target: Side, id: str, flag: Flag) -> Hunk:
        return cls(target=target, op=HunkOp.SET_FLAG, id=id, flag=flag)

    @classmethod
    def clear_flag(cls, target: Side, id: str, flag: Flag) -> Hunk:
        return cls(target=target, op=HunkOp.CLEAR_FLAG, id=id, flag=flag)

    def __str__(self) -> str:
        label = f"{self.target.value}.{self.op.value}({self.id}"
        if self.flag is not None:
            label += f", {self.flag.value}"
        return label + ")"


# Ordered list of hunks produced by one reconciliation.
Patch = List[Hunk]


class PlanReport(BaseModel):
    """Aggregate report for one planning run.

    Attributes:
        profile_name: Name of the sync profile used.
        folder: IMAP folder that was compared.
        hunks: The computed patch.
        remote_count: Number of messages in the current remote snapshot.
        local_count: Number of messages in the current local snapshot.
        baseline_sync: Timestamp of the baseline the plan was diffed
            against, ``None`` on a first run.
        started_at: ISO 8601 timestamp when planning started.
        completed_at: ISO 8601 timestamp when planning completed.
    """

    profile_name: str
    folder: str
    hunks: list[Hunk] = []
    remote_count: int = 0
    local_count: int = 0
    baseline_sync: str | None = None
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def for_side(self, side: Side) -> list[Hunk]:
        """Hunks addressed to *side*, in patch order."""
        return [h for h in self.hunks if h.target == side]
