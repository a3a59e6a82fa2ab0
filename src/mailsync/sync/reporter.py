"""Plan report formatting functions.

Provides human-readable and machine-readable output for sync plans:

- ``format_hunk`` -- one-line description of a single hunk.
- ``format_patch`` -- hunks grouped by target side and operation.
- ``format_plan_report`` -- full plan summary with header.
- ``plan_to_json`` -- structured dict for JSON output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Hunk, Patch, PlanReport

from .models import HunkOp, Side

_OP_LABELS = {
    HunkOp.ADD_MESSAGE: "Add messages",
    HunkOp.REMOVE_MESSAGE: "Remove messages",
    HunkOp.SET_FLAG: "Set flags",
    HunkOp.CLEAR_FLAG: "Clear flags",
}

_DISPLAY_ORDER = [
    HunkOp.ADD_MESSAGE,
    HunkOp.REMOVE_MESSAGE,
    HunkOp.SET_FLAG,
    HunkOp.CLEAR_FLAG,
]


def format_hunk(hunk: Hunk) -> str:
    """Format one hunk as ``[SIDE] op id (flag)``."""
    line = f"[{hunk.target.value.upper()}] {hunk.op.value} {hunk.id}"
    if hunk.flag is not None:
        line += f" ({hunk.flag.value})"
    return line


# ------------------------------------------------------------------
# Grouped patch
# ------------------------------------------------------------------


def format_patch(patch: Patch) -> str:
    """Format a patch grouped by target side, then by operation.

    Within a group hunks keep their patch order.

    Args:
        patch: The hunks to format.

    Returns:
        Multi-line formatted string; ``"No changes needed."`` when the
        patch is empty.
    """
    if not patch:
        return "No changes needed."

    groups: dict[tuple[Side, HunkOp], list[Hunk]] = defaultdict(list)
    for hunk in patch:
        groups[(hunk.target, hunk.op)].append(hunk)

    lines: list[str] = []
    for side in (Side.REMOTE, Side.LOCAL):
        side_lines: list[str] = []
        for op in _DISPLAY_ORDER:
            hunks = groups.get((side, op))
            if not hunks:
                continue
            side_lines.append(f"  {_OP_LABELS[op]}:")
            for h in hunks:
                if h.flag is None:
                    side_lines.append(f"    {h.id}")
                else:
                    side_lines.append(f"    {h.id} {h.flag.value}")
        if side_lines:
            lines.append(f"{side.value.capitalize()}:")
            lines.extend(side_lines)
            lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_plan_report(report: PlanReport) -> str:
    """Format a complete plan report as human-readable text.

    Args:
        report: The plan report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append(
        f"Sync plan for '{report.profile_name}' (folder {report.folder})"
    )
    lines.append(f"Baseline: {report.baseline_sync or 'none'}")
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    remote = len(report.for_side(Side.REMOTE))
    local = len(report.for_side(Side.LOCAL))
    lines.append(
        f"Compared {report.remote_count} remote and "
        f"{report.local_count} local messages: "
        f"{remote} remote hunks, {local} local hunks"
    )
    lines.append("")
    lines.append(format_patch(report.hunks))

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def hunk_to_json(hunk: Hunk) -> dict:
    entry: dict = {
        "target": hunk.target.value,
        "op": hunk.op.value,
        "id": hunk.id,
    }
    if hunk.flag is not None:
        entry["flag"] = hunk.flag.value
    return entry


def plan_to_json(report: PlanReport) -> dict:
    """Convert a plan report to a structured dict for JSON serialisation.

    Args:
        report: The plan report.

    Returns:
        Dict with profile info, counts, and the hunks in patch order.
    """
    counts: dict[str, int] = {op.value: 0 for op in _DISPLAY_ORDER}
    for hunk in report.hunks:
        counts[hunk.op.value] += 1

    return {
        "profile_name": report.profile_name,
        "folder": report.folder,
        "baseline_sync": report.baseline_sync,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.hunks),
            "remote": len(report.for_side(Side.REMOTE)),
            "local": len(report.for_side(Side.LOCAL)),
            "remote_messages": report.remote_count,
            "local_messages": report.local_count,
            **counts,
        },
        "hunks": [hunk_to_json(h) for h in report.hunks],
    }
