"""
Double-booking detection for calendar commitments.

Intervals are half-open: [10:00, 11:00) and [11:00, 12:00) touch but do not
overlap. Only active commitments of the same assignee are considered, and
every overlapping commitment is returned so the caller can decide whether
to block or warn.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from loguru import logger

from conflicts.errors import InvalidIntervalError
from conflicts.models import CalendarCommitment, validate_interval


def intervals_overlap(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open overlap test for [start, end) and [other_start, other_end)."""
    return start < other_end and end > other_start


def _same_clock(proposed: datetime, commitment: CalendarCommitment) -> bool:
    return (proposed.tzinfo is None) == (commitment.start.tzinfo is None)


def find_overlaps(
    assignee_id: str,
    proposed_start: datetime,
    proposed_end: datetime,
    commitments: Iterable[CalendarCommitment],
    exclude_event_id: Optional[str] = None,
) -> List[CalendarCommitment]:
    """
    Find the assignee's active commitments that overlap a proposed slot.

    Args:
        assignee_id: Whose calendar to check
        proposed_start: Start of the proposed slot (inclusive)
        proposed_end: End of the proposed slot (exclusive)
        commitments: Existing commitments; other assignees' entries are ignored
        exclude_event_id: Event being rescheduled, so it does not clash with itself

    Returns:
        Overlapping commitments in input order

    Raises:
        InvalidIntervalError: If ``proposed_start >= proposed_end`` or the
            proposal and a commitment mix naive and aware datetimes
    """
    validate_interval(proposed_start, proposed_end)

    overlaps = []
    for commitment in commitments:
        if commitment.assignee_id != assignee_id or not commitment.is_active:
            continue
        if exclude_event_id is not None and commitment.id == exclude_event_id:
            continue
        if not _same_clock(proposed_start, commitment):
            raise InvalidIntervalError(
                proposed_start, proposed_end,
                f"cannot compare with commitment {commitment.id} (naive/aware datetime mismatch)",
            )
        if intervals_overlap(proposed_start, proposed_end, commitment.start, commitment.end):
            overlaps.append(commitment)

    logger.debug(
        f"[SCHEDULING] {len(overlaps)} overlap(s) for assignee {assignee_id} "
        f"in [{proposed_start.isoformat()}, {proposed_end.isoformat()})"
    )
    return overlaps
