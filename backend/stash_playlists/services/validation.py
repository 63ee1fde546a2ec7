"""Time-range and tag rules applied to marker drafts before saving."""

import math
from collections.abc import Iterable
from typing import Any

from stash_playlists.models import Draft


class DraftValidationError(ValueError):
    """A draft cannot be saved as it stands."""


class BatchValidationError(DraftValidationError):
    """One or more drafts in a batch cannot be saved."""

    def __init__(
        self,
        message: str,
        missing_primary_tag: int = 0,
        missing_times: int = 0,
        invalid_times: int = 0,
    ):
        super().__init__(message)
        self.missing_primary_tag = missing_primary_tag
        self.missing_times = missing_times
        self.invalid_times = invalid_times

    @property
    def invalid_count(self) -> int:
        return self.missing_primary_tag + self.missing_times + self.invalid_times


def _is_time(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def is_valid_time_range(start: Any, end: Any) -> bool:
    return _is_time(start) and _is_time(end) and end > start


def normalized_tag_ids(draft: Draft) -> list[str]:
    """
    Tag ids to send upstream: the draft's tags plus its primary tag.

    The primary tag comes first; duplicates are dropped and the remaining
    order is preserved.
    """
    ids = [draft.primary_tag_id, *draft.tag_ids] if draft.primary_tag_id else draft.tag_ids
    return list(dict.fromkeys(ids))


def tag_sets_equal(a: Iterable[str], b: Iterable[str]) -> bool:
    return set(a) == set(b)


def validate_draft(draft: Draft) -> None:
    """
    Raise DraftValidationError unless the draft has a usable time range.

    :param draft: The draft about to be saved
    :type draft: Draft
    :raises DraftValidationError: When start/end are missing or inverted
    """
    if not _is_time(draft.seconds) or not _is_time(draft.end_seconds):
        raise DraftValidationError("Both start time and end time are required.")
    if draft.end_seconds <= draft.seconds:
        raise DraftValidationError("End time must be after start time.")


def validate_batch(drafts: Iterable[Draft]) -> None:
    """
    Validate every draft of a batch save before anything is sent.

    :param drafts: Drafts that would be created or updated
    :type drafts: Iterable[Draft]
    :raises BatchValidationError: With per-category counts when any draft fails
    """
    missing_primary_tag = 0
    missing_times = 0
    invalid_times = 0
    for draft in drafts:
        if not draft.primary_tag_id:
            missing_primary_tag += 1
        if not _is_time(draft.seconds) or not _is_time(draft.end_seconds):
            missing_times += 1
        elif draft.end_seconds <= draft.seconds:
            invalid_times += 1

    if missing_primary_tag:
        message = f"Cannot save: {missing_primary_tag} marker(s) are missing primary tags."
    elif missing_times:
        message = f"Cannot save: {missing_times} marker(s) are missing start or end times."
    elif invalid_times:
        message = f"Cannot save: {invalid_times} marker(s) have invalid times."
    else:
        return

    raise BatchValidationError(
        message,
        missing_primary_tag=missing_primary_tag,
        missing_times=missing_times,
        invalid_times=invalid_times,
    )
