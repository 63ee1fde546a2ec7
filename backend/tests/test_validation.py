import math

import pytest

from stash_playlists.models import Draft
from stash_playlists.services.validation import (
    BatchValidationError,
    DraftValidationError,
    is_valid_time_range,
    normalized_tag_ids,
    tag_sets_equal,
    validate_batch,
    validate_draft,
)


@pytest.mark.parametrize("start,end,expected", [
    (0, 1, True),
    (1.5, 2.25, True),
    (5, 5, False),
    (5, 4, False),
    (-1, 3, False),
    (None, 3, False),
    (1, None, False),
    (1, math.inf, False),
    (math.nan, 3, False),
    (True, 3, False),
])
def test_time_range(start, end, expected):
    assert is_valid_time_range(start, end) is expected


def test_normalized_tag_ids_put_primary_first_and_dedupe():
    draft = Draft(primary_tag_id="b", tag_ids=["a", "b", "c", "a"])
    assert normalized_tag_ids(draft) == ["b", "a", "c"]


def test_normalized_tag_ids_without_primary():
    assert normalized_tag_ids(Draft(tag_ids=["x", "x", "y"])) == ["x", "y"]


def test_tag_sets_ignore_order():
    assert tag_sets_equal(["a", "b"], ["b", "a"])
    assert not tag_sets_equal(["a"], ["a", "b"])


def test_validate_draft_messages():
    with pytest.raises(DraftValidationError, match="Both start time and end time are required."):
        validate_draft(Draft(seconds=3))
    with pytest.raises(DraftValidationError, match="End time must be after start time."):
        validate_draft(Draft(seconds=3, end_seconds=3))
    validate_draft(Draft(seconds=3, end_seconds=4))


def test_validate_draft_allows_missing_primary_tag():
    validate_draft(Draft(seconds=0, end_seconds=1, primary_tag_id=None))


def test_validate_batch_counts_each_category():
    drafts = [
        Draft(seconds=0, end_seconds=1, primary_tag_id="t"),
        Draft(seconds=0, end_seconds=1),
        Draft(seconds=2, primary_tag_id="t"),
        Draft(seconds=4, end_seconds=3, primary_tag_id="t"),
    ]
    with pytest.raises(BatchValidationError) as excinfo:
        validate_batch(drafts)
    error = excinfo.value
    assert (error.missing_primary_tag, error.missing_times, error.invalid_times) == (1, 1, 1)
    assert error.invalid_count == 3
    assert str(error) == "Cannot save: 1 marker(s) are missing primary tags."


def test_validate_batch_reports_times_when_tags_present():
    with pytest.raises(BatchValidationError, match="have invalid times"):
        validate_batch([Draft(seconds=9, end_seconds=1, primary_tag_id="t")])
    validate_batch([])
