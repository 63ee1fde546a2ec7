"""Filtering and sorting of marker lists, computed on demand."""

from collections.abc import Iterable, Mapping
from typing import NamedTuple, TypeVar

from stash_playlists.models import DraftEntry, Marker, MarkerCriteria, MarkerSort
from stash_playlists.services.validation import normalized_tag_ids

_T = TypeVar("_T", Marker, DraftEntry)


class _Fields(NamedTuple):
    id: str
    title: str
    seconds: float
    primary_tag_name: str
    tag_ids: set[str]


def _fields(record: Marker | DraftEntry) -> _Fields:
    if isinstance(record, DraftEntry):
        draft = record.draft
        return _Fields(
            id=record.ref.id,
            title=draft.title,
            seconds=draft.seconds,
            primary_tag_name=record.primary_tag_name or "",
            tag_ids=set(normalized_tag_ids(draft)),
        )
    tag_ids = {t.id for t in record.tags}
    if record.primary_tag:
        tag_ids.add(record.primary_tag.id)
    return _Fields(
        id=record.id,
        title=record.title,
        seconds=record.seconds,
        primary_tag_name=record.primary_tag.name if record.primary_tag else "",
        tag_ids=tag_ids,
    )


def _matches(fields: _Fields, criteria: MarkerCriteria, rating: int) -> bool:
    if criteria.search:
        needle = criteria.search.strip().lower()
        if needle and needle not in fields.title.lower() and needle not in fields.primary_tag_name.lower():
            return False
    if criteria.tag_ids and not set(criteria.tag_ids) <= fields.tag_ids:
        return False
    if criteria.min_rating is not None and rating < criteria.min_rating:
        return False
    return True


def filtered_sorted(
    records: Iterable[_T],
    criteria: MarkerCriteria,
    ratings: Mapping[str, int] | None = None,
) -> list[_T]:
    """
    Apply search, tag and rating filters, then sort.

    :param records: Markers or draft entries
    :type records: Iterable[Marker | DraftEntry]
    :param criteria: Filter and sort options
    :type criteria: MarkerCriteria
    :param ratings: Local ratings by marker id; unrated counts as 0
    :type ratings: Mapping[str, int] | None
    :return: Matching records in the requested order
    :rtype: list[Marker | DraftEntry]
    """
    ratings = ratings or {}
    keyed = []
    for record in records:
        fields = _fields(record)
        rating = ratings.get(fields.id) or 0
        if _matches(fields, criteria, rating):
            keyed.append((fields, rating, record))

    sort = criteria.sort
    if sort in (MarkerSort.TITLE_ASC, MarkerSort.TITLE_DESC):
        keyed.sort(key=lambda k: k[0].title.casefold(), reverse=sort == MarkerSort.TITLE_DESC)
    elif sort in (MarkerSort.START_ASC, MarkerSort.START_DESC):
        keyed.sort(key=lambda k: k[0].seconds, reverse=sort == MarkerSort.START_DESC)
    else:
        keyed.sort(key=lambda k: k[1], reverse=sort == MarkerSort.RATING_DESC)
    return [record for _, _, record in keyed]
