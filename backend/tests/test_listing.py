from helpers import build_scene
from stash_playlists.models import MarkerCriteria, MarkerSort, Marker
from stash_playlists.services.listing import filtered_sorted


def _markers() -> list[Marker]:
    markers = build_scene().scene_markers
    markers.append(Marker.model_validate({
        "id": "m3",
        "title": "applause",
        "seconds": 5,
        "end_seconds": 8,
        "primary_tag": {"id": "t3", "name": "Outro"},
        "tags": [{"id": "t2", "name": "Chorus"}],
    }))
    return markers


def _ids(records) -> list[str]:
    return [r.id for r in records]


def test_title_sort_is_case_insensitive():
    result = filtered_sorted(_markers(), MarkerCriteria(sort=MarkerSort.TITLE_ASC))
    assert _ids(result) == ["m3", "m2", "m1"]
    result = filtered_sorted(_markers(), MarkerCriteria(sort=MarkerSort.TITLE_DESC))
    assert _ids(result) == ["m1", "m2", "m3"]


def test_start_sort():
    result = filtered_sorted(_markers(), MarkerCriteria(sort=MarkerSort.START_ASC))
    assert _ids(result) == ["m3", "m1", "m2"]
    result = filtered_sorted(_markers(), MarkerCriteria(sort=MarkerSort.START_DESC))
    assert _ids(result) == ["m2", "m1", "m3"]


def test_search_matches_title_or_primary_tag():
    assert _ids(filtered_sorted(_markers(), MarkerCriteria(search="OPEN"))) == ["m1"]
    assert _ids(filtered_sorted(_markers(), MarkerCriteria(search="outro"))) == ["m3"]
    assert _ids(filtered_sorted(_markers(), MarkerCriteria(search="nothing"))) == []


def test_tag_filter_requires_every_tag_counting_primary():
    criteria = MarkerCriteria(tag_ids=["t2"], sort=MarkerSort.START_ASC)
    assert _ids(filtered_sorted(_markers(), criteria)) == ["m3", "m1", "m2"]
    criteria = MarkerCriteria(tag_ids=["t1", "t2"])
    assert _ids(filtered_sorted(_markers(), criteria)) == ["m1"]


def test_rating_filter_and_sort_treat_unrated_as_zero():
    ratings = {"m2": 4, "m3": 2}
    result = filtered_sorted(_markers(), MarkerCriteria(sort=MarkerSort.RATING_DESC), ratings)
    assert _ids(result) == ["m2", "m3", "m1"]
    result = filtered_sorted(_markers(), MarkerCriteria(sort=MarkerSort.RATING_ASC), ratings)
    assert _ids(result) == ["m1", "m3", "m2"]
    result = filtered_sorted(_markers(), MarkerCriteria(min_rating=3), ratings)
    assert _ids(result) == ["m2"]


def test_rating_sort_is_stable_for_ties():
    markers = _markers()
    result = filtered_sorted(markers, MarkerCriteria(sort=MarkerSort.RATING_DESC))
    assert _ids(result) == _ids(markers)
