# ABOUTME: Tests for the hotness ranking engine.
# ABOUTME: Verifies filtering, 24h boost, stable ordering, truncation and candidate fetching.

import pytest
from conftest import FakeHNClient

from hn_digest.models import HNItem, SortMode
from hn_digest.services.ranking import fetch_candidates, heat_score, rank_stories

NOW = 1_800_000_000.0
HOUR = 3600


def _item(item_id, score=10, descendants=5, age_hours=1.0, type_="story", **extra) -> HNItem:
    return HNItem(
        id=item_id,
        type=type_,
        title=f"Item {item_id}",
        score=score,
        descendants=descendants,
        time=int(NOW - age_hours * HOUR),
        **extra,
    )


def test_empty_candidates_yield_empty_result():
    assert rank_stories([], SortMode.BY_POINTS, limit=10, now=NOW) == []


def test_filters_non_stories_and_threads_without_comments():
    items = [
        _item(1, descendants=0),
        _item(2, type_="job"),
        _item(3, type_="poll"),
        _item(4),
    ]
    ranked = rank_stories(items, SortMode.BY_COMMENTS, limit=10, now=NOW)
    assert [s.remote_id for s in ranked] == [4]


def test_fresh_story_boost_beats_older_higher_score():
    """23h old score=100 -> 120 outranks 30h old score=115."""
    items = [_item(1, score=115, age_hours=30), _item(2, score=100, age_hours=23)]
    ranked = rank_stories(items, SortMode.BY_POINTS, limit=10, now=NOW)
    assert [s.remote_id for s in ranked] == [2, 1]


def test_boost_applies_to_comment_count_in_comment_mode():
    items = [_item(1, descendants=115, age_hours=30), _item(2, descendants=100, age_hours=2)]
    ranked = rank_stories(items, SortMode.BY_COMMENTS, limit=10, now=NOW)
    assert [s.remote_id for s in ranked] == [2, 1]


def test_modes_use_their_own_metric():
    items = [_item(1, score=500, descendants=10), _item(2, score=20, descendants=300)]
    assert [s.remote_id for s in rank_stories(items, SortMode.BY_POINTS, 10, now=NOW)] == [1, 2]
    assert [s.remote_id for s in rank_stories(items, SortMode.BY_COMMENTS, 10, now=NOW)] == [2, 1]


def test_equal_keys_keep_input_order():
    items = [_item(i, score=50, age_hours=48) for i in (5, 3, 9, 1)]
    ranked = rank_stories(items, SortMode.BY_POINTS, limit=10, now=NOW)
    assert [s.remote_id for s in ranked] == [5, 3, 9, 1]

    swapped = [items[1], items[0], items[2], items[3]]
    ranked = rank_stories(swapped, SortMode.BY_POINTS, limit=10, now=NOW)
    assert [s.remote_id for s in ranked] == [3, 5, 9, 1]


def test_ranking_is_repeatable():
    items = [_item(i, score=i * 7 % 31, descendants=i * 5 % 17 + 1, age_hours=i) for i in range(1, 30)]
    first = rank_stories(items, SortMode.BY_COMMENTS, limit=15, now=NOW)
    second = rank_stories(items, SortMode.BY_COMMENTS, limit=15, now=NOW)
    assert [s.remote_id for s in first] == [s.remote_id for s in second]


def test_truncates_to_limit():
    items = [_item(i, score=i) for i in range(1, 11)]
    ranked = rank_stories(items, SortMode.BY_POINTS, limit=3, now=NOW)
    assert [s.remote_id for s in ranked] == [10, 9, 8]


def test_heat_is_attached_but_not_used_for_order():
    """A much hotter story still ranks below an older one with a higher boosted score."""
    items = [
        _item(1, score=30, descendants=400, age_hours=0.5),
        _item(2, score=60, descendants=1, age_hours=48),
    ]
    ranked = rank_stories(items, SortMode.BY_POINTS, limit=10, now=NOW)

    assert ranked[0].heat < ranked[1].heat
    assert [s.remote_id for s in ranked] == [2, 1]


def test_heat_score_formula():
    assert heat_score(11, 20, 0) == pytest.approx(10 / 2**1.8 + 0.5 * 20 / 2**1.8)


def test_story_fields_from_item():
    item = _item(9, score=42, descendants=7, by="alice", text="<p>Hello <i>there</i></p>")
    story = rank_stories([item], SortMode.BY_POINTS, limit=1, now=NOW)[0]

    assert story.remote_id == 9
    assert story.score == 42
    assert story.comment_count == 7
    assert story.author == "alice"
    assert story.body_text == "Hello there"
    assert story.url == "https://news.ycombinator.com/item?id=9"


async def test_fetch_candidates_drops_undated_items():
    client = FakeHNClient(
        items={
            1: {"id": 1, "type": "story", "time": 1_700_000_000, "descendants": 3},
            2: {"id": 2, "type": "story", "descendants": 3},
            3: {"id": 3, "type": "story", "time": 1_700_000_000, "descendants": 3},
        },
        top_ids=[1, 2, 3, 4],
    )

    items = await fetch_candidates(client, candidate_limit=3)

    assert [i.id for i in items] == [1, 3]
    assert 4 not in client.requested
