"""Tests for row-to-episode matching and diff building."""
import uuid

import pytest

from podcast_cms.models.episode import EpisodeSeries
from podcast_cms.schemas.imports import (
    COMMON_FIELDS,
    UPDATABLE_FIELDS,
    ExistingEpisode,
    ImportMode,
    MatchStrategy,
    RowState,
    UploadRow,
)
from podcast_cms.services.episode_matching import (
    attach_matches,
    build_diff,
    clear_fields,
    find_match,
    select_common_fields,
    select_fields,
    slugify,
)


def _existing(title: str, series: str = "wtf", season: int = 1, episode_number: int = 1, **kwargs) -> ExistingEpisode:
    return ExistingEpisode(
        id=kwargs.pop("id", uuid.uuid4()),
        title=title,
        slug=slugify(title),
        series=series,
        season=season,
        episode_number=episode_number,
        status=kwargs.pop("status", "published"),
        **kwargs,
    )


# ─── slugify ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "text, expected",
    [
        ("Digital Finance Basics", "digital-finance-basics"),
        ("  CFO's Memo #12: Q&A!  ", "cfo-s-memo-12-q-a"),
        ("---Already-slugged---", "already-slugged"),
        ("Über Cash", "ber-cash"),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


@pytest.mark.parametrize("text", ["Digital Finance Basics", "A -- B", "  x  y  "])
def test_slugify_is_idempotent(text):
    assert slugify(slugify(text)) == slugify(text)


# ─── find_match ───────────────────────────────────────────────────────────────

def test_match_by_slug_ignores_punctuation():
    target = _existing("Digital Finance Basics")
    row = UploadRow(title="digital finance: basics")
    assert find_match(row, [target], MatchStrategy.slug) == target


def test_match_by_title_is_case_insensitive():
    target = _existing("Closing The Books")
    row = UploadRow(title="  closing the books ")
    assert find_match(row, [_existing("Other"), target], MatchStrategy.title) == target


def test_title_strategy_needs_exact_text():
    row = UploadRow(title="Closing the books!")
    assert find_match(row, [_existing("Closing the books")], MatchStrategy.title) is None


def test_match_by_season_episode():
    target = _existing("Stored", series="finance_transformers", season=1, episode_number=3)
    decoy = _existing("Decoy", series="wtf", season=1, episode_number=3)
    row = UploadRow(title="Anything", series=EpisodeSeries.finance_transformers, season=1, episode_number=3)
    assert find_match(row, [decoy, target], MatchStrategy.season_episode) == target


def test_first_hit_wins():
    first = _existing("Same Title")
    second = _existing("Same Title")
    assert find_match(UploadRow(title="Same Title"), [first, second], MatchStrategy.slug) == first


def test_no_fallback_between_strategies():
    stored = _existing("Shared Title", season=4, episode_number=4)
    row = UploadRow(title="Shared Title", season=1, episode_number=1)
    assert find_match(row, [stored], MatchStrategy.season_episode) is None


def test_empty_existing_list():
    assert find_match(UploadRow(title="x"), [], MatchStrategy.slug) is None


# ─── attach_matches ───────────────────────────────────────────────────────────

def test_attach_sets_id_mode_and_snapshot():
    stored = _existing("Matched Episode")
    rows = [UploadRow(title="Matched Episode"), UploadRow(title="New Episode")]

    result = attach_matches(rows, [stored], MatchStrategy.slug, ImportMode.update)

    assert result[0].id == stored.id
    assert result[0].existing == stored
    assert result[0].mode == ImportMode.update
    assert result[1].id is None
    assert result[1].existing is None
    assert result[1].mode == ImportMode.update
    assert [r.state for r in result] == [RowState.matched, RowState.unmatched]
    # inputs untouched
    assert rows[0].id is None and rows[0].mode == ImportMode.create
    assert rows[0].state == RowState.parsed


def test_create_mode_strips_references():
    stored = _existing("Matched Episode")
    row = UploadRow(id=stored.id, title="Matched Episode", existing=stored)
    result = attach_matches([row], [stored], MatchStrategy.slug, ImportMode.create)
    assert result[0].id is None
    assert result[0].existing is None
    assert result[0].mode == ImportMode.create
    assert result[0].state == RowState.unmatched


def test_stale_match_is_cleared_but_upload_id_kept():
    old = _existing("Renamed")
    stale = UploadRow(id=old.id, title="Something Else", existing=old)
    supplied_id = uuid.uuid4()
    from_file = UploadRow(id=supplied_id, title="From File")

    result = attach_matches([stale, from_file], [old], MatchStrategy.slug, ImportMode.upsert)

    assert result[0].id is None and result[0].existing is None
    assert result[1].id == supplied_id


# ─── diffs and field selection ────────────────────────────────────────────────

def test_build_diff_marks_changes_and_selection():
    stored = _existing("Same", description="Old text", content=None)
    row = UploadRow(
        id=stored.id,
        mode=ImportMode.update,
        title="Same",
        description="New text",
        content="",
        existing=stored,
        fields_to_update=["description"],
    )

    diff = build_diff(row, 2)
    by_field = {f.field: f for f in diff.fields}

    assert diff.row == 2
    assert diff.episode_id == stored.id
    assert by_field["description"].changed is True
    assert by_field["description"].selected is True
    assert by_field["description"].current == "Old text"
    assert by_field["title"].changed is False
    # empty string and NULL are treated as the same value
    assert by_field["content"].changed is False
    assert by_field["series"].new == "wtf"


def test_select_fields_keeps_canonical_order_and_drops_unknown():
    row = select_fields(UploadRow(title="x"), ["status", "title", "bogus"])
    assert row.fields_to_update == ["title", "status"]


def test_select_common_and_clear():
    row = select_common_fields(UploadRow(title="x"))
    assert row.fields_to_update == list(COMMON_FIELDS)
    assert clear_fields(row).fields_to_update == []
    assert set(select_fields(row, UPDATABLE_FIELDS).fields_to_update) == set(UPDATABLE_FIELDS)
