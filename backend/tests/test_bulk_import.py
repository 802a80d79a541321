"""Tests for bulk import validation and sequential submission.

Uses mocked AsyncSession objects; no database is touched.
"""
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from podcast_cms.models.episode import Episode, EpisodePlatform, EpisodeSeries, EpisodeStatus
from podcast_cms.schemas.imports import ImportMode, RowState, UploadRow
from podcast_cms.services import bulk_import
from podcast_cms.services.bulk_import import (
    episode_values,
    parse_publish_date,
    platform_links,
    submit_rows,
    update_values,
    validate_row,
    validate_rows,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _mock_db(stored: dict | None = None, platforms: list | None = None, fail_on_title: str | None = None):
    """AsyncSession mock. ``stored`` maps episode id -> Episode for db.get."""
    stored = stored or {}
    db = AsyncMock()
    db.added = []

    def add(obj):
        if fail_on_title and isinstance(obj, Episode) and obj.title == fail_on_title:
            raise RuntimeError("duplicate key value violates unique constraint")
        db.added.append(obj)

    async def get(model, key):
        return stored.get(key)

    result = MagicMock()
    result.scalars.return_value.all.return_value = platforms or []

    db.add = MagicMock(side_effect=add)
    db.get = AsyncMock(side_effect=get)
    db.execute = AsyncMock(return_value=result)
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def _stored_episode(**overrides) -> Episode:
    values = {
        "id": uuid.uuid4(),
        "title": "Stored Title",
        "slug": "stored-title",
        "description": "Stored description",
        "content": "Stored content",
        "summary": None,
        "series": "wtf",
        "season": 1,
        "episode_number": 1,
        "status": "published",
    }
    values.update(overrides)
    return Episode(**values)


# ─── Field helpers ────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-15", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("2024-01-15T10:30:00Z", datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)),
        ("01/15/2024", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("15.01.2024", datetime(2024, 1, 15, tzinfo=timezone.utc)),
        ("", None),
        (None, None),
    ],
)
def test_parse_publish_date(value, expected):
    assert parse_publish_date(value) == expected


def test_parse_publish_date_rejects_garbage():
    with pytest.raises(ValueError, match="Invalid publish_date"):
        parse_publish_date("next tuesday")


def test_platform_links_skip_blank_urls():
    row = UploadRow(title="x", spotify="https://s", apple="  ", youtube="https://y")
    assert platform_links(row) == [("Spotify", "https://s"), ("YouTube", "https://y")]


def test_episode_values_slug_and_enums():
    row = UploadRow(title="  Big News!  ", series=EpisodeSeries.cfo_memo, status=EpisodeStatus.scheduled)
    values = episode_values(row)
    assert values["title"] == "Big News!"
    assert values["slug"] == "big-news"
    assert values["series"] == "cfo_memo"
    assert values["status"] == "scheduled"
    assert values["summary"] is None


def test_update_values_only_selected_fields():
    row = UploadRow(title="New", description="New desc", publish_date="2024-02-01", fields_to_update=["description", "publish_date"])
    assert update_values(row) == {
        "description": "New desc",
        "publish_date": datetime(2024, 2, 1, tzinfo=timezone.utc),
    }


# ─── Validation ───────────────────────────────────────────────────────────────

def test_valid_create_row_has_no_errors():
    assert validate_row(UploadRow(title="Fine"), 0) == []


def test_validation_collects_field_errors():
    row = UploadRow(title="  ", season=0, episode_number=-1, publish_date="soon")
    errors = validate_row(row, 4)
    assert {e.field for e in errors} == {"title", "season", "episode_number", "publish_date"}
    assert all(e.row == 5 for e in errors)


def test_update_requires_id_and_fields():
    errors = validate_row(UploadRow(title="x", mode=ImportMode.update), 0)
    assert {e.field for e in errors} == {"id", "fields_to_update"}


def test_create_must_not_carry_id():
    errors = validate_row(UploadRow(title="x", id=uuid.uuid4()), 0)
    assert [e.field for e in errors] == ["id"]


def test_upsert_without_id_is_valid():
    assert validate_row(UploadRow(title="x", mode=ImportMode.upsert), 0) == []


def test_validate_rows_numbers_rows_from_one():
    errors = validate_rows([UploadRow(title="ok"), UploadRow(title="")])
    assert [(e.row, e.field) for e in errors] == [(2, "title")]


def test_mark_validated_moves_only_clean_parsed_rows():
    rows = [
        UploadRow(title="ok"),
        UploadRow(title=""),
        UploadRow(title="matched", state=RowState.matched),
    ]
    marked = bulk_import.mark_validated(rows, validate_rows(rows))
    assert [r.state for r in marked] == [RowState.validated, RowState.parsed, RowState.matched]
    assert rows[0].state == RowState.parsed


# ─── Submission ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_one_failing_row_does_not_stop_the_rest():
    rows = [UploadRow(title=f"Episode {i}", episode_number=i) for i in range(1, 6)]
    db = _mock_db(fail_on_title="Episode 3")

    result = await submit_rows(db, rows)

    assert (result.created, result.updated, result.failed) == (4, 0, 1)
    assert db.commit.await_count == 4
    db.rollback.assert_awaited_once()
    assert [e.row for e in result.errors] == [3]
    assert result.errors[0].field == "row"
    assert [o.state for o in result.rows] == [
        RowState.succeeded, RowState.succeeded, RowState.failed, RowState.succeeded, RowState.succeeded,
    ]


@pytest.mark.asyncio
async def test_create_writes_episode_and_platform_links():
    row = UploadRow(title="Fresh Episode", spotify="https://open.spotify.com/x", apple="https://apple/x")
    db = _mock_db()

    result = await submit_rows(db, [row])

    assert result.created == 1
    episodes = [o for o in db.added if isinstance(o, Episode)]
    links = [o for o in db.added if isinstance(o, EpisodePlatform)]
    assert episodes[0].slug == "fresh-episode"
    assert {(p.platform_name, p.platform_url) for p in links} == {
        ("Spotify", "https://open.spotify.com/x"),
        ("Apple Podcasts", "https://apple/x"),
    }
    assert all(p.episode_id == episodes[0].id for p in links)
    assert result.rows[0].episode_id == episodes[0].id
    # new episodes have no links to look up
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_writes_only_selected_fields():
    stored = _stored_episode()
    row = UploadRow(
        id=stored.id,
        mode=ImportMode.update,
        title="Renamed Title",
        description="Should not be written",
        fields_to_update=["title"],
    )
    db = _mock_db(stored={stored.id: stored})

    result = await submit_rows(db, [row])

    assert (result.created, result.updated, result.failed) == (0, 1, 0)
    assert stored.title == "Renamed Title"
    assert stored.description == "Stored description"
    assert stored.slug == "stored-title"
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_update_of_missing_episode_fails_row():
    row = UploadRow(id=uuid.uuid4(), mode=ImportMode.update, title="Ghost", fields_to_update=["title"])
    db = _mock_db()

    result = await submit_rows(db, [row])

    assert result.failed == 1
    assert "not found" in result.errors[0].message
    db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_upsert_updates_existing_and_inserts_unknown_id():
    stored = _stored_episode()
    unknown_id = uuid.uuid4()
    rows = [
        UploadRow(id=stored.id, mode=ImportMode.upsert, title="Upserted", description="All fields"),
        UploadRow(id=unknown_id, mode=ImportMode.upsert, title="Brand New"),
    ]
    db = _mock_db(stored={stored.id: stored})

    result = await submit_rows(db, rows)

    assert (result.created, result.updated) == (1, 1)
    assert stored.title == "Upserted"
    assert stored.description == "All fields"
    inserted = [o for o in db.added if isinstance(o, Episode)]
    assert inserted[0].id == unknown_id


@pytest.mark.asyncio
async def test_existing_platform_link_is_replaced():
    stored = _stored_episode()
    current = EpisodePlatform(episode_id=stored.id, platform_name="Spotify", platform_url="https://old")
    row = UploadRow(id=stored.id, mode=ImportMode.upsert, title="Stored Title", spotify="https://new")
    db = _mock_db(stored={stored.id: stored}, platforms=[current])

    await submit_rows(db, [row])

    assert current.platform_url == "https://new"
    assert not [o for o in db.added if isinstance(o, EpisodePlatform)]


@pytest.mark.asyncio
async def test_invalid_rows_are_skipped_without_writes():
    rows = [UploadRow(title=""), UploadRow(title="Good One")]
    db = _mock_db()

    result = await submit_rows(db, rows)

    assert (result.created, result.failed, result.skipped) == (1, 0, 1)
    assert result.errors[0].row == 1
    assert db.commit.await_count == 1


@pytest.mark.asyncio
async def test_row_states_agree_with_counters():
    rows = [UploadRow(title="Good"), UploadRow(title="")]
    db = _mock_db()

    result = await submit_rows(db, rows)

    states = [o.state for o in result.rows]
    assert states == [RowState.succeeded, RowState.skipped]
    assert (result.created, result.failed, result.skipped) == (1, 0, 1)
    assert states.count(RowState.failed) == result.failed
    assert states.count(RowState.skipped) == result.skipped


@pytest.mark.asyncio
async def test_rows_are_written_in_submitted_state():
    episode = _stored_episode()
    write = AsyncMock(return_value=(episode, True))

    with patch.object(bulk_import, "_write_row", write):
        result = await submit_rows(_mock_db(), [UploadRow(title="Good", state=RowState.validated)])

    assert write.await_args.args[1].state == RowState.submitted
    assert result.rows[0].state == RowState.succeeded


@pytest.mark.asyncio
async def test_translation_dispatch_called_per_written_episode():
    dispatch = MagicMock(side_effect=[True, False])
    rows = [UploadRow(title="First Episode"), UploadRow(title="Second Episode")]
    db = _mock_db()

    result = await submit_rows(db, rows, translate=dispatch)

    assert dispatch.call_count == 2
    assert result.created == 2
    assert result.warnings == ["Row 2: episode saved but auto-translation could not be queued"]


@pytest.mark.asyncio
async def test_translation_not_dispatched_for_failed_rows():
    dispatch = MagicMock(return_value=True)
    db = _mock_db(fail_on_title="Broken")

    await submit_rows(db, [UploadRow(title="Broken")], translate=dispatch)

    dispatch.assert_not_called()


def test_platform_names_are_stable():
    assert dict(bulk_import.PLATFORMS) == {
        "spotify": "Spotify",
        "apple": "Apple Podcasts",
        "google": "Google Podcasts",
        "youtube": "YouTube",
    }
