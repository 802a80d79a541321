"""Tests for the translation worker logic, with the AI call mocked out."""
import uuid
from unittest.mock import MagicMock, patch

from podcast_cms.models.translation import EpisodeTranslation
from podcast_cms.workers.translation_tasks import batch_translate, translate_content, translate_one


class FakeEpisode:
    def __init__(self, **fields):
        self.id = uuid.uuid4()
        self.title = fields.get("title")
        self.description = fields.get("description")
        self.content = fields.get("content")
        self.summary = fields.get("summary")


def _db_returning(*objects):
    db = MagicMock()
    results = []
    for obj in objects:
        result = MagicMock()
        result.scalar_one_or_none.return_value = obj
        results.append(result)
    db.execute.side_effect = results
    return db


def test_translate_one_creates_translation_row():
    episode = FakeEpisode(title="<p>Hello</p>", description="World")
    db = _db_returning(episode, None)
    outcome = {"translations": {"title": "Hallo", "description": "Welt"}, "tokens_prompt": 10, "tokens_completion": 4, "error": None}

    with patch("podcast_cms.ai.translator.translate_fields", return_value=outcome) as mock_translate:
        result = translate_one(db, "episode", episode.id, "de", ["title", "description", "content"])

    assert result["success"] is True
    sent = mock_translate.call_args.kwargs["fields"]
    assert sent == {"title": "Hello", "description": "World"}
    record = db.add.call_args[0][0]
    assert isinstance(record, EpisodeTranslation)
    assert record.episode_id == episode.id
    assert record.title == "<p>Hallo</p>"
    assert record.description == "Welt"
    assert record.translation_status == "completed"
    assert record.translation_method == "ai"
    assert record.prompt_tokens == 10


def test_translate_one_updates_existing_translation():
    episode = FakeEpisode(title="Hello")
    existing = EpisodeTranslation(episode_id=episode.id, language_code="de", title="Old")
    db = _db_returning(episode, existing)
    outcome = {"translations": {"title": "Hallo"}, "tokens_prompt": 1, "tokens_completion": 1, "error": None}

    with patch("podcast_cms.ai.translator.translate_fields", return_value=outcome):
        result = translate_one(db, "episode", episode.id, "de", ["title"])

    assert result["success"] is True
    assert existing.title == "Hallo"
    db.add.assert_not_called()


def test_translate_one_missing_content():
    db = _db_returning(None)
    result = translate_one(db, "episode", uuid.uuid4(), "de", ["title"])
    assert result["success"] is False
    assert "not found" in result["error"]


def test_translate_one_nothing_to_translate():
    episode = FakeEpisode(title="Only title")
    db = _db_returning(episode)
    result = translate_one(db, "episode", episode.id, "de", ["summary"])
    assert result["success"] is False
    assert "No translatable content" in result["error"]


def test_translate_one_model_error_is_reported():
    episode = FakeEpisode(title="Hello")
    db = _db_returning(episode)
    outcome = {"translations": {}, "tokens_prompt": 0, "tokens_completion": 0, "error": "rate limited"}

    with patch("podcast_cms.ai.translator.translate_fields", return_value=outcome):
        result = translate_one(db, "episode", episode.id, "de", ["title"])

    assert result == {"content_id": str(episode.id), "success": False, "error": "rate limited"}


def test_translate_content_task_commits_and_closes():
    db = MagicMock()
    with patch("podcast_cms.workers.translation_tasks.get_sync_session", return_value=db), \
            patch("podcast_cms.workers.translation_tasks.translate_one", return_value={"success": True}) as mock_one:
        result = translate_content.run("episode", str(uuid.uuid4()), "de", ["title"])

    assert result == {"success": True}
    mock_one.assert_called_once()
    db.commit.assert_called_once()
    db.close.assert_called_once()


def _batch_db(ids):
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = ids
    return db


def _run_batch(db, translate_side_effect, **kwargs):
    with patch("podcast_cms.workers.translation_tasks.get_sync_session", return_value=db), \
            patch("podcast_cms.workers.translation_tasks.translate_one", side_effect=translate_side_effect) as mock_one:
        summary = batch_translate.run("episode", "de", **kwargs)
    return summary, mock_one


def test_batch_translate_explicit_ids_are_all_translated():
    ids = [uuid.uuid4(), uuid.uuid4()]
    db = _batch_db(ids)

    summary, mock_one = _run_batch(
        db,
        lambda _db, _type, content_id, _lang, _fields: {"content_id": str(content_id), "success": True},
        content_ids=[str(i) for i in ids],
    )

    assert [c.args[2] for c in mock_one.call_args_list] == ids
    assert summary["total_requested"] == 2
    assert summary["total_processed"] == 2
    assert summary["total_skipped"] == 0
    assert db.commit.call_count == 2
    db.close.assert_called_once()

    sql = str(db.execute.call_args.args[0])
    assert "NOT IN" not in sql
    assert "episodes_translations" not in sql
    assert "episodes.status" not in sql


def test_batch_translate_without_ids_skips_completed_and_unpublished():
    db = _batch_db([])

    summary, mock_one = _run_batch(db, None, max_items=3)

    mock_one.assert_not_called()
    assert summary["total_requested"] == 0
    stmt = db.execute.call_args.args[0]
    sql = str(stmt)
    assert "NOT IN" in sql
    assert "episodes_translations" in sql
    assert "episodes.status" in sql
    assert 3 in stmt.compile().params.values()


def test_batch_translate_failed_item_is_rolled_back_and_counted():
    ids = [uuid.uuid4(), uuid.uuid4(), uuid.uuid4()]
    db = _batch_db(ids)

    def translate(_db, _type, content_id, _lang, _fields):
        if content_id == ids[1]:
            raise RuntimeError("db write failed")
        return {"content_id": str(content_id), "success": True}

    summary, mock_one = _run_batch(db, translate, content_ids=[str(i) for i in ids])

    assert mock_one.call_count == 3
    assert summary["total_processed"] == 2
    assert summary["total_skipped"] == 1
    failed = summary["translations"][1]
    assert failed == {"content_id": str(ids[1]), "success": False, "error": "db write failed"}
    db.rollback.assert_called_once()
    assert db.commit.call_count == 2
