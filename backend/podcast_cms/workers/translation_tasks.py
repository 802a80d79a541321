"""Celery tasks for AI translation of episodes and insights."""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from podcast_cms.db.session import get_sync_session
from podcast_cms.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def translate_one(
    db: Session,
    content_type: str,
    content_id: uuid.UUID,
    target_language: str,
    fields: list[str],
) -> dict:
    """Translate one record and upsert its translation row.

    Returns {content_id, success, translation_id?, error?}. The caller owns
    the transaction.
    """
    from podcast_cms.ai import translator
    from podcast_cms.core.config import settings
    from podcast_cms.models.translation import TranslationStatus
    from podcast_cms.schemas.translation import ContentType
    from podcast_cms.services.translation import CONTENT_MODELS, LANGUAGE_NAMES

    source_model, translation_model, fk_column = CONTENT_MODELS[ContentType(content_type)]
    result = {"content_id": str(content_id), "success": False}

    source = db.execute(select(source_model).where(source_model.id == content_id)).scalar_one_or_none()
    if source is None:
        result["error"] = f"Content not found: {content_id}"
        return result

    originals = {f: getattr(source, f) for f in fields if getattr(source, f, None)}
    if not originals:
        result["error"] = "No translatable content found in specified fields"
        return result
    plain = {f: translator.strip_html(v) for f, v in originals.items()}

    outcome = translator.translate_fields(
        db=db,
        content_type=content_type,
        content_id=content_id,
        fields=plain,
        target_language=target_language,
        language_name=LANGUAGE_NAMES[target_language],
    )
    if outcome["error"]:
        result["error"] = outcome["error"]
        return result

    translated = {
        f: translator.preserve_html_structure(originals[f], text)
        for f, text in outcome["translations"].items()
    }

    record = db.execute(
        select(translation_model).where(
            getattr(translation_model, fk_column) == content_id,
            translation_model.language_code == target_language,
        )
    ).scalar_one_or_none()
    if record is None:
        record = translation_model(**{fk_column: content_id}, language_code=target_language)
        db.add(record)

    for field, text in translated.items():
        setattr(record, field, text)
    record.translation_status = TranslationStatus.completed.value
    record.translation_method = "ai"
    record.translation_quality_score = Decimal(str(settings.TRANSLATION_QUALITY_SCORE))
    record.translated_at = datetime.now(timezone.utc)
    record.ai_model = settings.ANTHROPIC_MODEL
    record.prompt_tokens = outcome["tokens_prompt"]
    record.completion_tokens = outcome["tokens_completion"]
    db.flush()

    result["success"] = True
    result["translation_id"] = str(record.id)
    return result


@celery_app.task(name="translations.translate_content")
def translate_content(content_type: str, content_id: str, target_language: str, fields: list[str]) -> dict:
    """Translate a single episode or insight. Failures are logged, not retried."""
    logger.info("translate_content started: %s %s -> %s", content_type, content_id, target_language)
    db = get_sync_session()
    try:
        result = translate_one(db, content_type, uuid.UUID(content_id), target_language, fields)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("translate_content failed: %s %s -> %s", content_type, content_id, target_language)
        raise
    finally:
        db.close()

    if not result["success"]:
        logger.warning("Translation of %s %s not saved: %s", content_type, content_id, result.get("error"))
    return result


@celery_app.task(name="translations.batch_translate")
def batch_translate(
    content_type: str,
    target_language: str,
    content_ids: list[str] | None = None,
    fields: list[str] | None = None,
    max_items: int = 10,
) -> dict:
    """Translate up to ``max_items`` items.

    With ``content_ids`` exactly those items are translated, replacing any
    existing translation. Otherwise published items lacking a completed
    translation are picked, oldest first.
    """
    from podcast_cms.models.translation import TranslationStatus
    from podcast_cms.schemas.translation import ContentType
    from podcast_cms.services.translation import CONTENT_MODELS, resolve_fields

    source_model, translation_model, fk_column = CONTENT_MODELS[ContentType(content_type)]
    fields = resolve_fields(fields)
    db = get_sync_session()

    try:
        stmt = select(source_model.id)
        if content_ids:
            stmt = stmt.where(source_model.id.in_([uuid.UUID(c) for c in content_ids]))
        else:
            done = select(getattr(translation_model, fk_column)).where(
                translation_model.language_code == target_language,
                translation_model.translation_status == TranslationStatus.completed.value,
            )
            stmt = stmt.where(source_model.status == "published", source_model.id.not_in(done))
        candidates = list(db.execute(stmt.order_by(source_model.created_at).limit(max_items)).scalars().all())

        results = []
        for content_id in candidates:
            try:
                results.append(translate_one(db, content_type, content_id, target_language, fields))
                db.commit()
            except Exception as exc:
                db.rollback()
                logger.exception("batch_translate item %s failed", content_id)
                results.append({"content_id": str(content_id), "success": False, "error": str(exc)})
    finally:
        db.close()

    processed = sum(1 for r in results if r["success"])
    summary = {
        "content_type": content_type,
        "target_language": target_language,
        "total_requested": len(content_ids) if content_ids else len(candidates),
        "total_processed": processed,
        "total_skipped": len(results) - processed,
        "translations": results,
    }
    logger.info(
        "batch_translate %s -> %s: %d processed, %d skipped",
        content_type, target_language, processed, summary["total_skipped"],
    )
    return summary
