"""Translation coverage and AI translation job endpoints."""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from podcast_cms.core.deps import require_role
from podcast_cms.db.session import get_session
from podcast_cms.schemas.translation import (
    BatchTranslateRequest,
    ContentType,
    LanguageStats,
    TranslateRequest,
    TranslationJobResponse,
)
from podcast_cms.services.translation import (
    CONTENT_MODELS,
    check_language,
    enqueue_translation,
    get_translation_stats,
    resolve_fields,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _checked(target_language: str, fields: list[str] | None) -> list[str]:
    try:
        check_language(target_language)
        return resolve_fields(fields)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.get("/stats", response_model=list[LanguageStats], summary="Translation coverage per language (admin)")
async def translation_stats(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    return await get_translation_stats(db)


@router.post("/batch", response_model=TranslationJobResponse, status_code=status.HTTP_202_ACCEPTED,
             summary="Queue a batch translation job (admin)")
async def batch_translate(
    body: BatchTranslateRequest,
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    fields = _checked(body.target_language, body.fields)
    try:
        from podcast_cms.workers.translation_tasks import batch_translate as batch_task  # noqa: PLC0415
        task = batch_task.delay(
            body.content_type.value,
            body.target_language,
            [str(c) for c in body.content_ids] if body.content_ids else None,
            fields,
            body.max_items,
        )
    except Exception as exc:
        logger.warning("Failed to enqueue batch translation to %s: %s", body.target_language, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Translation queue is unavailable.",
        )
    return TranslationJobResponse(queued=True, task_id=task.id)


@router.post("/{content_type}/{content_id}", response_model=TranslationJobResponse,
             status_code=status.HTTP_202_ACCEPTED, summary="Queue translation of one item (admin)")
async def translate_item(
    content_type: ContentType,
    content_id: uuid.UUID,
    body: TranslateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    fields = _checked(body.target_language, body.fields)
    source_model = CONTENT_MODELS[content_type][0]
    if await db.get(source_model, content_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{content_type.value.capitalize()} not found")

    queued = enqueue_translation(content_type, content_id, body.target_language, fields)
    if not queued:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Translation queue is unavailable.",
        )
    return TranslationJobResponse(queued=True)
