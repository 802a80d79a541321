"""Episode bulk import endpoints: parse, match, select fields, validate, submit."""
import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from podcast_cms.api.v1.episodes import load_existing_episodes
from podcast_cms.core.config import settings
from podcast_cms.core.deps import require_role
from podcast_cms.db.session import get_session
from podcast_cms.schemas.imports import (
    ImportMode,
    ImportResult,
    MatchRequest,
    MatchResponse,
    ParsedRowsResponse,
    ParsedTextResponse,
    ParseTextRequest,
    RowsRequest,
    SelectFieldsRequest,
    SubmitRequest,
    ValidationResponse,
)
from podcast_cms.services import audit as audit_svc
from podcast_cms.services import bulk_import, content_parser, episode_matching, spreadsheet
from podcast_cms.services.translation import check_language, episode_translation_dispatch

logger = logging.getLogger(__name__)

router = APIRouter()

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _check_row_limit(count: int) -> None:
    if count > settings.IMPORT_MAX_ROWS:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"At most {settings.IMPORT_MAX_ROWS} rows can be imported at once, got {count}.",
        )


# ─── POST /import/episodes/parse-file ───

@router.post("/episodes/parse-file", response_model=ParsedRowsResponse, summary="Parse a CSV or Excel upload (admin)")
async def parse_file(
    current_user: Annotated[object, Depends(require_role("admin"))],
    file: UploadFile = File(...),
    mode: ImportMode = Form(ImportMode.create),
):
    content = await file.read()
    if len(content) > settings.IMPORT_MAX_FILE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.IMPORT_MAX_FILE_BYTES} byte limit.",
        )

    try:
        rows, errors = spreadsheet.parse_upload(file.filename or "", content, mode)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    _check_row_limit(len(rows))
    return ParsedRowsResponse(rows=rows, errors=errors)


# ─── POST /import/episodes/parse-text ───

@router.post("/episodes/parse-text", response_model=ParsedTextResponse, summary="Parse free text into a draft row (admin)")
async def parse_text(
    body: ParseTextRequest,
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    try:
        row, metadata = content_parser.parse_content(body.text, body.series, body.season, body.episode_number)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return ParsedTextResponse(row=row, metadata=metadata)


# ─── POST /import/episodes/match ───

@router.post("/episodes/match", response_model=MatchResponse, summary="Match rows against stored episodes (admin)")
async def match_rows(
    body: MatchRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    _check_row_limit(len(body.rows))
    existing = await load_existing_episodes(db)
    rows = episode_matching.attach_matches(body.rows, existing, body.strategy, body.mode)
    diffs = [
        episode_matching.build_diff(row, index + 1)
        for index, row in enumerate(rows)
        if row.existing is not None
    ]
    return MatchResponse(rows=rows, diffs=diffs, matched=len(diffs), existing_count=len(existing))


# ─── POST /import/episodes/validate ───

@router.post("/episodes/validate", response_model=ValidationResponse, summary="Validate rows before submission (admin)")
async def validate_rows(
    body: RowsRequest,
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    errors = bulk_import.validate_rows(body.rows)
    rows = bulk_import.mark_validated(body.rows, errors)
    return ValidationResponse(valid=not errors, errors=errors, rows=rows)


# ─── POST /import/episodes/select-fields ───

@router.post("/episodes/select-fields", response_model=RowsRequest, summary="Set the fields each row will update (admin)")
async def select_fields(
    body: SelectFieldsRequest,
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    if (body.fields is None) == (body.preset is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Provide exactly one of fields or preset.",
        )
    _check_row_limit(len(body.rows))
    if body.preset == "common":
        rows = [episode_matching.select_common_fields(row) for row in body.rows]
    elif body.preset == "none":
        rows = [episode_matching.clear_fields(row) for row in body.rows]
    else:
        rows = [episode_matching.select_fields(row, body.fields) for row in body.rows]
    return RowsRequest(rows=rows)


# ─── POST /import/episodes/submit ───

@router.post("/episodes/submit", response_model=ImportResult, summary="Write rows to the episode store (admin)")
async def submit(
    body: SubmitRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    _check_row_limit(len(body.rows))
    if not body.rows:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No rows to import.")

    translate = None
    if body.auto_translate:
        target = body.target_language or settings.AUTO_TRANSLATE_LANGUAGE
        try:
            check_language(target)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        translate = episode_translation_dispatch(target)

    result = await bulk_import.submit_rows(db, body.rows, translate=translate)

    await audit_svc.log_async(
        db,
        action="episodes.bulk_import",
        entity_type="episode",
        actor_id=current_user.id,
        actor_email=current_user.email,
        after={
            "created": result.created,
            "updated": result.updated,
            "failed": result.failed,
            "skipped": result.skipped,
        },
        notes=f"{len(body.rows)} rows submitted",
    )
    await db.commit()
    return result


# ─── GET /import/episodes/template ───

@router.get("/episodes/template", summary="Download the episode upload template (admin)")
async def download_template(
    current_user: Annotated[object, Depends(require_role("admin"))],
    format: Literal["csv", "xlsx"] = Query(default="csv"),
):
    if format == "xlsx":
        content, media_type = spreadsheet.build_excel_template(), _XLSX_MEDIA_TYPE
    else:
        content, media_type = spreadsheet.build_csv_template(), "text/csv"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="episode_upload_template.{format}"'},
    )
