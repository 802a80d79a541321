"""Validation and sequential submission of episode upload rows.

Each row is written and committed on its own. A failing row is rolled back,
logged and counted; it never stops the rows after it. There is no retry: the
operator fixes and re-submits failed rows.
"""
import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from podcast_cms.models.episode import Episode, EpisodePlatform
from podcast_cms.schemas.imports import (
    ImportMode,
    ImportResult,
    ImportRowError,
    RowOutcome,
    RowState,
    UploadRow,
)
from podcast_cms.services.episode_matching import slugify

logger = logging.getLogger(__name__)

# UploadRow attribute -> stored platform name
PLATFORMS = (
    ("spotify", "Spotify"),
    ("apple", "Apple Podcasts"),
    ("google", "Google Podcasts"),
    ("youtube", "YouTube"),
)

_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d.%m.%Y", "%Y/%m/%d")

# Called with the id of each written episode; returns False when the job could not be queued
TranslationDispatch = Callable[[uuid.UUID], bool]


# ─── Field helpers ───

def parse_publish_date(value: str | None) -> datetime | None:
    """Parse an ISO timestamp or a plain date. Raises ValueError if unreadable."""
    if not value or not value.strip():
        return None
    value = value.strip()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                pass
        else:
            raise ValueError(f"Invalid publish_date: '{value}'")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def platform_links(row: UploadRow) -> list[tuple[str, str]]:
    links = []
    for attr, name in PLATFORMS:
        url = (getattr(row, attr) or "").strip()
        if url:
            links.append((name, url))
    return links


def _field_value(row: UploadRow, field: str) -> Any:
    value = getattr(row, field)
    if field == "publish_date":
        return parse_publish_date(value)
    if field == "summary":
        return value or None
    if hasattr(value, "value"):
        return value.value
    return value


def episode_values(row: UploadRow) -> dict[str, Any]:
    """Every stored column for create and upsert writes."""
    return {
        "title": row.title.strip(),
        "slug": slugify(row.title),
        "description": row.description,
        "content": row.content,
        "summary": _field_value(row, "summary"),
        "series": row.series.value,
        "season": row.season,
        "episode_number": row.episode_number,
        "status": row.status.value,
        "publish_date": _field_value(row, "publish_date"),
        "duration": row.duration,
        "image_url": row.image_url,
        "audio_url": row.audio_url,
    }


def update_values(row: UploadRow) -> dict[str, Any]:
    """Only the fields the operator selected, nothing else."""
    return {field: _field_value(row, field) for field in row.fields_to_update}


# ─── Validation ───

def validate_row(row: UploadRow, index: int) -> list[ImportRowError]:
    """Field-level problems for the row at zero-based ``index``."""
    n = index + 1
    errors: list[ImportRowError] = []

    if not row.title or not row.title.strip():
        errors.append(ImportRowError(row=n, field="title", message="Title is required"))
    if row.season is None or row.season < 1:
        errors.append(ImportRowError(row=n, field="season", message="Valid season number is required"))
    if row.episode_number is None or row.episode_number < 1:
        errors.append(ImportRowError(row=n, field="episode_number", message="Valid episode number is required"))

    try:
        parse_publish_date(row.publish_date)
    except ValueError as exc:
        errors.append(ImportRowError(row=n, field="publish_date", message=str(exc)))

    if row.mode == ImportMode.update:
        if row.id is None:
            errors.append(ImportRowError(row=n, field="id", message="Episode ID is required for updates"))
        if not row.fields_to_update:
            errors.append(
                ImportRowError(row=n, field="fields_to_update", message="At least one field must be selected for update")
            )
    elif row.mode == ImportMode.create and row.id is not None:
        errors.append(ImportRowError(row=n, field="id", message="Episode ID must not be set when creating"))

    return errors


def validate_rows(rows: Sequence[UploadRow]) -> list[ImportRowError]:
    errors: list[ImportRowError] = []
    for index, row in enumerate(rows):
        errors.extend(validate_row(row, index))
    return errors


def mark_validated(rows: Sequence[UploadRow], errors: Sequence[ImportRowError]) -> list[UploadRow]:
    """Copies of ``rows`` where error-free rows still in the parsed state move
    to validated. Matched and unmatched rows keep their state."""
    bad = {e.row for e in errors}
    return [
        row.model_copy(update={"state": RowState.validated})
        if index + 1 not in bad and row.state == RowState.parsed
        else row
        for index, row in enumerate(rows)
    ]


# ─── Writes ───

async def _write_platform_links(
    db: AsyncSession,
    episode_id: uuid.UUID,
    links: list[tuple[str, str]],
    is_new: bool,
) -> None:
    current: dict[str, EpisodePlatform] = {}
    if not is_new:
        result = await db.execute(select(EpisodePlatform).where(EpisodePlatform.episode_id == episode_id))
        current = {p.platform_name: p for p in result.scalars().all()}

    for name, url in links:
        if name in current:
            current[name].platform_url = url
        else:
            db.add(EpisodePlatform(episode_id=episode_id, platform_name=name, platform_url=url))
    await db.flush()


async def _write_row(db: AsyncSession, row: UploadRow) -> tuple[Episode, bool]:
    """Write the episode for one row. Returns (episode, created)."""
    if row.mode == ImportMode.update:
        episode = await db.get(Episode, row.id)
        if episode is None:
            raise LookupError(f"Episode {row.id} not found")
        for field, value in update_values(row).items():
            setattr(episode, field, value)
        await db.flush()
        return episode, False

    values = episode_values(row)
    if row.mode == ImportMode.upsert and row.id is not None:
        episode = await db.get(Episode, row.id)
        if episode is not None:
            for field, value in values.items():
                setattr(episode, field, value)
            await db.flush()
            return episode, False
        episode = Episode(id=row.id, **values)
    else:
        episode = Episode(id=uuid.uuid4(), **values)

    db.add(episode)
    await db.flush()
    return episode, True


async def submit_rows(
    db: AsyncSession,
    rows: Sequence[UploadRow],
    translate: TranslationDispatch | None = None,
) -> ImportResult:
    """Write rows in order and return the aggregate outcome.

    Rows failing validation are skipped without touching the database.
    ``translate`` is invoked after each successful write; a False return is
    reported as a warning and never undoes the write.
    """
    created = updated = failed = skipped = 0
    errors: list[ImportRowError] = []
    warnings: list[str] = []
    outcomes: list[RowOutcome] = []

    for index, row in enumerate(rows):
        n = index + 1
        row_errors = validate_row(row, index)
        if row_errors:
            errors.extend(row_errors)
            skipped += 1
            outcomes.append(
                RowOutcome(row=n, title=row.title, mode=row.mode, state=RowState.skipped, error="Validation failed")
            )
            continue

        row = row.model_copy(update={"state": RowState.submitted})
        try:
            episode, is_new = await _write_row(db, row)
            links = platform_links(row)
            if links:
                await _write_platform_links(db, episode.id, links, is_new)
            await db.commit()
        except Exception as exc:
            await db.rollback()
            logger.exception("Bulk import row %d (%r) failed", n, row.title)
            failed += 1
            errors.append(ImportRowError(row=n, field="row", message=str(exc) or exc.__class__.__name__))
            outcomes.append(
                RowOutcome(row=n, title=row.title, mode=row.mode, state=RowState.failed, error=str(exc))
            )
            continue

        if is_new:
            created += 1
        else:
            updated += 1
        outcomes.append(
            RowOutcome(row=n, title=row.title, mode=row.mode, state=RowState.succeeded, episode_id=episode.id)
        )

        if translate is not None and not translate(episode.id):
            warnings.append(f"Row {n}: episode saved but auto-translation could not be queued")

    logger.info(
        "Bulk import finished: created=%d updated=%d failed=%d skipped=%d",
        created, updated, failed, skipped,
    )
    return ImportResult(
        created=created,
        updated=updated,
        failed=failed,
        skipped=skipped,
        errors=errors,
        warnings=warnings,
        rows=outcomes,
    )
