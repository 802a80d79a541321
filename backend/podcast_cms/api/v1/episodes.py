"""Episode snapshot endpoints used by the bulk import review screen."""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from podcast_cms.core.deps import require_role
from podcast_cms.db.session import get_session
from podcast_cms.models.episode import Episode, EpisodePlatform, EpisodeSeries, EpisodeStatus
from podcast_cms.schemas.episode import EpisodeListResponse, PlatformLinkOut
from podcast_cms.schemas.imports import ExistingEpisode

router = APIRouter()


async def load_existing_episodes(db: AsyncSession, series: EpisodeSeries | None = None) -> list[ExistingEpisode]:
    """All stored episodes as read-only snapshots, newest first."""
    stmt = select(Episode).order_by(Episode.created_at.desc())
    if series is not None:
        stmt = stmt.where(Episode.series == series.value)
    result = await db.execute(stmt)
    return [ExistingEpisode.model_validate(ep) for ep in result.scalars().all()]


@router.get("", response_model=EpisodeListResponse, summary="List episode snapshots (admin)")
async def list_episodes(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("admin"))],
    series: EpisodeSeries | None = Query(default=None),
    status_filter: EpisodeStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=500, ge=1, le=5000),
):
    stmt = select(Episode).order_by(Episode.created_at.desc())
    count_stmt = select(func.count()).select_from(Episode)
    if series is not None:
        stmt = stmt.where(Episode.series == series.value)
        count_stmt = count_stmt.where(Episode.series == series.value)
    if status_filter is not None:
        stmt = stmt.where(Episode.status == status_filter.value)
        count_stmt = count_stmt.where(Episode.status == status_filter.value)

    total = (await db.execute(count_stmt)).scalar_one()
    result = await db.execute(stmt.limit(limit))
    items = [ExistingEpisode.model_validate(ep) for ep in result.scalars().all()]
    return EpisodeListResponse(items=items, total=total)


@router.get("/{episode_id}/platforms", response_model=list[PlatformLinkOut], summary="Platform links of an episode")
async def list_platform_links(
    episode_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[object, Depends(require_role("admin"))],
):
    episode = await db.get(Episode, episode_id)
    if episode is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Episode not found")
    result = await db.execute(
        select(EpisodePlatform)
        .where(EpisodePlatform.episode_id == episode_id)
        .order_by(EpisodePlatform.platform_name)
    )
    return list(result.scalars().all())
