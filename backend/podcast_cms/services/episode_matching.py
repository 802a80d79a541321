"""Match upload rows to stored episodes and build field-level diffs.

Exactly one strategy is active per run and the first hit wins; there is no
scoring and no fallback from one strategy to another.
"""
import logging
import re
from collections.abc import Iterable, Sequence

from podcast_cms.schemas.imports import (
    COMMON_FIELDS,
    DIFF_FIELDS,
    UPDATABLE_FIELDS,
    ExistingEpisode,
    FieldDiff,
    ImportMode,
    MatchStrategy,
    RowDiff,
    RowState,
    UploadRow,
)

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lower-case, hyphenated, URL-safe identifier. Idempotent."""
    slug = _NON_ALNUM.sub("-", text.lower().strip())
    return slug.strip("-")


def find_match(
    row: UploadRow,
    existing: Sequence[ExistingEpisode],
    strategy: MatchStrategy,
) -> ExistingEpisode | None:
    if not existing:
        return None

    if strategy == MatchStrategy.slug:
        slug = slugify(row.title)
        return next((ep for ep in existing if ep.slug == slug), None)
    if strategy == MatchStrategy.title:
        title = row.title.lower().strip()
        return next((ep for ep in existing if ep.title.lower().strip() == title), None)
    if strategy == MatchStrategy.season_episode:
        return next(
            (
                ep for ep in existing
                if ep.series == row.series.value
                and ep.season == row.season
                and ep.episode_number == row.episode_number
            ),
            None,
        )
    return None


def attach_matches(
    rows: Iterable[UploadRow],
    existing: Sequence[ExistingEpisode],
    strategy: MatchStrategy,
    mode: ImportMode,
) -> list[UploadRow]:
    """Return copies of ``rows`` carrying the operation mode and, outside
    create mode, the matched episode's id and snapshot.

    Input rows are left untouched. Create mode strips every reference; a row
    that no longer matches loses the reference attached by an earlier run but
    keeps an id supplied with the upload itself.
    """
    result: list[UploadRow] = []
    for row in rows:
        match = find_match(row, existing, strategy)
        if match is not None and mode != ImportMode.create:
            update = {"id": match.id, "mode": mode, "existing": match, "state": RowState.matched}
        elif mode == ImportMode.create or row.existing is not None:
            update = {"id": None, "mode": mode, "existing": None, "state": RowState.unmatched}
        else:
            update = {"mode": mode, "state": RowState.unmatched}
        result.append(row.model_copy(update=update))
    logger.info(
        "Matched %d/%d rows by %s against %d episodes",
        sum(1 for r in result if r.existing is not None), len(result), strategy.value, len(existing),
    )
    return result


def _display(value):
    return value.value if hasattr(value, "value") else value


def build_diff(row: UploadRow, row_number: int) -> RowDiff:
    """Current vs. new value for each reviewable field of a matched row."""
    fields: list[FieldDiff] = []
    for field in DIFF_FIELDS:
        new = _display(getattr(row, field))
        current = getattr(row.existing, field) if row.existing is not None else None
        fields.append(
            FieldDiff(
                field=field,
                current=current,
                new=new,
                changed=(current or None) != (new or None),
                selected=field in row.fields_to_update,
            )
        )
    return RowDiff(row=row_number, title=row.title, mode=row.mode, episode_id=row.id, fields=fields)


def select_fields(row: UploadRow, fields: Iterable[str]) -> UploadRow:
    """Return a copy of ``row`` with exactly ``fields`` selected for update."""
    wanted = [f for f in UPDATABLE_FIELDS if f in set(fields)]
    return row.model_copy(update={"fields_to_update": wanted})


def select_common_fields(row: UploadRow) -> UploadRow:
    return select_fields(row, COMMON_FIELDS)


def clear_fields(row: UploadRow) -> UploadRow:
    return select_fields(row, ())
