"""CSV / Excel reading and template generation for episode bulk uploads."""
import csv
import io
import logging
import uuid
from datetime import date, datetime
from typing import Any

from openpyxl import Workbook, load_workbook

from podcast_cms.models.episode import EpisodeSeries, EpisodeStatus
from podcast_cms.schemas.imports import COMMON_FIELDS, ImportMode, ImportRowError, UploadRow

logger = logging.getLogger(__name__)

# Column order of header-less (legacy) CSV exports
POSITIONAL_COLUMNS = ("title", "description", "series", "season", "episode_number", "status")

SHEET_COLUMNS = (
    "title",
    "description",
    "content",
    "summary",
    "series",
    "season",
    "episode_number",
    "status",
    "publish_date",
    "duration",
    "image_url",
    "audio_url",
    "spotify",
    "apple",
    "google",
    "youtube",
)

_OPTIONAL_TEXT_COLUMNS = ("publish_date", "duration", "image_url", "audio_url", "spotify", "apple", "google", "youtube")

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")

TEMPLATE_ROWS: list[dict[str, Any]] = [
    {
        "title": "Example Episode 1",
        "description": "This is an example episode description",
        "content": "Full episode content here...",
        "summary": "",
        "series": "finance_transformers",
        "season": 1,
        "episode_number": 1,
        "status": "draft",
        "publish_date": "2024-01-15",
        "duration": "45:30",
        "image_url": "https://example.com/image.jpg",
        "audio_url": "https://example.com/audio.mp3",
        "spotify": "https://open.spotify.com/episode/example",
        "apple": "https://podcasts.apple.com/episode/example",
        "google": "https://podcasts.google.com/episode/example",
        "youtube": "https://youtube.com/watch?v=example",
    },
    {
        "title": "Example Episode 2",
        "description": "Another example episode",
        "content": "More episode content...",
        "summary": "",
        "series": "wtf",
        "season": 1,
        "episode_number": 2,
        "status": "published",
        "publish_date": "2024-01-22",
        "duration": "32:15",
        "image_url": "",
        "audio_url": "",
        "spotify": "https://open.spotify.com/episode/example2",
        "apple": "",
        "google": "",
        "youtube": "",
    },
]


# ─── Cell helpers ───

def _cell_text(value: Any) -> str:
    """Render a CSV or worksheet cell as stripped text."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _get(record: dict[str, Any], key: str) -> str:
    """Case-insensitive dict get, stripped."""
    for k, v in record.items():
        if k is not None and str(k).lower().strip() == key:
            return _cell_text(v)
    return ""


def _parse_int(value: str, default: int = 1) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _parse_choice(value: str, enum_cls, default, field: str, row: int, errors: list[ImportRowError]):
    if not value:
        return default
    try:
        return enum_cls(value.lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        errors.append(ImportRowError(row=row, field=field, message=f"Unknown {field} '{value}' (expected one of: {allowed})"))
        return default


def record_to_row(
    record: dict[str, Any],
    row_number: int,
    mode: ImportMode = ImportMode.create,
) -> tuple[UploadRow | None, list[ImportRowError]]:
    """Map one spreadsheet record onto an UploadRow.

    Returns (None, []) for records without a title, which are dropped.
    """
    errors: list[ImportRowError] = []
    title = _get(record, "title")
    if not title:
        return None, errors

    episode_id = None
    raw_id = _get(record, "id")
    if raw_id:
        try:
            episode_id = uuid.UUID(raw_id)
        except ValueError:
            errors.append(ImportRowError(row=row_number, field="id", message=f"Invalid episode id '{raw_id}'"))

    optional = {col: (_get(record, col) or None) for col in _OPTIONAL_TEXT_COLUMNS}
    row = UploadRow(
        id=episode_id,
        mode=mode,
        title=title,
        description=_get(record, "description"),
        content=_get(record, "content"),
        summary=_get(record, "summary"),
        series=_parse_choice(_get(record, "series"), EpisodeSeries, EpisodeSeries.wtf, "series", row_number, errors),
        season=_parse_int(_get(record, "season")),
        episode_number=_parse_int(_get(record, "episode_number")),
        status=_parse_choice(_get(record, "status"), EpisodeStatus, EpisodeStatus.draft, "status", row_number, errors),
        fields_to_update=list(COMMON_FIELDS),
        **optional,
    )
    return row, errors


def _records_to_rows(
    records: list[dict[str, Any]],
    mode: ImportMode,
) -> tuple[list[UploadRow], list[ImportRowError]]:
    rows: list[UploadRow] = []
    errors: list[ImportRowError] = []
    for record in records:
        row, row_errors = record_to_row(record, len(rows) + 1, mode)
        if row is None:
            continue
        rows.append(row)
        errors.extend(row_errors)
    return rows, errors


# ─── Readers ───

def parse_csv(content: bytes, mode: ImportMode = ImportMode.create) -> tuple[list[UploadRow], list[ImportRowError]]:
    """Parse CSV bytes. The first line is always a header.

    A header naming a ``title`` column is read by column name; anything else
    is read positionally as title, description, series, season,
    episode_number, status.
    """
    text = content.decode("utf-8-sig", errors="replace")
    lines = [line for line in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in line)]
    if not lines:
        return [], []

    header = [cell.lower().strip() for cell in lines[0]]
    columns = header if "title" in header else list(POSITIONAL_COLUMNS)
    records = [dict(zip(columns, line)) for line in lines[1:]]
    return _records_to_rows(records, mode)


def parse_excel(content: bytes, mode: ImportMode = ImportMode.create) -> tuple[list[UploadRow], list[ImportRowError]]:
    """Parse the first worksheet of an .xlsx workbook; row 1 is the header."""
    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        values = sheet.iter_rows(values_only=True)
        header_row = next(values, None)
        if header_row is None:
            return [], []
        header = [_cell_text(cell).lower() for cell in header_row]
        records = [dict(zip(header, line)) for line in values if any(cell is not None for cell in line)]
    finally:
        workbook.close()
    return _records_to_rows(records, mode)


def parse_upload(
    filename: str,
    content: bytes,
    mode: ImportMode = ImportMode.create,
) -> tuple[list[UploadRow], list[ImportRowError]]:
    """Dispatch on file extension. Raises ValueError for unreadable files."""
    name = (filename or "").lower()
    if name.endswith(".xls"):
        raise ValueError("Legacy .xls workbooks are not supported; save the file as .xlsx")
    if name.endswith(EXCEL_EXTENSIONS):
        try:
            rows, errors = parse_excel(content, mode)
        except Exception as exc:
            logger.warning("Failed to read workbook %s: %s", filename, exc)
            raise ValueError("Failed to parse Excel file") from exc
    else:
        rows, errors = parse_csv(content, mode)
    logger.info("Parsed %s: %d rows, %d errors", filename, len(rows), len(errors))
    return rows, errors


# ─── Templates ───

def build_csv_template() -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(SHEET_COLUMNS)
    for row in TEMPLATE_ROWS:
        writer.writerow([row[col] for col in SHEET_COLUMNS])
    return buffer.getvalue().encode("utf-8")


def build_excel_template() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Episodes"
    sheet.append(list(SHEET_COLUMNS))
    for row in TEMPLATE_ROWS:
        sheet.append([row[col] for col in SHEET_COLUMNS])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
