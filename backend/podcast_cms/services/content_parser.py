"""Best-effort extraction of episode fields from pasted free text.

Handles transcripts, show-note dumps and document exports. Every extractor
tries a list of patterns in order and falls back to a heuristic built from the
body text, so the result is always a usable (if imperfect) draft row for the
operator to review.
"""
import logging
import re

from podcast_cms.models.episode import EpisodeSeries, EpisodeStatus
from podcast_cms.schemas.imports import COMMON_FIELDS, ContentMetadata, ImportMode, UploadRow

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Episode"

_BLOCK = re.I | re.M | re.S
# A labelled block runs until a blank line, a new capitalised line or line end
_BLOCK_END = r"(?=\n\n|\n[A-Z]|$)"

# ─── Patterns ───

_TITLE_PATTERNS = [
    re.compile(r"^#\s+(.+)$", re.M),                 # markdown header
    re.compile(r"^Title:\s*(.+)$", re.M | re.I),
    re.compile(r"^Episode\s*\d*:?\s*(.+)$", re.M | re.I),
    re.compile(r"^(.+)\s*-\s*Episode", re.M | re.I),
    re.compile(r"^(.{10,80}?)(?:\n|\.|$)", re.M),    # first substantial line
]

_DESCRIPTION_PATTERNS = [
    re.compile(r"Description:\s*(.+?)" + _BLOCK_END, _BLOCK),
    re.compile(r"About this episode:\s*(.+?)" + _BLOCK_END, _BLOCK),
    re.compile(r"In this episode:\s*(.+?)" + _BLOCK_END, _BLOCK),
]

_SUMMARY_PATTERNS = [
    re.compile(r"Summary:\s*(.+?)" + _BLOCK_END, _BLOCK),
    re.compile(r"Overview:\s*(.+?)" + _BLOCK_END, _BLOCK),
    re.compile(r"Key Points:\s*(.+?)" + _BLOCK_END, _BLOCK),
    re.compile(r"^(.{100,500}?)\.\s*(?:\n\n|\n[A-Z])", _BLOCK),  # long first paragraph
]

_METADATA_PATTERNS = {
    "date": re.compile(r"\b(?:Date|Published|Created):\s*([^\n]+)", re.I),
    "author": re.compile(r"\b(?:Author|Host|Speaker):\s*([^\n]+)", re.I),
    "category": re.compile(r"\b(?:Category|Topic|Subject):\s*([^\n]+)", re.I),
    "duration": re.compile(r"\b(?:Duration|Length|Runtime):\s*([^\n]+)", re.I),
}

_SENTENCE_SPLIT = re.compile(r"[.!?]+")

MAX_DESCRIPTION_BLOCK = 1000
MAX_DESCRIPTION_FALLBACK = 500
MIN_SENTENCE_LENGTH = 20
SUMMARY_WORD_THRESHOLD = 50
SUMMARY_WORDS = 30
SUMMARY_CHARS = 300


# ─── Helpers ───

def normalize_text(raw: str) -> str:
    """Unify line endings, collapse runs of blank lines and trim."""
    text = raw.replace("\r\n", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _first_match(patterns: list[re.Pattern], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


# ─── Extractors ───

def extract_title(text: str) -> str:
    title = _first_match(_TITLE_PATTERNS, text)
    if title:
        return title

    first_line = text.split("\n")[0].strip()
    if 5 <= len(first_line) <= 99:
        return first_line
    return UNTITLED


def extract_description(text: str) -> str:
    description = _first_match(_DESCRIPTION_PATTERNS, text)
    if description:
        return description[:MAX_DESCRIPTION_BLOCK]

    sentences = [
        s.strip() for s in _SENTENCE_SPLIT.split(text) if len(s.strip()) >= MIN_SENTENCE_LENGTH
    ]
    if not sentences:
        return ""
    return ". ".join(sentences[:2])[:MAX_DESCRIPTION_FALLBACK] + "."


def extract_summary(text: str) -> str:
    summary = _first_match(_SUMMARY_PATTERNS, text)
    if summary:
        return summary

    words = text.split(" ")
    if len(words) > SUMMARY_WORD_THRESHOLD:
        return " ".join(words[:SUMMARY_WORDS]) + "..."
    return text[:SUMMARY_CHARS]


def extract_metadata(text: str) -> ContentMetadata:
    found = {}
    for key, pattern in _METADATA_PATTERNS.items():
        match = pattern.search(text)
        if match:
            found[key] = match.group(1).strip()
    return ContentMetadata(**found, word_count=len(text.split()))


# ─── Public API ───

def parse_content(
    raw: str,
    series: EpisodeSeries | None = None,
    season: int | None = None,
    episode_number: int | None = None,
) -> tuple[UploadRow, ContentMetadata]:
    """Parse free text into a draft create-mode row plus detected metadata.

    Raises ValueError when the text is empty after normalisation.
    """
    text = normalize_text(raw)
    if not text:
        raise ValueError("No content provided")

    metadata = extract_metadata(text)
    row = UploadRow(
        mode=ImportMode.create,
        title=extract_title(text),
        description=extract_description(text),
        content=text,
        summary=extract_summary(text),
        series=series or EpisodeSeries.finance_transformers,
        season=season if season is not None else 1,
        episode_number=episode_number if episode_number is not None else 1,
        status=EpisodeStatus.draft,
        duration=metadata.duration,
        fields_to_update=list(COMMON_FIELDS),
    )
    logger.info("Parsed free text (%d words) into draft row %r", metadata.word_count, row.title)
    return row, metadata
