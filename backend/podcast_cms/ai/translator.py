"""AI translation of episode and insight fields using Anthropic Claude.

Every model call is logged to ai_call_logs. A missing API key or a model
error is returned as an error result rather than raised, so a failed
translation never takes the worker down.
"""
import html
import json
import logging
import re
import time
import uuid
from typing import Any

from sqlalchemy.orm import Session

from podcast_cms.core.config import settings
from podcast_cms.models.audit import AICallLog

logger = logging.getLogger(__name__)

# ─── Prompts ───

_SYSTEM_PROMPTS = {
    "episode": (
        "You are a professional translator for podcast content. Translate while keeping "
        "a natural speaking tone and episode-specific terminology, adapted to the target "
        "audience. Provide translations in valid JSON format only."
    ),
    "insight": (
        "You are a professional translator specialising in financial and business content. "
        "Keep technical terminology consistent, the tone professional and the original "
        "formatting (markdown etc.) intact. Provide translations in valid JSON format only."
    ),
}

_USER_PROMPT = """Translate the following {kind} fields to {language}:
{fields}

Return ONLY a JSON object with the same field names containing the translations.
"""

_TAG = re.compile(r"<[^>]*>")
_LEADING_TAG = re.compile(r"^<[^>]*>")
_TRAILING_TAG = re.compile(r"</[^>]*>$")
_JSON_OBJECT = re.compile(r"\{.*\}", re.S)


# ─── HTML helpers ───

def strip_html(value: str) -> str:
    return html.unescape(_TAG.sub("", value)).replace("\xa0", " ").strip()


def preserve_html_structure(original: str, translated: str) -> str:
    """Re-wrap ``translated`` in the original's outer tags when it had exactly one pair."""
    if "<" in original and ">" in original:
        start = _LEADING_TAG.match(original)
        end = _TRAILING_TAG.search(original)
        if start and end:
            return start.group(0) + translated + end.group(0)
    return translated


# ─── Internal helpers ───

def _call_claude(system: str, prompt: str, max_tokens: int) -> tuple[str, int, int, int]:
    """Call Claude API. Returns (response_text, prompt_tokens, completion_tokens, latency_ms).

    Raises any anthropic exceptions for the caller to handle.
    """
    import anthropic  # lazy import, only the worker needs it

    client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY)

    start = time.monotonic()
    message = client.messages.create(
        model=settings.ANTHROPIC_MODEL,
        max_tokens=max_tokens,
        temperature=0.3,
        system=system,
        messages=[{"role": "user", "content": prompt}],
    )
    latency_ms = int((time.monotonic() - start) * 1000)

    response_text = message.content[0].text if message.content else ""
    prompt_tokens = message.usage.input_tokens if message.usage else 0
    completion_tokens = message.usage.output_tokens if message.usage else 0
    return response_text, prompt_tokens, completion_tokens, latency_ms


def parse_json_response(text: str) -> dict:
    """Pull the JSON object out of the model response, tolerating fences and prose."""
    match = _JSON_OBJECT.search(text or "")
    candidate = match.group(0) if match else (text or "").strip()
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse translation JSON: %s; raw: %.200s", exc, text)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _log_ai_call(
    db: Session,
    content_type: str,
    content_id: uuid.UUID | None,
    call_type: str,
    prompt_tokens: int,
    completion_tokens: int,
    latency_ms: int,
    status: str = "success",
    error_message: str | None = None,
    request_snippet: str | None = None,
    response_snippet: str | None = None,
) -> None:
    entry = AICallLog(
        content_type=content_type,
        content_id=content_id,
        call_type=call_type,
        model=settings.ANTHROPIC_MODEL,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        latency_ms=latency_ms,
        status=status,
        error_message=error_message,
        request_json=request_snippet,
        response_json=response_snippet,
    )
    db.add(entry)
    db.flush()


# ─── Public API ───

def translate_fields(
    db: Session,
    content_type: str,
    content_id: uuid.UUID | None,
    fields: dict[str, str],
    target_language: str,
    language_name: str,
) -> dict[str, Any]:
    """Translate ``fields`` (already stripped of HTML) with one Claude call.

    Returns a dict with keys:
        translations: dict of field name -> translated text (only requested fields)
        tokens_prompt: int
        tokens_completion: int
        error: str | None
    """
    call_type = f"translation:{target_language}"
    payload = json.dumps(fields, ensure_ascii=False, indent=2)
    prompt = _USER_PROMPT.format(kind=content_type, language=language_name, fields=payload)
    max_tokens = min(settings.TRANSLATION_MAX_TOKENS, max(256, len(" ".join(fields.values())) * 2))

    try:
        if not settings.ANTHROPIC_API_KEY:
            raise RuntimeError("ANTHROPIC_API_KEY is not configured")
        response_text, p_tokens, c_tokens, latency_ms = _call_claude(
            _SYSTEM_PROMPTS[content_type], prompt, max_tokens
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Claude translation of %s %s failed: %s", content_type, content_id, exc)
        _log_ai_call(
            db=db,
            content_type=content_type,
            content_id=content_id,
            call_type=call_type,
            prompt_tokens=0,
            completion_tokens=0,
            latency_ms=0,
            status="error",
            error_message=str(exc)[:500],
        )
        return {"translations": {}, "tokens_prompt": 0, "tokens_completion": 0, "error": str(exc)}

    parsed = parse_json_response(response_text)
    translations = {k: str(v) for k, v in parsed.items() if k in fields and v is not None}
    error = None if translations else "Failed to parse translation response"

    _log_ai_call(
        db=db,
        content_type=content_type,
        content_id=content_id,
        call_type=call_type,
        prompt_tokens=p_tokens,
        completion_tokens=c_tokens,
        latency_ms=latency_ms,
        status="success" if error is None else "error",
        error_message=error,
        request_snippet=payload[:500],
        response_snippet=response_text[:1000] if response_text else None,
    )
    return {
        "translations": translations,
        "tokens_prompt": p_tokens,
        "tokens_completion": c_tokens,
        "error": error,
    }
