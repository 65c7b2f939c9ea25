"""
Parsing of the six-label completion response into an enrichment record
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

ALLOWED_CONTENT_TYPES = ("page", "blog", "docs", "project", "archive", "terms")
ALLOWED_PRIORITIES = ("high", "medium", "low")
ALLOWED_DIRECTIVES = ("allow", "citation-only", "no-fine-tuning", "disallow")
MAX_KEYWORDS = 10


class ResponseField(Enum):
    """Labelled fields of a completion response"""
    SUMMARY = "SUMMARY:"
    CONTEXT = "CONTEXT:"
    KEYWORDS = "KEYWORDS:"
    CONTENT_TYPE = "CONTENT_TYPE:"
    PRIORITY = "PRIORITY:"
    AI_USAGE = "AI_USAGE:"
    UNRECOGNIZED = ""


@dataclass(frozen=True)
class EnrichmentRecord:
    """AI-generated semantic labels for one path"""
    path: str
    summary: str
    context_snippet: str
    keywords: List[str] = field(default_factory=list)
    content_type: str = "page"
    priority: str = "medium"
    ai_usage_directive: str = "allow"
    generated_at: str = ""
    model: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'summary': self.summary,
            'contextSnippet': self.context_snippet,
            'keywords': list(self.keywords),
            'contentType': self.content_type,
            'priority': self.priority,
            'aiUsageDirective': self.ai_usage_directive,
            'generatedAt': self.generated_at,
            'model': self.model,
        }


# field -> default, applied when the field is missing or out of range
FIELD_DEFAULTS = {
    ResponseField.SUMMARY: "Summary generation failed",
    ResponseField.CONTEXT: "Context snippet generation failed",
    ResponseField.KEYWORDS: [],
    ResponseField.CONTENT_TYPE: "page",
    ResponseField.PRIORITY: "medium",
    ResponseField.AI_USAGE: "allow",
}

FALLBACK_SUMMARY = "AI analysis failed"
FALLBACK_CONTEXT = "Context analysis failed"


def classify_line(line: str) -> Tuple[ResponseField, str]:
    """Map one response line to its field and the value after the label"""
    stripped = line.strip()
    for response_field in ResponseField:
        if response_field is ResponseField.UNRECOGNIZED:
            continue
        if stripped.startswith(response_field.value):
            return response_field, stripped[len(response_field.value):].strip()
    return ResponseField.UNRECOGNIZED, stripped


def _split_keywords(raw: str) -> List[str]:
    return [keyword.strip() for keyword in raw.split(',') if keyword.strip()]


def _choice(value: Optional[str], allowed: Tuple[str, ...], default: str) -> str:
    if value is None:
        return default
    value = value.lower()
    return value if value in allowed else default


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_completion(text: str, path: str, model: str = "", generated_at: Optional[str] = None) -> EnrichmentRecord:
    """Parse a labelled completion response into an EnrichmentRecord.

    Unlabelled lines are ignored. A label appearing more than once keeps
    its last value. Missing or out-of-range fields fall back to
    FIELD_DEFAULTS.
    """
    values: Dict[ResponseField, str] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        response_field, value = classify_line(line)
        if response_field is not ResponseField.UNRECOGNIZED:
            values[response_field] = value

    keywords = _split_keywords(values[ResponseField.KEYWORDS]) if ResponseField.KEYWORDS in values else []

    return EnrichmentRecord(
        path=path,
        summary=values.get(ResponseField.SUMMARY) or FIELD_DEFAULTS[ResponseField.SUMMARY],
        context_snippet=values.get(ResponseField.CONTEXT) or FIELD_DEFAULTS[ResponseField.CONTEXT],
        keywords=keywords[:MAX_KEYWORDS],
        content_type=_choice(values.get(ResponseField.CONTENT_TYPE), ALLOWED_CONTENT_TYPES,
                             FIELD_DEFAULTS[ResponseField.CONTENT_TYPE]),
        priority=_choice(values.get(ResponseField.PRIORITY), ALLOWED_PRIORITIES,
                         FIELD_DEFAULTS[ResponseField.PRIORITY]),
        ai_usage_directive=_choice(values.get(ResponseField.AI_USAGE), ALLOWED_DIRECTIVES,
                                   FIELD_DEFAULTS[ResponseField.AI_USAGE]),
        generated_at=generated_at or _utcnow_iso(),
        model=model,
    )


def fallback_record(path: str, model: str = "", generated_at: Optional[str] = None) -> EnrichmentRecord:
    """Record used when the completion call for a path failed"""
    return EnrichmentRecord(
        path=path,
        summary=FALLBACK_SUMMARY,
        context_snippet=FALLBACK_CONTEXT,
        generated_at=generated_at or _utcnow_iso(),
        model=model,
    )
