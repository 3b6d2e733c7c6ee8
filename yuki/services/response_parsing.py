"""
Helpers for pulling structured data out of free-form model responses.

Models wrap JSON in markdown fences, add a sentence of preamble, or answer
with a bare value. These helpers locate the JSON payload and parse dates in
the formats statements commonly use.
"""

import json
import logging
import re
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d %b %Y",
    "%d-%b-%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %B %Y",
)


def _extract_json_text(content: str, opener: str, closer: str) -> Optional[str]:
    pattern = r'```(?:json)?\s*(' + re.escape(opener) + r'.*?' + re.escape(closer) + r')\s*```'
    json_match = re.search(pattern, content, re.DOTALL)
    if json_match:
        return json_match.group(1)

    json_start = content.find(opener)
    json_end = content.rfind(closer) + 1
    if json_start >= 0 and json_end > json_start:
        return content[json_start:json_end]
    return None


def extract_json_array(content: str) -> Optional[list]:
    """Return the first JSON array in the response, or None if there is none."""
    if not content:
        return None
    json_str = _extract_json_text(content.strip(), "[", "]")
    if json_str is None:
        return None
    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.warning(f"Response contained a malformed JSON array: {e}")
        return None
    return parsed if isinstance(parsed, list) else None


def extract_json_object(content: str) -> Optional[dict]:
    """Return the first JSON object in the response, or None if there is none."""
    if not content:
        return None
    json_str = _extract_json_text(content.strip(), "{", "}")
    if json_str is None:
        return None
    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.warning(f"Response contained a malformed JSON object: {e}")
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_date(value: Any) -> Optional[date]:
    """Parse a model-supplied date. Returns None when no known format matches."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    date_str = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    # Last attempt: fromisoformat handles timestamps like 2024-03-01T10:00:00
    try:
        return datetime.fromisoformat(date_str).date()
    except ValueError:
        return None


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown fence (```sql ... ```) if present."""
    text = (content or "").strip()
    fenced = re.match(r'^```[a-zA-Z]*\s*(.*?)\s*```$', text, re.DOTALL)
    return fenced.group(1).strip() if fenced else text
