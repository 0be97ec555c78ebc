"""
Utility functions for co-founder matching
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional


def as_tag_list(value: Any) -> List[str]:
    """
    Normalize a tag column to a list of strings

    Args:
        value: Column value (list, tuple, None or a single string)

    Returns:
        List of non-empty strings, order preserved
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return []


def overlap_count(first: Iterable[str], second: Iterable[str]) -> int:
    """
    Count distinct tags shared by two lists

    Args:
        first: Tags of the first profile
        second: Tags of the second profile

    Returns:
        Size of the intersection
    """
    return len(set(first) & set(second))


def clamp_score(score: float) -> int:
    """Round and clamp a score to the 0-100 range"""
    return max(0, min(100, int(round(score))))


def parse_score(score_value: Any) -> Optional[int]:
    """
    Parse score from various formats

    Args:
        score_value: Score like 85, 85.4, '85' or '85/100'

    Returns:
        Integer score clamped to 0-100, or None when not numeric
    """
    if score_value is None or isinstance(score_value, bool):
        return None
    try:
        score_text = str(score_value).strip()
        if '/' in score_text:
            score_text = score_text.split('/')[0]
        score = float(score_text)
    except (ValueError, TypeError):
        return None
    if math.isnan(score) or math.isinf(score):
        return None
    return clamp_score(score)


def clean_json_string(text: str) -> str:
    """Clean common JSON formatting issues from AI responses"""
    # Remove any markdown code blocks
    text = re.sub(r'```json\s*', '', text)
    text = re.sub(r'```\s*', '', text)

    # Fix trailing commas before ] or }
    text = re.sub(r',\s*]', ']', text)
    text = re.sub(r',\s*}', '}', text)

    # Remove control characters except \n \r \t
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f]', '', text)

    return text.strip()


def safe_get(obj: Any, key: str, default: Any = None) -> Any:
    """
    Safely get an attribute or dict value, treating blanks as missing

    Args:
        obj: Dataclass instance or dictionary
        key: Attribute or key to look up
        default: Returned when the value is missing or blank

    Returns:
        Value or default
    """
    if not obj:
        return default

    if isinstance(obj, dict):
        value = obj.get(key)
    else:
        value = getattr(obj, key, None)

    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a Postgres timestamptz string into an aware datetime

    Accepts a trailing 'Z' and fractional seconds of any length, which
    datetime.fromisoformat rejects on older interpreters. Naive values are
    taken as UTC. Returns None for anything unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip().replace("Z", "+00:00").replace(" ", "T", 1)
    text = re.sub(r"\.(\d+)", lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
