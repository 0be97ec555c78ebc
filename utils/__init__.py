"""
Co-Founder Sphere matching utilities
"""

from .helpers import (
    as_tag_list,
    overlap_count,
    clamp_score,
    parse_score,
    clean_json_string,
    safe_get,
    parse_timestamp
)

__all__ = [
    'as_tag_list',
    'overlap_count',
    'clamp_score',
    'parse_score',
    'clean_json_string',
    'safe_get',
    'parse_timestamp'
]
