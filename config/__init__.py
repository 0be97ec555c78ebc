"""Config loader for matching settings"""
import json
import os
from functools import lru_cache
from typing import Dict, Any, List

CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'matching.json')

REPLACE_STRATEGIES = ('delete_insert', 'upsert')


@lru_cache(maxsize=1)
def load_matching_config() -> Dict[str, Any]:
    """Load and cache matching config from JSON file"""
    with open(CONFIG_PATH, 'r', encoding='utf-8') as f:
        return json.load(f)


def get_match_threshold() -> int:
    """Minimum score a candidate needs to be stored as a match"""
    return load_matching_config().get('match_threshold', 70)


def get_candidate_pool_size() -> int:
    """Number of candidates scored per run (bounds LLM cost)"""
    return load_matching_config().get('candidate_pool_size', 10)


def get_rate_limit_interval() -> float:
    """Seconds between the end of one scoring call and the start of the next"""
    return float(load_matching_config().get('rate_limit_interval_seconds', 0.5))


def get_run_deadline() -> float:
    """Overall deadline for one orchestration run, in seconds"""
    return float(load_matching_config().get('run_deadline_seconds', 180))


def get_replace_strategy() -> str:
    """
    Get how a user's match set is replaced.

    Returns:
        'delete_insert' (delete all rows, then insert) or
        'upsert' (upsert new rows, then delete stale ones)
    """
    strategy = load_matching_config().get('replace_strategy', 'delete_insert')
    if strategy not in REPLACE_STRATEGIES:
        raise ValueError(f"Unknown replace_strategy '{strategy}'. Expected one of {REPLACE_STRATEGIES}")
    return strategy


def get_default_score() -> int:
    """Score used when the LLM answers with an unusable shape"""
    return load_matching_config().get('default_score', 50)


def get_results_limit() -> int:
    """Default number of matches returned to presentation code"""
    return load_matching_config().get('results_limit', 20)


def get_completion_settings() -> Dict[str, Any]:
    """
    Get LLM completion settings.

    The model can be overridden with the OPENAI_MATCH_MODEL environment variable.
    """
    settings = dict(load_matching_config()['completion'])
    settings['model'] = os.getenv('OPENAI_MATCH_MODEL', settings['model'])
    return settings


def get_fallback_settings() -> Dict[str, Any]:
    """Get weights for the rule-based fallback scorer"""
    return load_matching_config()['fallback']


def get_fallback_reasons() -> List[str]:
    return list(get_fallback_settings()['reasons'])
