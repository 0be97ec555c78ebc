"""
Match retrieval for presentation code
Reads a user's stored matches joined with candidate profiles, best first
"""
import logging
from typing import Dict, Any, List, Optional

import pandas as pd

from models import MatchRecord
from profile_store import ProfileStore
from utils.helpers import safe_get

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Developer"
DEFAULT_HEADLINE = "Looking for co-founder opportunities"
DEFAULT_USER_STATUS = "Student"

FALLBACK_AVATAR_IDS = [
    "1507003211169-0a1dd7228f2d",
    "1494790108755-2616c4aa6e23",
    "1472099645785-5658abf4ff4e",
    "1438761681033-6461ffad8d80",
    "1500648767791-00dcc994a43e",
    "1534528741775-53994a69daeb",
]


class MatchRetrieval:
    def __init__(self, store: Optional[ProfileStore] = None):
        self.store = store or ProfileStore(use_admin=False)

    def get_user_matches(self, user_id: str, limit: Optional[int] = None) -> List[MatchRecord]:
        """
        Get a user's matches ordered by match_score descending

        Returns an empty list on store errors.
        """
        result = self.store.get_matches_with_profiles(user_id, limit=limit)
        if not result["success"]:
            logger.error(f"Error fetching matches for {user_id}: {result.get('error')}")
            return []

        # Stable sort keeps the store's order for equal scores
        return sorted(result["data"], key=lambda record: record.match_score, reverse=True)

    def get_matched_users(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get matches converted to display dicts; rows without a joined profile are skipped"""
        return [
            to_matched_user(record, index)
            for index, record in enumerate(self.get_user_matches(user_id, limit=limit))
            if record.matched_user is not None
        ]

    def export_to_dataframe(self, user_id: str) -> pd.DataFrame:
        """Export a user's matches to a pandas DataFrame"""
        rows = []
        for record in self.get_user_matches(user_id):
            matched = record.matched_user
            rows.append({
                "match_id": record.id,
                "user2_id": record.user2_id,
                "display_name": matched.display_name if matched else "",
                "role": matched.role if matched else "",
                "match_score": record.match_score,
                "match_reason": "; ".join(record.match_reason),
                "status": record.status,
                "created_at": record.created_at,
            })
        return pd.DataFrame(rows)


def fallback_avatar(index: int) -> str:
    """Placeholder avatar URL, rotating through a fixed set"""
    photo_id = FALLBACK_AVATAR_IDS[index % len(FALLBACK_AVATAR_IDS)]
    return f"https://images.unsplash.com/photo-{photo_id}?w=150&h=150&fit=crop&crop=face"


def to_matched_user(record: MatchRecord, index: int = 0) -> Dict[str, Any]:
    """
    Convert a match record with its joined profile to a display dict

    Args:
        record: Match record; matched_user must be set
        index: Position in the list, used to pick a fallback avatar

    Returns:
        Dict with profile and match fields, blanks replaced with defaults
    """
    profile = record.matched_user
    if profile is None:
        raise ValueError(f"Match {record.id} has no joined profile")

    return {
        "id": profile.id,
        "match_id": record.id,
        "name": profile.display_name,
        "avatar": safe_get(profile, "avatar_url") or fallback_avatar(index),
        "role": safe_get(profile, "role", DEFAULT_ROLE),
        "headline": safe_get(profile, "headline", DEFAULT_HEADLINE),
        "user_status": safe_get(profile, "status", DEFAULT_USER_STATUS),
        "match_status": record.status,
        "match_score": record.match_score,
        "skills": list(profile.skills),
        "industries": list(profile.industries),
        "work_styles": list(profile.work_styles),
        "match_reason": list(record.match_reason),
    }
