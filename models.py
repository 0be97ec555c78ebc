"""
Data models for co-founder matching
Rows come from the Supabase `profiles`, `matches` and `matching_jobs` tables
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, List, Optional

from utils.helpers import as_tag_list, parse_timestamp


MATCH_STATUSES = ('pending', 'accepted', 'rejected')
JOB_STATUSES = ('pending', 'processing', 'completed', 'failed')


@dataclass
class Profile:
    """A registered founder. Tag lists are never None."""
    id: str
    display_name: str = ""
    headline: Optional[str] = None
    role: str = ""
    skills: List[str] = field(default_factory=list)
    industries: List[str] = field(default_factory=list)
    vision: str = ""
    work_styles: List[str] = field(default_factory=list)
    qualities: List[str] = field(default_factory=list)
    partner_traits: List[str] = field(default_factory=list)
    status: Optional[str] = None
    avatar_url: Optional[str] = None
    onboarding_completed: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Profile":
        """Build a Profile from a database row, normalizing null columns"""
        return cls(
            id=row["id"],
            display_name=row.get("display_name") or "",
            headline=row.get("headline"),
            role=row.get("role") or "",
            skills=as_tag_list(row.get("skills")),
            industries=as_tag_list(row.get("industries")),
            vision=row.get("vision") or "",
            work_styles=as_tag_list(row.get("work_styles")),
            qualities=as_tag_list(row.get("qualities")),
            partner_traits=as_tag_list(row.get("partner_traits")),
            status=row.get("status"),
            avatar_url=row.get("avatar_url"),
            onboarding_completed=bool(row.get("onboarding_completed", False)),
            created_at=row.get("created_at"),
        )


@dataclass
class MatchResult:
    """Scorer output for one (user, candidate) pair"""
    user_id: str
    match_score: int
    reasons: List[str] = field(default_factory=list)
    source: str = "ai"


@dataclass
class MatchRecord:
    """A directed match from user1 (owner) to user2 (candidate)"""
    user1_id: str
    user2_id: str
    match_score: int
    match_reason: List[str] = field(default_factory=list)
    status: str = "pending"
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    matched_user: Optional[Profile] = None

    def __post_init__(self):
        if self.match_reason is None:
            self.match_reason = []

    @classmethod
    def from_result(cls, user_id: str, result: MatchResult, status: str = "pending") -> "MatchRecord":
        """
        Create a draft from a scorer result.

        Only statuses this service writes are accepted here. Rows read back
        from the store keep whatever status the app has since set.
        """
        if status not in MATCH_STATUSES:
            raise ValueError(f"Invalid match status: {status}")
        return cls(
            user1_id=user_id,
            user2_id=result.user_id,
            match_score=result.match_score,
            match_reason=list(result.reasons),
            status=status,
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MatchRecord":
        """Build a record from a `matches` row, with the joined profile if present"""
        matched = row.get("matched_user")
        return cls(
            id=row.get("id"),
            user1_id=row["user1_id"],
            user2_id=row["user2_id"],
            match_score=int(row.get("match_score") or 0),
            match_reason=as_tag_list(row.get("match_reason")),
            status=row.get("status") or "pending",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            matched_user=Profile.from_row(matched) if matched else None,
        )

    def to_row(self) -> Dict[str, Any]:
        """Columns written on insert; ids and timestamps are store-assigned"""
        return {
            "user1_id": self.user1_id,
            "user2_id": self.user2_id,
            "match_score": self.match_score,
            "match_reason": list(self.match_reason),
            "status": self.status,
        }


@dataclass
class MatchingJob:
    """Progress of a background matching run"""
    id: str
    user_id: str
    status: str = "pending"
    progress: int = 0
    current_step: str = "loading"
    error_message: Optional[str] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MatchingJob":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            status=row.get("status") or "pending",
            progress=int(row.get("progress") or 0),
            current_step=row.get("current_step") or "loading",
            error_message=row.get("error_message"),
            created_at=row.get("created_at"),
            completed_at=row.get("completed_at"),
        )

    @property
    def is_finished(self) -> bool:
        return self.status in ("completed", "failed")

    def age_seconds(self, now: datetime) -> Optional[float]:
        """Seconds since the job row was created, or None if created_at is missing or unparseable"""
        created = parse_timestamp(self.created_at)
        if created is None:
            return None
        return (now - created).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
