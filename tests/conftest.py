"""
Shared fixtures for matching tests
"""

import os
import sys
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import Profile, MatchRecord, MatchingJob, MatchResult
from profile_store import ProfileStore
from rate_limiter import RateLimiter

# Wall-clock time at which FakeClock starts; fake job rows are created at this instant
JOB_CREATED_AT = "2026-01-01T00:00:00+00:00"
CLOCK_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Manual clock; sleeping advances time instantly"""

    def __init__(self, start: float = 1000.0):
        self.start = start
        self.now = start
        self.sleeps: List[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def utcnow(self) -> datetime:
        return CLOCK_EPOCH + timedelta(seconds=self.now - self.start)


class FakeProfileStore(ProfileStore):
    """
    In-memory store. Overrides the primitive reads and writes only, so
    replace_match_records runs the real replacement logic.
    """

    def __init__(self, profiles: Optional[List[Dict[str, Any]]] = None):
        self.client = None
        self.profiles: Dict[str, Dict[str, Any]] = {p["id"]: p for p in (profiles or [])}
        self.matches: List[Dict[str, Any]] = []
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.operations: List[str] = []
        self.fail_on: set = set()
        self._ids = itertools.count(1)

    def _check(self, operation: str) -> None:
        self.operations.append(operation)
        if operation in self.fail_on:
            raise RuntimeError(f"{operation} failed")

    def get_profile_by_id(self, profile_id):
        try:
            self._check("get_profile")
        except RuntimeError as e:
            return {"success": False, "error": str(e), "data": None}
        row = self.profiles.get(profile_id)
        return {"success": True, "data": Profile.from_row(row) if row else None}

    def get_candidate_pool(self, exclude_id, limit=10):
        try:
            self._check("get_pool")
        except RuntimeError as e:
            return {"success": False, "error": str(e), "data": []}
        rows = [
            p for p in self.profiles.values()
            if p["id"] != exclude_id and p.get("onboarding_completed")
        ]
        rows.sort(key=lambda p: p.get("created_at") or "", reverse=True)
        return {"success": True, "data": [Profile.from_row(p) for p in rows[:limit]]}

    def delete_match_records(self, user1_id):
        try:
            self._check("delete")
        except RuntimeError as e:
            return {"success": False, "error": str(e)}
        self.matches = [m for m in self.matches if m["user1_id"] != user1_id]
        return {"success": True}

    def insert_match_records(self, records):
        try:
            self._check("insert")
        except RuntimeError as e:
            return {"success": False, "error": str(e), "inserted": 0}
        for record in records:
            row = record.to_row()
            row["id"] = f"m{next(self._ids)}"
            self.matches.append(row)
        return {"success": True, "inserted": len(records)}

    def upsert_match_records(self, user1_id, records):
        try:
            self._check("upsert")
        except RuntimeError as e:
            return {"success": False, "error": str(e), "inserted": 0}
        keep = {r.user2_id for r in records}
        self.matches = [
            m for m in self.matches
            if m["user1_id"] != user1_id or m["user2_id"] in keep
        ]
        for record in records:
            row = record.to_row()
            existing = self.user_matches(user1_id, record.user2_id)
            if existing:
                existing[0].update(row)
            else:
                row["id"] = f"m{next(self._ids)}"
                self.matches.append(row)
        return {"success": True, "inserted": len(records)}

    def get_matches_with_profiles(self, user1_id, limit=None):
        try:
            self._check("get_matches")
        except RuntimeError as e:
            return {"success": False, "error": str(e), "data": []}
        records = []
        for m in self.matches:
            if m["user1_id"] != user1_id:
                continue
            row = dict(m)
            row["matched_user"] = self.profiles.get(m["user2_id"])
            records.append(MatchRecord.from_row(row))
        records.sort(key=lambda r: r.match_score, reverse=True)
        return {"success": True, "data": records[:limit] if limit else records}

    def create_matching_job(self, user_id):
        job_id = f"job{next(self._ids)}"
        self.jobs[job_id] = {
            "id": job_id, "user_id": user_id, "status": "pending",
            "progress": 0, "current_step": "loading", "created_at": JOB_CREATED_AT
        }
        return {"success": True, "data": MatchingJob.from_row(self.jobs[job_id])}

    def update_job_status(self, job_id, status, progress, current_step, error_message=None):
        job = self.jobs[job_id]
        job.update({"status": status, "progress": progress, "current_step": current_step})
        if status in ("completed", "failed"):
            job["completed_at"] = "2026-01-01T00:00:00+00:00"
        if error_message:
            job["error_message"] = error_message
        return {"success": True}

    def get_matching_job(self, job_id):
        row = self.jobs.get(job_id)
        return MatchingJob.from_row(row) if row else None

    def get_active_job(self, user_id):
        for row in self.jobs.values():
            if row["user_id"] == user_id and row["status"] in ("pending", "processing"):
                return MatchingJob.from_row(row)
        return None

    def user_matches(self, user1_id, user2_id=None):
        return [
            m for m in self.matches
            if m["user1_id"] == user1_id and (user2_id is None or m["user2_id"] == user2_id)
        ]


class FakeCompletionService:
    """Returns canned responses in order; exceptions in the list are raised"""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.prompts: List[str] = []

    def complete(self, prompt, system_prompt=None):
        self.prompts.append(prompt)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class StubScorer:
    """Scores candidates from a fixed id -> score table"""

    def __init__(self, scores: Dict[str, int], reasons: Optional[List[str]] = None):
        self.scores = scores
        self.reasons = reasons or ["complementary skills"]
        self.calls: List[str] = []

    def calculate_match_score(self, user, candidate):
        self.calls.append(candidate.id)
        return MatchResult(
            user_id=candidate.id,
            match_score=self.scores.get(candidate.id, 0),
            reasons=list(self.reasons)
        )


def profile_row(profile_id: str, **overrides) -> Dict[str, Any]:
    row = {
        "id": profile_id,
        "display_name": f"Founder {profile_id}",
        "headline": None,
        "role": "Developer",
        "skills": ["Python"],
        "industries": ["Fintech"],
        "vision": "Build useful things",
        "work_styles": ["Fast iterative execution"],
        "qualities": [],
        "partner_traits": [],
        "status": "Student",
        "avatar_url": None,
        "onboarding_completed": True,
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def make_query_mock(rows=None) -> MagicMock:
    """Fluent Supabase query mock: every builder method returns the same query"""
    query = MagicMock()
    for name in ("select", "eq", "neq", "order", "limit", "in_", "delete",
                 "insert", "upsert", "update", "single"):
        getattr(query, name).return_value = query
    query.not_ = query
    query.execute.return_value = MagicMock(data=rows if rows is not None else [])
    return query


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(0.5, clock=clock.time, sleep=clock.sleep)
