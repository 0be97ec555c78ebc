"""
Match Generator - Regenerates a founder's co-founder matches
Scores a bounded candidate pool with the compatibility scorer, keeps matches
above the threshold and replaces the user's stored match set.

Runs either inline (generate_matches) or as a tracked background job
(start_matching / get_matching_status).
"""
import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Callable

from compatibility_scorer import CompatibilityScorer
from completion_service import TextCompletionService
from config import (
    get_match_threshold,
    get_candidate_pool_size,
    get_rate_limit_interval,
    get_run_deadline,
    get_replace_strategy,
)
from models import Profile, MatchRecord, MatchingJob
from profile_store import ProfileStore
from rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MatchGenerator:
    """
    Orchestrates one matching run per user.

    generate_matches never raises; every outcome is logged and summarized
    in the returned dict.
    """

    def __init__(
        self,
        store: Optional[ProfileStore] = None,
        scorer: Optional[CompatibilityScorer] = None,
        rate_limiter: Optional[RateLimiter] = None,
        threshold: Optional[int] = None,
        pool_size: Optional[int] = None,
        deadline_seconds: Optional[float] = None,
        replace_strategy: Optional[str] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utc_now
    ):
        """
        Initialize the generator

        Args:
            store: Profile store (defaults to an admin Supabase store)
            scorer: Compatibility scorer (defaults to the OpenAI-backed scorer)
            rate_limiter: Shared limiter; None creates a fresh one per run
            threshold: Minimum score to keep a match
            pool_size: Candidates scored per run
            deadline_seconds: Overall time budget for one run
            replace_strategy: 'delete_insert' or 'upsert'
            executor: Executor for background jobs
            clock: Monotonic clock, injectable for tests
            now: Wall clock for job ages, compared against job created_at
        """
        self.store = store or ProfileStore(use_admin=True)
        self.scorer = scorer or CompatibilityScorer(TextCompletionService())
        self.rate_limiter = rate_limiter
        self.threshold = get_match_threshold() if threshold is None else threshold
        self.pool_size = pool_size or get_candidate_pool_size()
        self.deadline_seconds = deadline_seconds or get_run_deadline()
        self.replace_strategy = replace_strategy or get_replace_strategy()
        self._executor = executor
        self._clock = clock
        self._now = now
        self._user_locks: Dict[str, threading.Lock] = {}
        self._user_locks_guard = threading.Lock()

    # ==========================================
    # INLINE RUN
    # ==========================================

    def generate_matches(self, user_id: str, job_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Regenerate the full match set for one user

        Args:
            user_id: The user's profile ID
            job_id: Optional matching job to report progress to

        Returns:
            Summary dict with success, outcome, candidates_scored and matches_created
        """
        try:
            return self._generate(user_id, job_id)
        except Exception as e:
            logger.exception(f"Error generating matches for {user_id}: {str(e)}")
            self._report(job_id, "failed", 0, "scoring", str(e))
            return self._summary(False, "error", error=str(e))

    def _generate(self, user_id: str, job_id: Optional[str]) -> Dict[str, Any]:
        started = self._clock()
        logger.info(f"Starting match generation for {user_id}")
        self._report(job_id, "processing", 10, "loading")

        profile_result = self.store.get_profile_by_id(user_id)
        if not profile_result["success"]:
            logger.error(f"Failed to load profile {user_id}: {profile_result.get('error')}")
            self._report(job_id, "failed", 0, "loading", "Failed to load user profile")
            return self._summary(False, "load_failed", error=profile_result.get("error"))

        user = profile_result["data"]
        if user is None:
            logger.warning(f"Profile {user_id} not found, skipping match generation")
            self._report(job_id, "failed", 0, "loading", "User profile not found")
            return self._summary(True, "profile_not_found")

        pool_result = self.store.get_candidate_pool(user_id, limit=self.pool_size)
        if not pool_result["success"]:
            logger.error(f"Failed to load candidates for {user_id}: {pool_result.get('error')}")
            self._report(job_id, "failed", 0, "loading", "Failed to load candidate profiles")
            return self._summary(False, "load_failed", error=pool_result.get("error"))

        candidates = self._unique_candidates(user_id, pool_result["data"])
        if not candidates:
            logger.info(f"No other onboarded users to match with {user_id}, clearing stored matches")
            cleared = self.store.replace_match_records(user_id, [], strategy=self.replace_strategy)
            if not cleared["success"]:
                logger.error(f"Error clearing matches for {user_id}: {cleared.get('error')}")
                self._report(job_id, "failed", 0, "saving", "Failed to clear matching results")
                return self._summary(False, "save_failed", error=cleared.get("error"))
            self._report(job_id, "completed", 100, "saving")
            return self._summary(True, "no_candidates")

        limiter = self.rate_limiter or RateLimiter(get_rate_limit_interval())
        drafts: List[MatchRecord] = []
        scored = 0

        self._report(job_id, "processing", 10, "scoring")
        for candidate in candidates:
            if self._clock() - started > self.deadline_seconds:
                logger.warning(
                    f"Match generation for {user_id} exceeded {self.deadline_seconds}s after "
                    f"{scored}/{len(candidates)} candidates; keeping existing matches"
                )
                self._report(job_id, "failed", 0, "scoring", "Deadline exceeded")
                return self._summary(False, "deadline_exceeded", candidates_scored=scored)

            with limiter.slot():
                result = self.scorer.calculate_match_score(user, candidate)
            scored += 1

            if result.match_score >= self.threshold:
                drafts.append(MatchRecord.from_result(user_id, result))

            self._report(job_id, "processing", 10 + (80 * scored) // len(candidates), "scoring")

        self._report(job_id, "processing", 90, "saving")
        saved = self.store.replace_match_records(user_id, drafts, strategy=self.replace_strategy)
        if not saved["success"]:
            logger.error(
                f"Error saving matches for {user_id} ({saved.get('step', 'save')} step): {saved.get('error')}"
            )
            self._report(job_id, "failed", 0, "saving", "Failed to save matching results")
            return self._summary(False, "save_failed", candidates_scored=scored, error=saved.get("error"))

        elapsed = self._clock() - started
        if drafts:
            logger.info(f"Created {len(drafts)} matches for {user_id} in {elapsed:.1f}s")
        else:
            logger.info(f"No candidates scored >= {self.threshold} for {user_id}")
        self._report(job_id, "completed", 100, "saving")
        return self._summary(True, "saved", candidates_scored=scored, matches_created=len(drafts))

    def _unique_candidates(self, user_id: str, pool: List[Profile]) -> List[Profile]:
        """Drop the user and repeated candidate IDs, keeping first occurrences in pool order"""
        unique = []
        seen_ids = {user_id}
        for candidate in pool:
            if candidate.id in seen_ids:
                continue
            seen_ids.add(candidate.id)
            unique.append(candidate)
        if len(unique) < len(pool):
            logger.debug(f"Dropped {len(pool) - len(unique)} duplicate pool rows for {user_id}")
        return unique

    def _summary(
        self,
        success: bool,
        outcome: str,
        candidates_scored: int = 0,
        matches_created: int = 0,
        error: Optional[str] = None
    ) -> Dict[str, Any]:
        summary = {
            "success": success,
            "outcome": outcome,
            "candidates_scored": candidates_scored,
            "matches_created": matches_created
        }
        if error:
            summary["error"] = error
        return summary

    def _report(
        self,
        job_id: Optional[str],
        status: str,
        progress: int,
        current_step: str,
        error_message: Optional[str] = None
    ) -> None:
        if job_id:
            self.store.update_job_status(job_id, status, progress, current_step, error_message)

    # ==========================================
    # BACKGROUND JOBS
    # ==========================================

    def start_matching(self, user_id: str) -> Optional[str]:
        """
        Start a background matching run and return its job ID

        Reuses the user's pending or processing job unless it is older than
        the run deadline; such a job is left over from a crashed or lost run
        and is marked failed before a new one starts.
        Returns None if the job row could not be created.
        """
        with self._user_lock(user_id):
            active = self.store.get_active_job(user_id)
            if active:
                age = active.age_seconds(self._now())
                if age is None or age <= self.deadline_seconds:
                    logger.info(f"Matching already in progress for {user_id} (job {active.id})")
                    return active.id
                logger.warning(
                    f"Matching job {active.id} for {user_id} is stale ({age:.0f}s old), starting a new run"
                )
                self.store.update_job_status(
                    active.id, "failed", active.progress, active.current_step, "Stale job superseded"
                )

            created = self.store.create_matching_job(user_id)
            if not created["success"]:
                logger.error(f"Failed to create matching job for {user_id}: {created.get('error')}")
                return None

            job: MatchingJob = created["data"]
            self._get_executor().submit(self.generate_matches, user_id, job.id)
            logger.info(f"Started matching job {job.id} for {user_id}")
            return job.id

    def get_matching_status(self, job_id: str) -> Optional[MatchingJob]:
        """Get the current state of a matching job"""
        return self.store.get_matching_job(job_id)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background executor, optionally waiting for running jobs"""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="matching")
        return self._executor

    def _user_lock(self, user_id: str) -> threading.Lock:
        with self._user_locks_guard:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = self._user_locks[user_id] = threading.Lock()
            return lock
