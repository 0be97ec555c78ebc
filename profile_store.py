"""
Profile store for Co-Founder Sphere
Handles all profile, match and matching job database operations
"""
import logging
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

from supabase import Client

from models import Profile, MatchRecord, MatchingJob, JOB_STATUSES
from supabase_client import get_client, get_admin_client

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
MATCHES_TABLE = "matches"
JOBS_TABLE = "matching_jobs"

# Candidate profile columns joined onto match rows for display
MATCHED_USER_SELECT = (
    "*, matched_user:profiles!matches_user2_id_fkey("
    "id, display_name, headline, role, skills, industries, avatar_url, status)"
)


class ProfileStore:
    def __init__(self, client: Optional[Client] = None, use_admin: bool = True):
        if client is not None:
            self.client = client
        else:
            self.client = get_admin_client() if use_admin else get_client()

    # ==========================================
    # PROFILES
    # ==========================================

    def get_profile_by_id(self, profile_id: str) -> Dict[str, Any]:
        """Get a single profile by ID. data is None when no row exists."""
        try:
            response = self.client.table(PROFILES_TABLE) \
                .select("*") \
                .eq("id", profile_id) \
                .limit(1) \
                .execute()
            rows = response.data or []
            return {"success": True, "data": Profile.from_row(rows[0]) if rows else None}
        except Exception as e:
            return {"success": False, "error": str(e), "data": None}

    def get_candidate_pool(self, exclude_id: str, limit: int = 10) -> Dict[str, Any]:
        """
        Get onboarded profiles other than exclude_id, newest first

        Args:
            exclude_id: The requesting user's profile ID
            limit: Maximum number of candidates

        Returns:
            Dict with success flag and a list of Profile objects
        """
        try:
            response = self.client.table(PROFILES_TABLE) \
                .select("*") \
                .neq("id", exclude_id) \
                .eq("onboarding_completed", True) \
                .order("created_at", desc=True) \
                .limit(limit) \
                .execute()
            return {
                "success": True,
                "data": [Profile.from_row(row) for row in (response.data or [])]
            }
        except Exception as e:
            return {"success": False, "error": str(e), "data": []}

    # ==========================================
    # MATCHES
    # ==========================================

    def delete_match_records(self, user1_id: str) -> Dict[str, Any]:
        """Delete every match owned by user1_id"""
        try:
            self.client.table(MATCHES_TABLE).delete().eq("user1_id", user1_id).execute()
            return {"success": True}
        except Exception as e:
            return {"success": False, "error": str(e)}

    def insert_match_records(self, records: List[MatchRecord]) -> Dict[str, Any]:
        """Insert match drafts in one batch"""
        if not records:
            return {"success": True, "inserted": 0}
        try:
            response = self.client.table(MATCHES_TABLE) \
                .insert([record.to_row() for record in records]) \
                .execute()
            return {"success": True, "inserted": len(response.data or records)}
        except Exception as e:
            return {"success": False, "error": str(e), "inserted": 0}

    def upsert_match_records(self, user1_id: str, records: List[MatchRecord]) -> Dict[str, Any]:
        """
        Upsert drafts on (user1_id, user2_id), then delete the user's other rows

        Unlike delete-then-insert, the user never has an empty match set
        between the two writes. Requires a unique constraint on
        (user1_id, user2_id).
        """
        try:
            if records:
                self.client.table(MATCHES_TABLE).upsert(
                    [record.to_row() for record in records],
                    on_conflict="user1_id,user2_id"
                ).execute()
                keep_ids = [record.user2_id for record in records]
                self.client.table(MATCHES_TABLE) \
                    .delete() \
                    .eq("user1_id", user1_id) \
                    .not_.in_("user2_id", keep_ids) \
                    .execute()
            else:
                self.client.table(MATCHES_TABLE).delete().eq("user1_id", user1_id).execute()
            return {"success": True, "inserted": len(records)}
        except Exception as e:
            return {"success": False, "error": str(e), "inserted": 0}

    def replace_match_records(
        self,
        user1_id: str,
        records: List[MatchRecord],
        strategy: str = "delete_insert"
    ) -> Dict[str, Any]:
        """
        Replace the full match set of user1_id with records

        Args:
            user1_id: Owner of the match set
            records: New drafts (may be empty)
            strategy: 'delete_insert' or 'upsert'

        Returns:
            Dict with success flag, inserted count and the failing step on error
        """
        if strategy == "upsert":
            result = self.upsert_match_records(user1_id, records)
            if not result["success"]:
                result["step"] = "upsert"
            return result

        deleted = self.delete_match_records(user1_id)
        if not deleted["success"]:
            return {"success": False, "error": deleted["error"], "step": "delete", "inserted": 0}

        if not records:
            return {"success": True, "inserted": 0}

        inserted = self.insert_match_records(records)
        if not inserted["success"]:
            inserted["step"] = "insert"
        return inserted

    def get_matches_with_profiles(self, user1_id: str, limit: Optional[int] = None) -> Dict[str, Any]:
        """Get matches owned by user1_id with the candidate's profile, best score first"""
        try:
            query = self.client.table(MATCHES_TABLE) \
                .select(MATCHED_USER_SELECT) \
                .eq("user1_id", user1_id) \
                .order("match_score", desc=True)
            if limit:
                query = query.limit(limit)
            response = query.execute()
            return {
                "success": True,
                "data": [MatchRecord.from_row(row) for row in (response.data or [])]
            }
        except Exception as e:
            return {"success": False, "error": str(e), "data": []}

    # ==========================================
    # MATCHING JOBS
    # ==========================================

    def create_matching_job(self, user_id: str) -> Dict[str, Any]:
        """Create a pending job row for a background matching run"""
        try:
            response = self.client.table(JOBS_TABLE).insert({
                "user_id": user_id,
                "status": "pending",
                "progress": 0,
                "current_step": "loading"
            }).execute()
            if not response.data:
                return {"success": False, "error": "Failed to create matching job"}
            return {"success": True, "data": MatchingJob.from_row(response.data[0])}
        except Exception as e:
            return {"success": False, "error": str(e)}

    def update_job_status(
        self,
        job_id: str,
        status: str,
        progress: int,
        current_step: str,
        error_message: Optional[str] = None
    ) -> Dict[str, Any]:
        """Update job progress; finished jobs get completed_at"""
        if status not in JOB_STATUSES:
            logger.error(f"Refusing to set matching job {job_id} to unknown status '{status}'")
            return {"success": False, "error": f"Invalid job status: {status}"}

        update_data: Dict[str, Any] = {
            "status": status,
            "progress": progress,
            "current_step": current_step
        }
        if status in ("completed", "failed"):
            update_data["completed_at"] = datetime.now(timezone.utc).isoformat()
        if error_message:
            update_data["error_message"] = error_message

        try:
            self.client.table(JOBS_TABLE).update(update_data).eq("id", job_id).execute()
            return {"success": True}
        except Exception as e:
            logger.error(f"Error updating matching job {job_id}: {str(e)}")
            return {"success": False, "error": str(e)}

    def get_matching_job(self, job_id: str) -> Optional[MatchingJob]:
        """Get a job by ID"""
        try:
            response = self.client.table(JOBS_TABLE) \
                .select("*") \
                .eq("id", job_id) \
                .limit(1) \
                .execute()
            rows = response.data or []
            return MatchingJob.from_row(rows[0]) if rows else None
        except Exception as e:
            logger.error(f"Error fetching matching job {job_id}: {str(e)}")
            return None

    def get_active_job(self, user_id: str) -> Optional[MatchingJob]:
        """Get the user's most recent pending or processing job"""
        try:
            response = self.client.table(JOBS_TABLE) \
                .select("*") \
                .eq("user_id", user_id) \
                .in_("status", ["pending", "processing"]) \
                .order("created_at", desc=True) \
                .limit(1) \
                .execute()
            rows = response.data or []
            return MatchingJob.from_row(rows[0]) if rows else None
        except Exception as e:
            logger.error(f"Error fetching active job for {user_id}: {str(e)}")
            return None
