"""
Compatibility Scorer for co-founder matching
Scores a pair of founder profiles with an LLM, falling back to a rule-based formula
"""
import json
import logging
from typing import Dict, Any, List, Optional

from completion_service import TextCompletionService, CompletionError
from config import get_default_score, get_fallback_settings, get_fallback_reasons, get_completion_settings
from models import Profile, MatchResult
from utils.helpers import overlap_count, clamp_score, parse_score, clean_json_string

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert at matching startup co-founders. Answer only in JSON."


class CompatibilityScorer:
    """
    Produces a MatchResult (0-100 score plus short reasons) for two profiles.

    The scorer never raises: unusable LLM output degrades to the default
    score, and a failed LLM call falls back to the rule-based formula.
    """

    def __init__(self, completion_service: Optional[TextCompletionService] = None):
        """
        Initialize the scorer

        Args:
            completion_service: LLM client; None scores with the fallback formula only
        """
        self.completion_service = completion_service
        self.default_score = get_default_score()
        self.fallback_settings = get_fallback_settings()
        self.fallback_reasons = get_fallback_reasons()
        self.reason_language = get_completion_settings().get("reason_language", "Korean")

    def calculate_match_score(self, user: Profile, candidate: Profile) -> MatchResult:
        """
        Score how well candidate fits user as a co-founder

        Args:
            user: The requesting user's profile
            candidate: The candidate's profile

        Returns:
            MatchResult for the candidate
        """
        if self.completion_service is None:
            return self.fallback_score(user, candidate)

        prompt = self._build_prompt(user, candidate)
        try:
            content = self.completion_service.complete(prompt, system_prompt=SYSTEM_PROMPT)
        except CompletionError as e:
            logger.warning(f"AI scoring failed for {user.id} -> {candidate.id}, using fallback: {str(e)}")
            return self.fallback_score(user, candidate)
        except Exception as e:
            logger.exception(f"Unexpected scoring error for {user.id} -> {candidate.id}: {str(e)}")
            return self.fallback_score(user, candidate)

        return self._parse_response(content, candidate.id)

    def _build_prompt(self, user: Profile, candidate: Profile) -> str:
        """Build the compatibility prompt for two profiles"""

        def describe(label: str, profile: Profile) -> str:
            return f"""{label}:
- Role: {profile.role}
- Skills: {', '.join(profile.skills)}
- Industries of interest: {', '.join(profile.industries)}
- Vision: {profile.vision}
- Work styles: {', '.join(profile.work_styles)}"""

        return f"""
Rate the compatibility of these two startup founders as co-founders on a 0-100 scale.

{describe('Founder 1', user)}

{describe('Founder 2', candidate)}

Respond only with a JSON object in this exact shape:
{{
    "score": integer between 0 and 100,
    "reasons": ["short match reason 1", "short match reason 2"]
}}

Write the reasons in {self.reason_language}.
"""

    def _parse_response(self, content: Optional[str], candidate_id: str) -> MatchResult:
        """
        Parse the LLM's JSON answer, substituting defaults for unusable fields

        Args:
            content: Raw message content
            candidate_id: ID the result belongs to

        Returns:
            MatchResult with source 'ai', or 'ai_default' if the score was unusable
        """
        data: Dict[str, Any] = {}
        if content:
            try:
                parsed = json.loads(clean_json_string(content))
                if isinstance(parsed, dict):
                    data = parsed
            except json.JSONDecodeError as e:
                logger.warning(f"JSON parsing error in match score for {candidate_id}: {str(e)}")

        score = parse_score(data.get("score"))
        reasons = self._validate_reasons(data.get("reasons"))

        if score is None:
            logger.info(f"No usable score for {candidate_id}, defaulting to {self.default_score}")
            return MatchResult(
                user_id=candidate_id,
                match_score=self.default_score,
                reasons=reasons,
                source="ai_default"
            )

        return MatchResult(user_id=candidate_id, match_score=score, reasons=reasons, source="ai")

    def _validate_reasons(self, reasons: Any) -> List[str]:
        """Keep non-empty string reasons; anything else becomes an empty list"""
        if not isinstance(reasons, list):
            return []
        return [r.strip() for r in reasons if isinstance(r, str) and r.strip()]

    def fallback_score(self, user: Profile, candidate: Profile) -> MatchResult:
        """
        Rule-based score used when the LLM is unavailable

        10 points per shared skill, 15 per shared industry, plus 20 when the
        roles differ (10 when equal), capped at 100.
        """
        settings = self.fallback_settings
        skill_points = settings["skill_weight"] * overlap_count(user.skills, candidate.skills)
        industry_points = settings["industry_weight"] * overlap_count(user.industries, candidate.industries)
        if user.role != candidate.role:
            role_points = settings["complementary_role_bonus"]
        else:
            role_points = settings["same_role_bonus"]

        return MatchResult(
            user_id=candidate.id,
            match_score=clamp_score(min(100, skill_points + industry_points + role_points)),
            reasons=list(self.fallback_reasons),
            source="fallback"
        )
