#!/usr/bin/env python3
"""
Generate Matches
================
Runs co-founder match generation for one user and inspects the results.

Usage:
    python scripts/generate_matches.py generate <user_id>
    python scripts/generate_matches.py generate <user_id> --fallback-only
    python scripts/generate_matches.py show <user_id>
    python scripts/generate_matches.py export <user_id> --output matches.csv
    python scripts/generate_matches.py status <job_id>

Requirements:
    - SUPABASE_URL plus SUPABASE_SERVICE_KEY (generate, status) or SUPABASE_ANON_KEY (show, export)
    - OPENAI_API_KEY environment variable (unless --fallback-only)
"""

import sys
import logging
import json
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from compatibility_scorer import CompatibilityScorer
from config import get_results_limit
from completion_service import TextCompletionService
from match_generator import MatchGenerator
from match_retrieval import MatchRetrieval
from profile_store import ProfileStore

load_dotenv()
logging.basicConfig(level=logging.INFO)


def run_generate(store: ProfileStore, user_id: str, fallback_only: bool) -> int:
    completion_service = None if fallback_only else TextCompletionService()
    generator = MatchGenerator(store=store, scorer=CompatibilityScorer(completion_service))
    summary = generator.generate_matches(user_id)

    print(f"\n{'='*50}")
    print(f"Match Generation Summary")
    print(f"{'='*50}")
    print(f"Outcome: {summary['outcome']}")
    print(f"Candidates Scored: {summary['candidates_scored']}")
    print(f"Matches Created: {summary['matches_created']}")
    if summary.get('error'):
        print(f"Error: {summary['error']}")
    return 0 if summary['success'] else 1


def run_show(store: ProfileStore, user_id: str, limit: int) -> int:
    matches = MatchRetrieval(store).get_matched_users(user_id, limit=limit)
    if not matches:
        print("No matches found.")
        return 0

    for rank, match in enumerate(matches, start=1):
        print(f"{rank:>2}. {match['name']} ({match['role']}) - {match['match_score']}/100 [{match['match_status']}]")
        for reason in match['match_reason']:
            print(f"      - {reason}")
    return 0


def run_export(store: ProfileStore, user_id: str, output: str) -> int:
    df = MatchRetrieval(store).export_to_dataframe(user_id)
    df.to_csv(output, index=False)
    print(f"Exported {len(df)} matches to {output}")
    return 0


def run_status(store: ProfileStore, job_id: str) -> int:
    job = store.get_matching_job(job_id)
    if job is None:
        print(f"No matching job {job_id}")
        return 1
    print(json.dumps(job.to_dict(), indent=2, ensure_ascii=False))
    return 0 if job.status != "failed" else 1


def main():
    parser = argparse.ArgumentParser(
        description="Generate and inspect co-founder matches"
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    generate_parser = subparsers.add_parser('generate', help='Regenerate matches for a user')
    generate_parser.add_argument('user_id', help='Profile ID')
    generate_parser.add_argument(
        '--fallback-only',
        action='store_true',
        help='Score with the rule-based formula, skip the LLM'
    )

    show_parser = subparsers.add_parser('show', help='Print stored matches for a user')
    show_parser.add_argument('user_id', help='Profile ID')
    show_parser.add_argument(
        '--limit', '-l',
        type=int,
        default=get_results_limit(),
        help='Maximum matches to show'
    )

    export_parser = subparsers.add_parser('export', help='Export stored matches to CSV')
    export_parser.add_argument('user_id', help='Profile ID')
    export_parser.add_argument('--output', '-o', default='matches.csv', help='Path to CSV file')

    status_parser = subparsers.add_parser('status', help='Print the state of a matching job')
    status_parser.add_argument('job_id', help='Matching job ID')

    args = parser.parse_args()

    try:
        # Writes and job rows need the service key; reads go through row level security
        if args.command == 'generate':
            sys.exit(run_generate(ProfileStore(use_admin=True), args.user_id, args.fallback_only))
        elif args.command == 'status':
            sys.exit(run_status(ProfileStore(use_admin=True), args.job_id))
        elif args.command == 'show':
            sys.exit(run_show(ProfileStore(use_admin=False), args.user_id, args.limit))
        else:
            sys.exit(run_export(ProfileStore(use_admin=False), args.user_id, args.output))

    except ValueError as e:
        print(f"Configuration Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
