"""
Supabase clients for Co-Founder Sphere matching

Two roles share one project URL:
    - anon: read paths (match retrieval, CLI show/export), subject to row level security
    - admin: match generation, which deletes and writes other users' match rows
"""
import os
from typing import Optional, Tuple

from supabase import create_client, Client
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Each setting is looked up under these names, first non-empty wins.
# The NEXT_PUBLIC_/SERVICE_ROLE names let the web app's .env be reused as is.
URL_VARS = ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
ANON_KEY_VARS = ("SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY")
SERVICE_KEY_VARS = ("SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY")


def _first_env(names: Tuple[str, ...]) -> str:
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


def get_supabase_settings(admin: bool = False) -> Tuple[str, str]:
    """
    Resolve (url, key) for the anon or admin role

    Raises:
        ValueError: if the URL or the role's key is not configured
    """
    url = _first_env(URL_VARS)
    key_vars = SERVICE_KEY_VARS if admin else ANON_KEY_VARS
    key = _first_env(key_vars)
    if not url or not key:
        role = "admin" if admin else "anon"
        raise ValueError(
            f"Missing Supabase {role} configuration. "
            f"Set {URL_VARS[0]} and {key_vars[0]} in your .env file."
        )
    return url, key


def get_supabase_client() -> Client:
    """Create a client with the anon key"""
    return create_client(*get_supabase_settings(admin=False))


def get_supabase_admin_client() -> Client:
    """Create a client with the service key"""
    return create_client(*get_supabase_settings(admin=True))


# Singleton client instances
_client: Optional[Client] = None
_admin_client: Optional[Client] = None


def get_client() -> Client:
    """Get or create singleton anon client"""
    global _client
    if _client is None:
        _client = get_supabase_client()
    return _client


def get_admin_client() -> Client:
    """Get or create singleton admin client"""
    global _admin_client
    if _admin_client is None:
        _admin_client = get_supabase_admin_client()
    return _admin_client


def reset_clients():
    """Drop cached clients so the next call re-reads the environment"""
    global _client, _admin_client
    _client = None
    _admin_client = None
