"""Supabase client for storage and edge function access."""
from tribes_admin.core.config import settings


def get_supabase_admin_client():
    """
    Get Supabase client with service role key for admin operations.

    This client can:
    - Sign URLs for private storage buckets
    - Bypass Row Level Security
    """
    from supabase import create_client

    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")

    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY
    )


def get_functions_url(function_name: str) -> str:
    """Return the HTTPS endpoint of a deployed edge function."""
    if not settings.SUPABASE_URL:
        raise ValueError("SUPABASE_URL not configured")
    return f"{settings.SUPABASE_URL.rstrip('/')}/functions/v1/{function_name}"
