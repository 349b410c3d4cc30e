"""Private file storage (Supabase Storage) access."""
import logging

from tribes_admin.core.config import settings
from tribes_admin.core.supabase_client import get_supabase_admin_client
from tribes_admin.services.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def create_signed_url(path: str, bucket: str = None, expires_in: int = None) -> str:
    """
    Sign a short-lived download URL for a private object.

    Defaults to the song-documents bucket and SIGNED_URL_TTL_SECONDS.
    """
    bucket = bucket or settings.SONG_DOCUMENTS_BUCKET
    expires_in = expires_in or settings.SIGNED_URL_TTL_SECONDS

    try:
        client = get_supabase_admin_client()
        response = client.storage.from_(bucket).create_signed_url(path, expires_in)
    except Exception as e:
        logger.error(f"Failed to sign {bucket}/{path}: {e}")
        raise ExternalServiceError(f"Could not create download link: {e}")

    # Older clients return "signedURL", newer ones "signedUrl"
    url = None
    if isinstance(response, dict):
        url = response.get("signedURL") or response.get("signedUrl")
    if not url:
        logger.error(f"No signed URL returned for {bucket}/{path}: {response}")
        raise ExternalServiceError("Could not create download link")
    return url
