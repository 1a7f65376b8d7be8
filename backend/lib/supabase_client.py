"""
Supabase connection for session record storage.

Optional: without SUPABASE_URL / SUPABASE_SERVICE_KEY the backend keeps
session records on disk only.
"""
import os
import logging
from typing import Optional

from dotenv import load_dotenv
from supabase import Client, create_client

load_dotenv()
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "..", ".env"))

logger = logging.getLogger(__name__)

_client: Optional[Client] = None
_warned_unconfigured = False


def supabase_configured() -> bool:
    return bool(os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_SERVICE_KEY"))


def get_supabase_client() -> Optional[Client]:
    """Shared Supabase client, or None when storage is disk-only."""
    global _client, _warned_unconfigured

    if _client is not None:
        return _client

    if not supabase_configured():
        if not _warned_unconfigured:
            logger.info("💾 Supabase not configured; session records go to disk")
            _warned_unconfigured = True
        return None

    _client = create_client(os.environ["SUPABASE_URL"], os.environ["SUPABASE_SERVICE_KEY"])
    logger.info("🗄️ Supabase client created")
    return _client
