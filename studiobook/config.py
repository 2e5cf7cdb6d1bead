# studiobook/config.py
import os
import logging
from typing import Optional

from supabase import create_client, Client

log = logging.getLogger("uvicorn.error")

# ──────────────────────────────────────────────────────────────────────────────
# Environment
#   SUPABASE_URL=https://YOUR-PROJECT-REF.supabase.co
#   SUPABASE_SERVICE_ROLE=eyJhbGciOiJI...  (service role key)
# Both optional: without them the service runs local-only.
# ──────────────────────────────────────────────────────────────────────────────
LOCAL_DB_URL = os.getenv("STUDIOBOOK_DB_URL", "sqlite:///./studiobook.db")
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "91")
DEMO_USER_ID = os.getenv("DEMO_USER_ID", "00000000-0000-0000-0000-000000000001")

_PLACEHOLDER_VALUES = {"your_supabase_url", "your_supabase_service_role", ""}


def supabase_configured() -> bool:
    url = os.environ.get("SUPABASE_URL", "")
    key = os.environ.get("SUPABASE_SERVICE_ROLE", "")
    if url in _PLACEHOLDER_VALUES or key in _PLACEHOLDER_VALUES:
        return False
    return url.startswith("http")


def get_supabase() -> Optional[Client]:
    """Supabase client for the remote mirror, or None when not configured."""
    if not supabase_configured():
        log.info("Supabase not configured; running local-only")
        return None
    try:
        return create_client(os.environ["SUPABASE_URL"], os.environ["SUPABASE_SERVICE_ROLE"])
    except Exception as e:
        log.warning(f"Supabase init failed, running local-only: {e}")
        return None
