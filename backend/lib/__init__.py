"""Backend helpers: console logging and the optional Supabase connection."""
from .logger import setup_logging, get_logger, StructuredLogger
from .supabase_client import get_supabase_client, supabase_configured

__all__ = ["setup_logging", "get_logger", "StructuredLogger", "get_supabase_client", "supabase_configured"]
