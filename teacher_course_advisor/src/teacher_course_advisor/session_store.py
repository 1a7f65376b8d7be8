"""
Session Record Storage

Persists finished session records (profile, chat history, survey answers).
Writes to a Supabase table when a client is configured and falls back to
JSON files on disk otherwise.
"""

import os
import re
import json
import time
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, List

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SESSIONS_DIR = "sessionHistory"
DEFAULT_SESSIONS_TABLE = "session_history"


@dataclass
class SavedSession:
    """Where a session record ended up."""
    filename: str
    location: str  # "supabase" or "disk"
    path: Optional[str] = None


def session_filename(user_name: Optional[str], timestamp_ms: Optional[int] = None) -> str:
    """``session_{user}_{epoch_ms}.json``; path separators in the name are replaced."""
    name = user_name or "unknown"
    name = re.sub(r"[\\/]", "_", name)
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"session_{name}_{timestamp_ms}.json"


class SessionStore:
    """
    Stores and lists session records.

    Supabase is used when a client is given; disk is the fallback for both
    an unconfigured backend and a failed table write.
    """

    def __init__(
        self,
        sessions_dir: Optional[str] = None,
        supabase_client=None,
        table_name: Optional[str] = None
    ):
        """
        Initialize SessionStore.

        Args:
            sessions_dir: Directory for JSON files (created if missing)
            supabase_client: Supabase client instance (optional)
            table_name: Supabase table for session records
        """
        self.sessions_dir = Path(sessions_dir or os.getenv("SESSIONS_DIR", DEFAULT_SESSIONS_DIR))
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self.supabase = supabase_client
        self.use_supabase = supabase_client is not None
        self.table_name = table_name or os.getenv("SESSIONS_TABLE", DEFAULT_SESSIONS_TABLE)

    def save_session(self, record: Dict[str, Any]) -> SavedSession:
        """
        Persist a session record.

        Args:
            record: Session record (see ``survey.build_session_record``)

        Returns:
            SavedSession with the generated filename and storage location

        Raises:
            OSError: The disk fallback could not be written
        """
        user_name = (record.get("userInfo") or {}).get("userName")
        filename = session_filename(user_name)

        if self.use_supabase:
            try:
                self.supabase.table(self.table_name).insert({
                    "filename": filename,
                    "user_name": user_name,
                    "data": record,
                }).execute()
                logger.info(f"💾 [SessionStore] Session saved to table {self.table_name}: {filename}")
                return SavedSession(filename=filename, location="supabase")
            except Exception as e:
                logger.warning(f"⚠️ [SessionStore] Error saving session to database, writing to disk: {e}")

        path = self.sessions_dir / filename
        with path.open("w", encoding="utf-8") as f:
            json.dump(record, f, ensure_ascii=False, indent=2)
        logger.info(f"💾 [SessionStore] Session saved to: {path}")
        return SavedSession(filename=filename, location="disk", path=str(path))

    def list_sessions(self) -> List[Dict[str, Any]]:
        """Stored records, newest first (table rows followed by disk files)."""
        sessions = []
        if self.use_supabase:
            try:
                result = self.supabase.table(self.table_name) \
                    .select('filename, created_at') \
                    .order('created_at', desc=True) \
                    .execute()
                sessions = [
                    {"filename": row.get("filename"), "createdAt": row.get("created_at"), "size": None}
                    for row in (result.data or [])
                ]
            except Exception as e:
                logger.warning(f"⚠️ [SessionStore] Error listing sessions from database: {e}")
        return sessions + self._list_disk_sessions()

    def _list_disk_sessions(self) -> List[Dict[str, Any]]:
        sessions = []
        for path in self.sessions_dir.glob("*.json"):
            stats = path.stat()
            sessions.append({
                "filename": path.name,
                "createdAt": datetime.fromtimestamp(stats.st_mtime).isoformat(),
                "size": stats.st_size,
                "_mtime": stats.st_mtime,
            })
        sessions.sort(key=lambda s: s["_mtime"], reverse=True)
        for session in sessions:
            del session["_mtime"]
        return sessions

    def load_session(self, filename: str) -> Optional[Dict[str, Any]]:
        """Read a stored record by filename (table first, then disk); None if it does not exist."""
        if self.use_supabase:
            try:
                result = self.supabase.table(self.table_name) \
                    .select('data') \
                    .eq('filename', filename) \
                    .limit(1) \
                    .execute()
                if result.data:
                    return result.data[0].get("data")
            except Exception as e:
                logger.warning(f"⚠️ [SessionStore] Error loading session {filename} from database: {e}")

        path = self.sessions_dir / Path(filename).name
        if not path.exists():
            return None
        with path.open(encoding="utf-8") as f:
            return json.load(f)
