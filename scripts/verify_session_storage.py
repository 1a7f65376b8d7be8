"""
Quick diagnostic for session record storage.

This script checks:
1. Whether Supabase credentials are configured
2. DNS resolution of the Supabase host
3. That the session table can be queried
4. That the disk fallback directory is writable

Usage:
    python scripts/verify_session_storage.py
"""

import os
import sys
import socket
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv
from supabase import create_client

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "teacher_course_advisor" / "src"))

from teacher_course_advisor.session_store import DEFAULT_SESSIONS_DIR, DEFAULT_SESSIONS_TABLE


def check_dns(hostname: str) -> bool:
    print(f"\n🔍 Checking DNS resolution for: {hostname}")
    try:
        info = socket.getaddrinfo(hostname, 443, proto=socket.IPPROTO_TCP)
        ips = {addr[4][0] for addr in info}
        print(f"✅ DNS resolves to: {', '.join(ips)}")
        return True
    except socket.gaierror as e:
        print(f"❌ DNS resolution FAILED: {e}")
        return False


def check_table(url: str, key: str, table: str) -> bool:
    print(f"\n🗄️  Querying table: {table}")
    try:
        result = create_client(url, key).table(table).select("filename").limit(1).execute()
        print(f"✅ Table reachable ({len(result.data or [])} row(s) sampled)")
        return True
    except Exception as e:
        print(f"❌ Table query FAILED: {e}")
        return False


def check_disk(sessions_dir: Path) -> bool:
    print(f"\n📁 Checking disk fallback: {sessions_dir}")
    try:
        sessions_dir.mkdir(parents=True, exist_ok=True)
        marker = sessions_dir / ".write_check"
        marker.write_text("ok", encoding="utf-8")
        marker.unlink()
        print(f"✅ Directory is writable ({len(list(sessions_dir.glob('*.json')))} stored sessions)")
        return True
    except OSError as e:
        print(f"❌ Directory not writable: {e}")
        return False


def main() -> bool:
    print("=" * 70)
    print("🔍 SESSION STORAGE DIAGNOSTICS")
    print("=" * 70)

    load_dotenv(project_root / ".env")

    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_KEY")
    table = os.getenv("SESSIONS_TABLE", DEFAULT_SESSIONS_TABLE)
    sessions_dir = Path(os.getenv("SESSIONS_DIR", DEFAULT_SESSIONS_DIR))

    disk_ok = check_disk(sessions_dir)

    if not url or not key:
        print("\n⚠️  SUPABASE_URL / SUPABASE_SERVICE_KEY not set - sessions are stored on disk only")
        return disk_ok

    print(f"\n📋 URL: {url}")
    print(f"   Key: {key[:20]}... (truncated)")

    dns_ok = check_dns(urlparse(url).hostname)
    table_ok = dns_ok and check_table(url, key, table)

    print("\n" + "=" * 70)
    print("📊 DIAGNOSTIC SUMMARY")
    print("=" * 70)
    print(f"Disk fallback:   {'✅ PASS' if disk_ok else '❌ FAIL'}")
    print(f"DNS Resolution:  {'✅ PASS' if dns_ok else '❌ FAIL'}")
    print(f"Session table:   {'✅ PASS' if table_ok else '❌ FAIL'}")
    return disk_ok and table_ok


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
