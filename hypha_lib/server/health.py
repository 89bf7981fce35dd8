"""Server health utilities.

Provides a simple `get_health` function returning server status,
start time, uptime in seconds and the version string.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import time

# record process start time at import
_START_TIME = time.time()

_VERSION_FILE = Path(__file__).resolve().parents[2] / "VERSION"


def get_health(storage_backend: Optional[str] = None) -> dict:
    """Return a dict representing server health.

    Fields:
    - status: always 'ok' when the process can answer
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime_seconds: integer seconds since start
    - version: contents of the VERSION file, or 'unknown'
    - storage_backend: name of the session storage backend, if known
    """
    now = time.time()
    uptime = int(now - _START_TIME)
    start_dt = datetime.fromtimestamp(_START_TIME, tz=timezone.utc)

    version = "unknown"
    if _VERSION_FILE.exists():
        version = _VERSION_FILE.read_text(encoding="utf-8").strip()

    return {
        "status": "ok",
        "start_time": start_dt.isoformat(),
        "uptime_seconds": uptime,
        "version": version,
        "storage_backend": storage_backend,
    }
