"""Server health utilities.

Provides `get_health` returning server status, start time, uptime and a
summary of the registered stores.
"""
from datetime import datetime, timezone
from typing import Optional
import time

from chronmap_lib.registry.registry import InstanceRegistry

# record process start time at import
_START_TIME = time.time()


def get_health(registry: Optional[InstanceRegistry] = None) -> dict:
    """Return a dict representing server health.

    Fields:
    - status: 'ok'
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime_seconds: integer seconds since start
    - instances / total_entries: registry counts (0 without a registry)
    """
    now = time.time()
    uptime = int(now - _START_TIME)
    start_dt = datetime.fromtimestamp(_START_TIME, tz=timezone.utc)
    return {
        "status": "ok",
        "start_time": start_dt.isoformat(),
        "uptime_seconds": uptime,
        "instances": len(registry) if registry is not None else 0,
        "total_entries": registry.total_entry_count() if registry is not None else 0,
    }
