from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone


def generate_id(prefix: str = "id") -> str:
    """Return a unique comment id such as ``local_1718000000_3f2a9c1e``."""
    return f"{prefix}_{int(time.time())}_{uuid.uuid4().hex[:8]}"


def utc_now() -> str:
    """Current UTC time as ISO-8601 with second precision, e.g. 2024-01-15T10:30:00Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
