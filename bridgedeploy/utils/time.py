from __future__ import annotations

from datetime import datetime, timezone


def utcnow_iso() -> str:
    """Second-resolution UTC timestamp, e.g. 2026-01-01T00:00:00Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
