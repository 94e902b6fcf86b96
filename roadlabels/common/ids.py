"""Run identifiers: UTC start time plus a short random suffix."""

from __future__ import annotations

import secrets
from datetime import datetime

from roadlabels.common.time_utils import utc_now


def generate_run_id(started_at: datetime | None = None) -> str:
    started = started_at or utc_now()
    # Lexicographic order follows start time; the suffix separates concurrent runs.
    return f"run-{started.strftime('%Y%m%dT%H%M%SZ')}-{secrets.token_hex(3)}"
