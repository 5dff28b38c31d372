"""Timezone-aware clock utilities.

All timestamps in delay-sentinel MUST be UTC-aware.  Components that need
"now" accept a clock callable defaulting to utc_now(), so tests can inject
a frozen or stepping clock instead of patching modules.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)
