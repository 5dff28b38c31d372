"""Alert — the immutable record of one lifecycle transition.

Created as a side effect of every transition and never mutated.  The
outbound payload is embedded so the stored alert carries the exact
observation and violation figures that were sent.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from delay_sentinel.domain.enums import AlertType, Severity
from delay_sentinel.foundation.clock import utc_now
from delay_sentinel.models.payload import AlertPayload


class Alert(BaseModel):
    alert_id: UUID = Field(default_factory=uuid4)
    site_id: str
    alert_type: AlertType
    severity: Severity
    message: str
    created_at: datetime = Field(default_factory=utc_now)
    payload: AlertPayload

    model_config = {"frozen": True}
