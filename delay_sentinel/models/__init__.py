from delay_sentinel.models.payload import AlertPayload
from delay_sentinel.models.report import MonitorRunReport, SiteResult

__all__ = ["AlertPayload", "MonitorRunReport", "SiteResult"]
