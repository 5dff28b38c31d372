"""Result of one monitor run, returned to whatever scheduled it."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from delay_sentinel.domain.enums import Severity, SiteStatus
from delay_sentinel.domain.violation import Violation


class SiteResult(BaseModel):
    """What happened to one site during a run."""

    site_id: str
    site_name: str
    status: SiteStatus
    violations: list[Violation] = Field(default_factory=list)
    severity: Optional[Severity] = None
    delay_id: Optional[str] = None
    station_id: Optional[str] = None
    detail: str = Field(default="", description="Skip reason or error message")


class MonitorRunReport(BaseModel):
    started_at: datetime
    finished_at: datetime
    results: list[SiteResult] = Field(default_factory=list)

    def _count(self, status: SiteStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def sites_checked(self) -> int:
        return len(self.results)

    @property
    def delays_opened(self) -> int:
        return self._count(SiteStatus.OPENED)

    @property
    def delays_continued(self) -> int:
        return self._count(SiteStatus.CONTINUED)

    @property
    def delays_closed(self) -> int:
        return self._count(SiteStatus.CLOSED)

    @property
    def sites_skipped(self) -> int:
        return self._count(SiteStatus.SKIPPED)

    @property
    def sites_failed(self) -> int:
        return self._count(SiteStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "sites_checked": self.sites_checked,
            "delays_opened": self.delays_opened,
            "delays_continued": self.delays_continued,
            "delays_closed": self.delays_closed,
            "sites_skipped": self.sites_skipped,
            "sites_failed": self.sites_failed,
            "results": [r.model_dump(mode="json") for r in self.results],
        }
