"""
Value types passed between the orchestrator, runner and uploader.

`RunResult.to_dict` produces the wire shape returned in the handler body;
keys match what downstream consumers of the job already parse
(`condition_met`, `google_drive`, `errorTime`, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from snapper.constants import Platform


@dataclass(frozen=True)
class ScrapeOptions:
    keyword: Optional[str] = None
    store_code: Optional[str] = None
    # Per-invocation override that forces a screenshot + upload.
    force_screenshot: bool = False


@dataclass(frozen=True)
class Target:
    platform: Platform
    url: str


@dataclass(frozen=True)
class TopItem:
    """Rank-1 item as read from the ranking page; either field may be missing."""

    url: Optional[str]
    title: Optional[str]


@dataclass(frozen=True)
class ConditionCheck:
    title_match: bool
    store_match: bool

    @property
    def met(self) -> bool:
        return self.title_match and self.store_match


@dataclass(frozen=True)
class DriveFile:
    id: str
    name: str
    url: str


@dataclass
class RunResult:
    """Outcome of one platform run."""

    success: bool
    html_content: Optional[str] = None
    condition_met: bool = False
    google_drive: Optional[dict[str, str]] = None
    error: Optional[str] = None
    error_time: Optional[str] = None
    skipped: bool = False
    message: Optional[str] = None

    @classmethod
    def skipped_result(cls) -> "RunResult":
        return cls(success=True, skipped=True, message="URL not provided")

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        html_content: Optional[str] = None,
        condition_met: bool = False,
    ) -> "RunResult":
        return cls(
            success=False,
            html_content=html_content,
            condition_met=condition_met,
            error=error,
            error_time=datetime.now(timezone.utc).isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "html_content": self.html_content,
            "condition_met": self.condition_met,
        }
        if self.google_drive is not None:
            data["google_drive"] = dict(self.google_drive)
        if self.error is not None:
            data["error"] = self.error
        if self.error_time is not None:
            data["errorTime"] = self.error_time
        if self.skipped:
            data["skipped"] = True
        if self.message is not None:
            data["message"] = self.message
        return data


@dataclass
class AggregateResult:
    """Per-platform results for one invocation, in processing order."""

    results: dict[str, RunResult] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {name: result.to_dict() for name, result in self.results.items()}

    def condition_met(self, platform: str) -> bool:
        result = self.results.get(platform)
        return bool(result and result.condition_met)

    def failed(self) -> dict[str, RunResult]:
        return {name: r for name, r in self.results.items() if not r.success}
