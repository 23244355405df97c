"""
Status transitions and the notifications they produce.

A site without a stored status has no baseline yet, so its first observation
never alerts, even if that observation is DOWN. Only the four edges below fire:

    UP/DEGRADED -> DOWN   OUTAGE          critical
    DOWN -> UP            RECOVERY        success
    DEGRADED -> UP        ISSUE_RESOLVED  success
    UP -> DEGRADED        ISSUE_DETECTED  warning

DOWN -> DEGRADED and every repeat are silent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from status_checks.config import Site
from status_checks.status import Observation, Reachable, Status, Unreachable


class MessageKind(str, Enum):
    OUTAGE = "OUTAGE"
    RECOVERY = "RECOVERY"
    ISSUE_DETECTED = "ISSUE_DETECTED"
    ISSUE_RESOLVED = "ISSUE_RESOLVED"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    SUCCESS = "success"


# Discord embed colors (decimal RGB).
COLOR_RED = 15158332
COLOR_YELLOW = 16776960
COLOR_TEAL = 3066993

SEVERITY_BY_KIND = {
    MessageKind.OUTAGE: Severity.CRITICAL,
    MessageKind.RECOVERY: Severity.SUCCESS,
    MessageKind.ISSUE_DETECTED: Severity.WARNING,
    MessageKind.ISSUE_RESOLVED: Severity.SUCCESS,
}

COLOR_BY_SEVERITY = {
    Severity.CRITICAL: COLOR_RED,
    Severity.WARNING: COLOR_YELLOW,
    Severity.SUCCESS: COLOR_TEAL,
}

DESCRIPTION_BY_KIND = {
    MessageKind.OUTAGE: "🚨 **SERVICE OUTAGE:** The site is now unreachable.",
    MessageKind.RECOVERY: "✅ **SERVICE RECOVERED:** The site is reachable again after an outage.",
    MessageKind.ISSUE_DETECTED: "⚠️ **ISSUE DETECTED:** The site returned an unexpected status code.",
    MessageKind.ISSUE_RESOLVED: "✅ **ISSUE RESOLVED:** The site returns the expected status code again.",
}

FOOTER_TEXT = "Notifications are sent only on status changes"


@dataclass(frozen=True)
class Decision:
    notify: bool
    kind: MessageKind | None = None

    @property
    def severity(self) -> Severity | None:
        if self.kind is None:
            return None
        return SEVERITY_BY_KIND[self.kind]


SILENT = Decision(notify=False)


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    color: int
    url: str
    timestamp: datetime
    kind: MessageKind
    footer: str = FOOTER_TEXT


def decide(previous: Status | None, current: Status) -> Decision:
    """previous=None is the UNKNOWN baseline (no stored entry)."""
    if previous is None or previous is current:
        return SILENT

    if current is Status.DOWN:
        return Decision(notify=True, kind=MessageKind.OUTAGE)

    if current is Status.UP:
        if previous is Status.DEGRADED:
            return Decision(notify=True, kind=MessageKind.ISSUE_RESOLVED)
        return Decision(notify=True, kind=MessageKind.RECOVERY)

    if previous is Status.UP:
        return Decision(notify=True, kind=MessageKind.ISSUE_DETECTED)

    return SILENT


def _detail_line(site: Site, observation: Observation, current: Status) -> str | None:
    if current is Status.DEGRADED and isinstance(observation, Reachable):
        return f"**Code:** {observation.status_code} (expected: {site.expected_status})"
    if current is Status.DOWN and isinstance(observation, Unreachable):
        if observation.error_code:
            return f"**Error code:** {observation.error_code}"
        return f"**Error:** {observation.error_message[:500]}"
    return None


def build_notification(
    site: Site,
    observation: Observation,
    current: Status,
    decision: Decision,
    *,
    now: datetime | None = None,
) -> Notification:
    if not decision.notify or decision.kind is None:
        raise ValueError("build_notification requires a notifying decision")

    lines = [DESCRIPTION_BY_KIND[decision.kind]]
    detail = _detail_line(site, observation, current)
    if detail:
        lines.append(detail)

    return Notification(
        title=f"🌐 MONITORING STATUS: {site.name} [{current.label}]",
        description="\n".join(lines),
        color=COLOR_BY_SEVERITY[decision.severity],
        url=site.url,
        timestamp=now or datetime.now(timezone.utc),
        kind=decision.kind,
    )
