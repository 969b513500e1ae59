"""
Report lifecycle rules.

Pure decision logic: no database, no HTTP. Every check takes the acting
profile explicitly as an `Actor`, so the rules can be exercised without a
signed-in session.

Statuses:
    Open -> On Progress -> Resolved | Rejected

Only a claim moves `assigned_to`. Progress updates may set any of
On Progress / Resolved / Rejected at any time; terminality is not modelled.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from lapor.core.errors import NotAuthorized, ValidationFailed
from lapor.models.profile import ProfileRole
from lapor.models.report import ReportStatus

CLAIM_NOTE = "Laporan diambil dan sedang ditangani"

UPDATE_STATUSES = (ReportStatus.ON_PROGRESS, ReportStatus.RESOLVED, ReportStatus.REJECTED)


class ReportLike(Protocol):
    user_id: str
    status: ReportStatus
    assigned_to: Optional[str]
    assignee_role: Optional[ProfileRole]


@dataclass(frozen=True)
class Actor:
    id: str
    role: ProfileRole
    name: str = ""

    @classmethod
    def from_profile(cls, profile) -> "Actor":
        return cls(id=profile.id, role=ProfileRole(profile.role), name=profile.name or "")

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN

    @property
    def is_petugas(self) -> bool:
        return self.role == ProfileRole.PETUGAS


def _status(report: ReportLike) -> ReportStatus:
    return ReportStatus(report.status)


# -------- Transitions --------
def initial_report_values() -> dict:
    return {"status": ReportStatus.OPEN, "assigned_to": None}


def is_claimable(report: ReportLike) -> bool:
    return _status(report) == ReportStatus.OPEN and report.assigned_to is None


def can_claim(actor: Actor, report: ReportLike) -> bool:
    # UI hint only; the conditional write is what decides who wins
    return actor.is_petugas and is_claimable(report)


def claim_values(actor: Actor) -> dict:
    if not actor.is_petugas:
        raise NotAuthorized("Hanya petugas yang dapat mengambil laporan")
    return {"status": ReportStatus.ON_PROGRESS, "assigned_to": actor.id}


def validate_update_status(value) -> ReportStatus:
    try:
        status = ReportStatus(value)
    except ValueError:
        status = None
    if status not in UPDATE_STATUSES:
        allowed = ", ".join(s.value for s in UPDATE_STATUSES)
        raise ValidationFailed.from_errors({"status": f"Status harus salah satu dari: {allowed}"})
    return status


# -------- Authorization --------
def can_update_report(actor: Actor, report: ReportLike) -> bool:
    if actor.is_admin:
        return True
    if not actor.is_petugas:
        return False
    if report.assigned_to is None:
        return True
    if report.assigned_to == actor.id:
        return True
    # petugas share responsibility for anything held by another petugas
    return report.assignee_role == ProfileRole.PETUGAS


def assert_can_update(actor: Actor, report: ReportLike) -> None:
    if not can_update_report(actor, report):
        raise NotAuthorized("Anda tidak memiliki izin untuk menambahkan update pada laporan ini")


def can_delete_report(actor: Actor) -> bool:
    return actor.is_admin


# -------- Derived views --------
def dashboard_stats(reports: Iterable[ReportLike]) -> dict:
    reports = list(reports)
    statuses = [_status(r) for r in reports]
    return {
        "total": len(reports),
        "open": statuses.count(ReportStatus.OPEN),
        "on_progress": statuses.count(ReportStatus.ON_PROGRESS),
        "resolved": statuses.count(ReportStatus.RESOLVED),
        "rejected": statuses.count(ReportStatus.REJECTED),
    }


def is_available(report: ReportLike) -> bool:
    return is_claimable(report)


def is_handled(report: ReportLike) -> bool:
    return _status(report) in (ReportStatus.ON_PROGRESS, ReportStatus.RESOLVED) or report.assigned_to is not None


def is_rejected(report: ReportLike) -> bool:
    return _status(report) == ReportStatus.REJECTED


def partition_for_petugas(reports: Iterable[ReportLike]) -> dict:
    """
    Split reports into the petugas dashboard buckets.

    Each bucket is its own predicate, so a rejected report that was assigned
    shows up in both "mine" and "rejected".
    """
    reports = list(reports)
    return {
        "available": [r for r in reports if is_available(r)],
        "mine": [r for r in reports if is_handled(r)],
        "rejected": [r for r in reports if is_rejected(r)],
    }


def petugas_stats(handled: Iterable[ReportLike]) -> dict:
    handled = list(handled)
    return {
        "total": len(handled),
        "in_progress": sum(1 for r in handled if _status(r) == ReportStatus.ON_PROGRESS),
        "completed": sum(1 for r in handled if _status(r) == ReportStatus.RESOLVED),
    }
