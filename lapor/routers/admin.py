from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from lapor.core.auth import require_roles
from lapor.core.db import get_db
from lapor.models.profile import Profile, ProfileRole
from lapor.models.report import ReportStatus
from lapor.schemas.profile import ProfileOut, ProfileRoleUpdate
from lapor.schemas.report import AdminStatsOut, ReportOut
from lapor.services import reports as report_service
from lapor.services import workflow
from lapor.services.workflow import Actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# -------- Endpoints (ADMIN-only) --------
@router.get("/stats", response_model=AdminStatsOut)
def admin_stats(
    db: Session = Depends(get_db),
    _admin: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    reports = [ReportOut.from_report(r) for r in report_service.list_reports(db)]
    return {
        "reports": workflow.dashboard_stats(reports),
        "total_users": db.query(Profile).count(),
    }


@router.get("/reports", response_model=list[ReportOut])
def admin_list_reports(
    status_filter: Optional[str] = None,
    db: Session = Depends(get_db),
    _admin: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    status = None
    if status_filter:
        try:
            status = ReportStatus(status_filter)
        except ValueError:
            raise HTTPException(status_code=400, detail="Filter status tidak valid")

    return [ReportOut.from_report(r) for r in report_service.list_reports(db, status=status)]


@router.get("/profiles", response_model=list[ProfileOut])
def admin_list_profiles(
    role: Optional[ProfileRole] = None,
    db: Session = Depends(get_db),
    _admin: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    query = db.query(Profile)
    if role is not None:
        query = query.filter(Profile.role == role)
    return query.order_by(Profile.created_at.desc()).all()


@router.patch("/profiles/{profile_id}/role", response_model=ProfileOut)
def admin_change_role(
    profile_id: str,
    payload: ProfileRoleUpdate,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Profil tidak ditemukan")

    # admins are fixed; promotion to admin is not offered here
    if profile.role == ProfileRole.ADMIN:
        raise HTTPException(status_code=400, detail="Role admin tidak dapat diubah")
    if payload.role == ProfileRole.ADMIN:
        raise HTTPException(status_code=400, detail="Role hanya dapat diubah menjadi user atau petugas")

    profile.role = payload.role
    db.commit()
    db.refresh(profile)
    logger.info("Profile %s role set to %s by %s", profile.id, payload.role.value, admin.id)
    return profile
