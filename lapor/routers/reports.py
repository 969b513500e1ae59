from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from lapor.core.auth import get_actor, require_roles
from lapor.core.db import get_db
from lapor.core.errors import ValidationFailed, field_errors
from lapor.models.profile import ProfileRole
from lapor.schemas.report import (
    ReportCreate,
    ReportDetailOut,
    ReportOut,
    ReportUpdateCreate,
    ReportUpdateOut,
    UserDashboardOut,
)
from lapor.services import reports as report_service
from lapor.services import workflow
from lapor.services.workflow import Actor

router = APIRouter(prefix="/reports", tags=["reports"])


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _present(upload: Optional[UploadFile]) -> Optional[UploadFile]:
    # browsers send an empty part when no file was picked
    if upload is None or not upload.filename:
        return None
    return upload


def _parse(model, **data):
    try:
        return model(**data)
    except ValidationError as e:
        raise ValidationFailed.from_errors(field_errors(e.errors()))


@router.post("", response_model=ReportOut, status_code=201)
def create_report(
    title: str = Form(...),
    description: str = Form(...),
    category_id: str = Form(...),
    location_text: str = Form(...),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(ProfileRole.USER)),
):
    payload = _parse(
        ReportCreate,
        title=title,
        description=description,
        category_id=category_id,
        location_text=location_text,
        latitude=_blank_to_none(latitude),
        longitude=_blank_to_none(longitude),
    )
    report = report_service.create_report(db, actor, payload, _present(image))
    return ReportOut.from_report(report)


@router.get("/dashboard", response_model=UserDashboardOut)
def user_dashboard(
    view_all: bool = Query(False, alias="all"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(ProfileRole.USER)),
):
    return report_service.user_dashboard(db, actor, all_reports=view_all)


@router.get("/{report_id}", response_model=ReportDetailOut)
def get_report_detail(
    report_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    report = ReportOut.from_report(report_service.get_report(db, report_id))
    updates = [ReportUpdateOut.from_update(u) for u in report_service.list_updates(db, report_id)]
    return {
        "report": report,
        "updates": updates,
        "can_update": workflow.can_update_report(actor, report),
    }


@router.get("/{report_id}/updates", response_model=list[ReportUpdateOut])
def get_report_updates(
    report_id: str,
    db: Session = Depends(get_db),
    _actor: Actor = Depends(get_actor),
):
    report_service.get_report(db, report_id)  # 404 for unknown ids
    return [ReportUpdateOut.from_update(u) for u in report_service.list_updates(db, report_id)]


@router.post("/{report_id}/claim", response_model=ReportOut)
def claim_report(
    report_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(ProfileRole.PETUGAS)),
):
    return ReportOut.from_report(report_service.claim_report(db, actor, report_id))


@router.post("/{report_id}/updates", response_model=ReportUpdateOut, status_code=201)
def add_report_update(
    report_id: str,
    status: str = Form(...),
    note: str = Form(...),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(ProfileRole.PETUGAS, ProfileRole.ADMIN)),
):
    payload = _parse(ReportUpdateCreate, status=status, note=note)
    entry = report_service.add_progress_update(db, actor, report_id, payload, _present(image))
    return ReportUpdateOut.from_update(entry)


@router.delete("/{report_id}")
def delete_report(
    report_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    report_service.delete_report(db, actor, report_id)
    return {"ok": True}
