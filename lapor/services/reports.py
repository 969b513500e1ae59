"""
Persistence side of the report workflow.

Decisions come from `lapor.services.workflow`; this module only issues the
writes. Two things worth knowing:

* claiming is a single conditional UPDATE (status=Open AND assigned_to IS NULL),
  so concurrent claims have exactly one winner;
* a progress update is two commits (report status, then the log row). If the
  second fails the status change stays in place without its log entry.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lapor.core.errors import ClaimConflict, NotAuthorized, NotFound, PersistenceError, ValidationFailed
from lapor.models.category import Category
from lapor.models.profile import utcnow
from lapor.models.report import Report, ReportStatus
from lapor.models.report_update import ReportUpdate
from lapor.schemas.report import ReportCreate, ReportOut, ReportUpdateCreate
from lapor.services import workflow
from lapor.services.storage import save_image, validate_image
from lapor.services.workflow import Actor

logger = logging.getLogger(__name__)


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(message)
        raise PersistenceError(message) from e


def get_report(db: Session, report_id: str) -> Report:
    report = db.query(Report).filter(Report.id == report_id).first()
    if not report:
        raise NotFound("Laporan tidak ditemukan")
    return report


def list_reports(
    db: Session,
    status: Optional[ReportStatus] = None,
    user_id: Optional[str] = None,
    assigned_to: Optional[str] = None,
) -> list[Report]:
    q = db.query(Report)
    if status is not None:
        q = q.filter(Report.status == status)
    if user_id is not None:
        q = q.filter(Report.user_id == user_id)
    if assigned_to is not None:
        q = q.filter(Report.assigned_to == assigned_to)
    return q.order_by(Report.created_at.desc()).all()


def list_updates(db: Session, report_id: str) -> list[ReportUpdate]:
    return (
        db.query(ReportUpdate)
        .filter(ReportUpdate.report_id == report_id)
        .order_by(ReportUpdate.created_at.desc())
        .all()
    )


def _append_update(
    db: Session,
    report_id: str,
    actor: Actor,
    note: str,
    status: ReportStatus,
    image_url: Optional[str] = None,
) -> ReportUpdate:
    entry = ReportUpdate(
        id=str(uuid.uuid4()),
        report_id=report_id,
        petugas_id=actor.id,
        note=note,
        status_update=status,
        image_url=image_url,
    )
    db.add(entry)
    _commit(db, "Gagal menyimpan riwayat update")
    db.refresh(entry)
    return entry


def create_report(db: Session, actor: Actor, payload: ReportCreate, image: Optional[UploadFile] = None) -> Report:
    if image is not None:
        validate_image(image)

    category = db.query(Category).filter(Category.id == payload.category_id).first()
    if not category:
        raise ValidationFailed.from_errors({"category_id": "Kategori tidak ditemukan"})

    # an uploaded object stays in the bucket if the insert below fails
    image_url = save_image(image, actor.id) if image is not None else None

    report = Report(
        id=str(uuid.uuid4()),
        user_id=actor.id,
        category_id=category.id,
        title=payload.title,
        description=payload.description,
        location_text=payload.location_text,
        latitude=payload.latitude,
        longitude=payload.longitude,
        image_url=image_url,
        **workflow.initial_report_values(),
    )
    db.add(report)
    _commit(db, "Gagal membuat laporan")
    db.refresh(report)
    logger.info("Report %s created by %s", report.id, actor.id)
    return report


def claim_report(db: Session, actor: Actor, report_id: str) -> Report:
    values = workflow.claim_values(actor)
    get_report(db, report_id)

    result = db.execute(
        update(Report)
        .where(
            Report.id == report_id,
            Report.status == ReportStatus.OPEN,
            Report.assigned_to.is_(None),
        )
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    _commit(db, "Gagal mengambil laporan")

    if result.rowcount != 1:
        logger.warning("Claim of report %s by %s lost (already taken or not open)", report_id, actor.id)
        raise ClaimConflict("Gagal mengambil laporan")

    _append_update(db, report_id, actor, workflow.CLAIM_NOTE, ReportStatus.ON_PROGRESS)
    logger.info("Report %s claimed by %s", report_id, actor.id)

    db.expire_all()
    return get_report(db, report_id)


def add_progress_update(
    db: Session,
    actor: Actor,
    report_id: str,
    payload: ReportUpdateCreate,
    image: Optional[UploadFile] = None,
) -> ReportUpdate:
    status = workflow.validate_update_status(payload.status)
    if image is not None:
        validate_image(image)

    report = get_report(db, report_id)
    workflow.assert_can_update(actor, ReportOut.from_report(report))

    image_url = save_image(image, actor.id) if image is not None else None

    report.status = status
    report.updated_at = utcnow()
    _commit(db, "Gagal memperbarui status laporan")

    entry = _append_update(db, report.id, actor, payload.note, status, image_url)
    logger.info("Report %s set to %s by %s", report.id, status.value, actor.id)
    return entry


def delete_report(db: Session, actor: Actor, report_id: str) -> None:
    if not workflow.can_delete_report(actor):
        raise NotAuthorized("Hanya admin yang dapat menghapus laporan")

    report = get_report(db, report_id)
    db.delete(report)
    _commit(db, "Gagal menghapus laporan")
    logger.info("Report %s deleted by %s", report_id, actor.id)


def user_dashboard(db: Session, actor: Actor, all_reports: bool = False) -> dict:
    """Own reports by default; `all_reports` lists everyone's. Stats follow the list shown."""
    owner_id = None if all_reports else actor.id
    reports = [ReportOut.from_report(r) for r in list_reports(db, user_id=owner_id)]
    return {"stats": workflow.dashboard_stats(reports), "reports": reports}


def petugas_dashboard(db: Session) -> dict:
    reports = [ReportOut.from_report(r) for r in list_reports(db)]
    buckets = workflow.partition_for_petugas(reports)
    return {"stats": workflow.petugas_stats(buckets["mine"]), **buckets}
