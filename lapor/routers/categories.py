import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lapor.core.auth import get_actor, require_roles
from lapor.core.db import get_db
from lapor.core.errors import NotFound
from lapor.models.category import Category
from lapor.models.profile import ProfileRole
from lapor.models.report import Report
from lapor.schemas.category import CategoryIn, CategoryOut
from lapor.services.workflow import Actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


def _get_category(db: Session, category_id: str) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFound("Kategori tidak ditemukan")
    return category


@router.get("", response_model=list[CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    _actor: Actor = Depends(get_actor),
):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryIn,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    category = Category(id=str(uuid.uuid4()), name=payload.name)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Category %r created by %s", category.name, admin.id)
    return category


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: str,
    payload: CategoryIn,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    category = _get_category(db, category_id)
    category.name = payload.name
    db.commit()
    db.refresh(category)
    logger.info("Category %s renamed to %r by %s", category.id, category.name, admin.id)
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(ProfileRole.ADMIN)),
):
    category = _get_category(db, category_id)

    # reports outlive their category
    db.query(Report).filter(Report.category_id == category.id).update(
        {Report.category_id: None}, synchronize_session=False
    )
    db.delete(category)
    db.commit()
    logger.info("Category %s deleted by %s", category_id, admin.id)
    return {"ok": True}
