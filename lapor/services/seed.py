import logging
import uuid

from sqlalchemy.orm import Session

from lapor.core.config import settings
from lapor.core.security import hash_password
from lapor.models.category import Category
from lapor.models.profile import Profile, ProfileRole

logger = logging.getLogger(__name__)


def seed_categories(db: Session):
    # Only seed if no categories exist
    if db.query(Category).count() > 0:
        return

    db.add_all([Category(id=str(uuid.uuid4()), name=name) for name in settings.SEED_CATEGORIES])
    db.commit()
    logger.info("Seeded %d categories", len(settings.SEED_CATEGORIES))


def seed_admin(db: Session):
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return

    email = settings.ADMIN_EMAIL.strip().lower()
    if db.query(Profile).filter(Profile.email == email).first():
        return

    db.add(
        Profile(
            id=str(uuid.uuid4()),
            name=settings.ADMIN_NAME,
            email=email,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role=ProfileRole.ADMIN,
        )
    )
    db.commit()
    logger.info("Seeded admin profile %s", email)


def seed_defaults(db: Session):
    seed_categories(db)
    seed_admin(db)
