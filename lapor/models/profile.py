import enum
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Enum

from lapor.core.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProfileRole(str, enum.Enum):
    USER = "user"
    PETUGAS = "petugas"
    ADMIN = "admin"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)  # uuid string
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(
        Enum(ProfileRole, name="profile_role", values_callable=lambda e: [m.value for m in e]),
        default=ProfileRole.USER,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
