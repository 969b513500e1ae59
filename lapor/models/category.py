from sqlalchemy import Column, String, DateTime

from lapor.core.db import Base
from lapor.models.profile import utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)  # uuid
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
