import enum

from sqlalchemy import Column, String, DateTime, Enum, Float, Text, ForeignKey
from sqlalchemy.orm import relationship

from lapor.core.db import Base
from lapor.models.profile import utcnow


class ReportStatus(str, enum.Enum):
    OPEN = "Open"
    ON_PROGRESS = "On Progress"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"


class Report(Base):
    __tablename__ = "reports"

    id = Column(String, primary_key=True)  # uuid string

    user_id = Column(String, ForeignKey("profiles.id"), index=True, nullable=False)
    category_id = Column(String, ForeignKey("categories.id", ondelete="SET NULL"), index=True, nullable=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    location_text = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    image_url = Column(String, nullable=True)

    status = Column(
        Enum(ReportStatus, name="report_status", values_callable=lambda e: [m.value for m in e]),
        default=ReportStatus.OPEN,
        index=True,
        nullable=False,
    )
    assigned_to = Column(String, ForeignKey("profiles.id"), index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship("Category", lazy="joined")
    owner = relationship("Profile", foreign_keys=[user_id], lazy="joined")
    assignee = relationship("Profile", foreign_keys=[assigned_to], lazy="joined")
    updates = relationship(
        "ReportUpdate",
        back_populates="report",
        cascade="all, delete-orphan",
        order_by="ReportUpdate.created_at.desc()",
    )
