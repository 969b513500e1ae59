from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship

from lapor.core.db import Base
from lapor.models.profile import utcnow
from lapor.models.report import ReportStatus


class ReportUpdate(Base):
    __tablename__ = "report_updates"

    id = Column(String, primary_key=True)  # uuid
    report_id = Column(String, ForeignKey("reports.id", ondelete="CASCADE"), index=True, nullable=False)
    petugas_id = Column(String, ForeignKey("profiles.id"), index=True, nullable=False)

    note = Column(Text, nullable=False)
    status_update = Column(
        Enum(ReportStatus, name="report_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    report = relationship("Report", back_populates="updates")
    author = relationship("Profile", lazy="joined")
