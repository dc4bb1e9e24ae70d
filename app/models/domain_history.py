from datetime import datetime
from sqlalchemy import Column, Integer, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from app.db.base import Base


class DomainHistory(Base):
    """One completed check of a monitored domain. Rows are never updated."""
    __tablename__ = "domain_history"

    id = Column(Integer, primary_key=True, index=True)
    domain_id = Column(Integer, ForeignKey("monitored_domains.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Boolean, nullable=False)
    credits_used = Column(Integer, nullable=False)
    checked_at = Column(DateTime, default=datetime.utcnow, index=True)

    domain = relationship("MonitoredDomain", back_populates="history")
