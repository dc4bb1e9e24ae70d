from datetime import datetime, timedelta
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, UniqueConstraint, and_, func, or_
from sqlalchemy.orm import relationship
from app.core.intervals import INTERVAL_SECONDS
from app.db.base import Base


class MonitoredDomain(Base):
    __tablename__ = "monitored_domains"
    __table_args__ = (
        UniqueConstraint("user_id", "domain", name="uq_monitored_domains_user_domain"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    domain = Column(String(255), nullable=False)
    status = Column(Boolean, nullable=True)  # None until the first check completes
    check_interval = Column(Integer, nullable=False, default=3600)  # Seconds
    credits_per_check = Column(Integer, nullable=False, default=1)
    last_checked = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="domains")
    history = relationship(
        "DomainHistory",
        back_populates="domain",
        cascade="all, delete-orphan",
    )

    def is_due(self, now: datetime) -> bool:
        # A new domain's first window is covered by the credit charged when it was added:
        # added at 12:00 with a 5min interval, it is not due at 12:02 and is due at 12:05
        anchor = self.last_checked or self.created_at
        if anchor is None:
            return True
        return (now - anchor).total_seconds() >= self.check_interval

    @classmethod
    def due_clause(cls, now: datetime):
        """
        SQL form of is_due. One condition per interval in the table keeps the
        comparison a plain datetime bound on every backend; rows with an interval
        outside the table (or no anchor at all) are left for is_due to decide.
        """
        anchor = func.coalesce(cls.last_checked, cls.created_at)
        known = list(INTERVAL_SECONDS.values())
        return or_(
            *[
                and_(cls.check_interval == seconds, anchor <= now - timedelta(seconds=seconds))
                for seconds in known
            ],
            ~cls.check_interval.in_(known),
            anchor.is_(None)
        )
