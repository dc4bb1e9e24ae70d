from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(20), default=ROLE_USER, nullable=False)
    credits = Column(Integer, default=100, nullable=False)
    api_calls_limit = Column(Integer, default=1000, nullable=False)
    api_calls_count = Column(Integer, default=0, nullable=False)
    api_calls_reset_at = Column(DateTime, nullable=True)  # End of the current API quota window
    api_token = Column(String(64), unique=True, index=True, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    domains = relationship(
        "MonitoredDomain",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="MonitoredDomain.id",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
