from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from app.db.base import Base

TRANSACTION_ADD = "add"
TRANSACTION_SUBTRACT = "subtract"


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # Magnitude; direction is in transaction_type
    transaction_type = Column(String(20), nullable=False)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
