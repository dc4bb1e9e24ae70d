from app.models.user import User
from app.models.monitored_domain import MonitoredDomain
from app.models.domain_history import DomainHistory
from app.models.credit_transaction import CreditTransaction

__all__ = [
    "User",
    "MonitoredDomain",
    "DomainHistory",
    "CreditTransaction"
]
