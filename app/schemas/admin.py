from pydantic import BaseModel, Field
from typing import Optional


class AdminUserUpdate(BaseModel):
    """Fields an admin may change on a user; anything else in the body is ignored."""
    credits: Optional[int] = Field(default=None, ge=0)
    api_calls_limit: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class CreditAddRequest(BaseModel):
    amount: int
