from pydantic import AliasChoices, BaseModel, EmailStr, Field
from typing import Optional


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class PasswordChange(BaseModel):
    # Older clients send camelCase
    current_password: str = Field(validation_alias=AliasChoices("current_password", "currentPassword"))
    new_password: str = Field(validation_alias=AliasChoices("new_password", "newPassword"))


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str
    credits: int
    api_calls_limit: int
    api_calls_count: int
    api_token: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class LoginResponse(UserResponse):
    token: str
    token_type: str = "bearer"
