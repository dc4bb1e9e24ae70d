import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.config import settings
from app.db.session import get_db
from app.dependencies.auth import get_current_user
from app.models.user import User, ROLE_USER
from app.schemas.auth import UserCreate, UserLogin, PasswordChange, UserResponse, LoginResponse
from app.services.api_quota import issue_api_token
from app.utils.auth import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 6


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Create a user account with the default role, credits and API quota."""
    username = user_data.username.strip()
    email = user_data.email.lower()

    existing_user = db.query(User).filter(
        or_(User.email == email, User.username == username)
    ).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists"
        )

    new_user = User(
        username=username,
        email=email,
        hashed_password=hash_password(user_data.password),
        role=ROLE_USER,
        credits=settings.DEFAULT_CREDITS,
        api_calls_limit=settings.DEFAULT_API_CALLS_LIMIT,
        api_calls_count=0,
        is_active=True
    )

    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists"
        )

    logger.info("[AUTH] Registered user %s (%s)", new_user.id, new_user.username)
    return {
        "message": "User registered successfully",
        "user_id": new_user.id
    }


@router.post("/login", response_model=LoginResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Exchange email and password for a 24 hour session token."""
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    # Checked before the password so the response says nothing about it
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    if not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    token = create_access_token(user.id, user.role)
    return LoginResponse(
        token=token,
        **UserResponse.model_validate(user).model_dump()
    )


@router.post("/change-password")
def change_password(
    password_data: PasswordChange,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    if not verify_password(password_data.current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect"
        )

    if password_data.current_password == password_data.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password cannot be the same as current password"
        )

    if len(password_data.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"New password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    user.hashed_password = hash_password(password_data.new_password)
    db.commit()

    return {
        "message": "Password updated successfully"
    }


@router.post("/generate-token")
def generate_token(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Issue a new API token for the caller; the previous token stops working."""
    issue_api_token(user, db)
    return {
        "message": "API token generated successfully",
        "user_info": UserResponse.model_validate(user).model_dump()
    }
