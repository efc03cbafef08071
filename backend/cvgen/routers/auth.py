"""Auth router — registration, login, and user info."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cvgen.database import get_db
from cvgen.models.user import User
from cvgen.schemas.auth import RegisterRequest, LoginRequest, TokenResponse, UserResponse
from cvgen.middleware.auth import (
    hash_password,
    verify_password,
    create_access_token,
    get_current_user,
)
from cvgen.services.notifications import notify_welcome

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        displayName=user.display_name,
        subscriptionType=user.subscription_type,
        createdAt=user.created_at.isoformat(),
    )


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user and send the welcome email in the background."""
    email = req.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(req.password),
        display_name=req.displayName,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    notify_welcome(user.email, user.display_name)
    return _user_response(user)


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    user = db.query(User).filter(User.email == req.email.strip().lower()).first()
    if not user or not verify_password(req.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info."""
    return _user_response(current_user)
