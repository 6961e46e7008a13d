"""Authentication routes."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field

from skillpath.db.sessions import get_db
from skillpath.models.user import User
from skillpath.core.responses import ApiResponse, ok
from skillpath.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    get_current_user
)


router = APIRouter(prefix="/auth", tags=["Authentication"])


# Request/Response schemas
class RegisterRequest(BaseModel):
    full_name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=8)
    role: str = Field(default="learner", pattern="^(learner|manager)$")
    industry: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    full_name: str
    email: str
    role: str


class UserResponse(BaseModel):
    id: str
    full_name: str
    email: str
    role: str
    industry: Optional[str]
    created_at: str


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(data={"sub": str(user.id)}),
        user_id=str(user.id),
        full_name=user.full_name,
        email=user.email,
        role=user.role,
    )


@router.post("/register", response_model=ApiResponse[TokenResponse], status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new user.

    - Creates user account with hashed password
    - Returns JWT access token
    """
    existing_user = db.query(User).filter(User.email == request.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        full_name=request.full_name,
        email=request.email,
        password_hash=get_password_hash(request.password),
        role=request.role,
        industry=request.industry,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return ok(_token_response(user))


@router.post("/login", response_model=ApiResponse[TokenResponse])
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password."""
    user = db.query(User).filter(User.email == request.email).first()
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    return ok(_token_response(user))


@router.get("/me", response_model=ApiResponse[UserResponse])
def get_me(current_user: User = Depends(get_current_user)):
    """Current authenticated user."""
    return ok(UserResponse(
        id=str(current_user.id),
        full_name=current_user.full_name,
        email=current_user.email,
        role=current_user.role,
        industry=current_user.industry,
        created_at=current_user.created_at.isoformat()
    ))
