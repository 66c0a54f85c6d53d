"""
Authentication API routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from clanchain.core.auth import Identity, require_identity
from clanchain.core.database import get_db
from clanchain.core.exceptions import AuthenticationError
from clanchain.core.logging_config import LoggingConfig
from clanchain.models.user import Profile
from clanchain.services.auth_service import AuthService

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    """Profile registration request"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Profile response model"""
    id: str
    email: str
    full_name: Optional[str] = None
    status: str
    roles: List[str] = []
    created_at: str
    last_sign_in_at: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    user: UserResponse
    expires_at: str


def _user_response(user: Profile) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        status=user.status,
        roles=user.role_names,
        created_at=user.created_at.isoformat(),
        last_sign_in_at=user.last_sign_in_at.isoformat() if user.last_sign_in_at else None,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new profile with the default `user` role"""
    user = AuthService(db).register_user(
        email=request.email,
        password=request.password,
        full_name=request.full_name,
    )
    return _user_response(user)


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Login and issue a bearer token"""
    auth_service = AuthService(db)

    user = auth_service.authenticate(request.email, request.password)
    if not user:
        raise AuthenticationError("Invalid email or password")

    session = auth_service.create_session(user.id)
    return LoginResponse(
        token=session.token,
        user=_user_response(user),
        expires_at=session.expires_at.isoformat(),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    """Invalidate the bearer token used for this request"""
    AuthService(db).revoke_session(identity.token)
    logger.info("User logged out", extra={"user_id": identity.user_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
async def me(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    """Get current user information"""
    return _user_response(db.get(Profile, identity.user_id))
