from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from framebook.api.deps import client_ip, enforce_rate_limit, get_rate_limiter
from framebook.core.rate_limiter import RateLimiter, RateLimitScope
from framebook.db.session import get_db
from framebook.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from framebook.schemas.user import UserResponse
from framebook.services.auth_service import login_user, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    db: Session = Depends(get_db),
) -> UserResponse:
    enforce_rate_limit(limiter, RateLimitScope.REGISTER, client_ip(request))
    user = register_user(payload=payload, db=db)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
def login(
    payload: LoginRequest,
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    db: Session = Depends(get_db),
) -> TokenResponse:
    enforce_rate_limit(limiter, RateLimitScope.LOGIN, client_ip(request))
    return login_user(payload=payload, db=db)
