import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from framebook.core.config import settings
from framebook.core.metrics import RATE_LIMITED_REQUESTS
from framebook.core.rate_limiter import RateLimiter, RateLimitScope, rule_for
from framebook.core.security import decode_access_token
from framebook.db.models import User
from framebook.db.session import get_db

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    unauthorized_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user_id = decode_access_token(token)
    except ValueError:
        raise unauthorized_exc from None

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise unauthorized_exc
    return user


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(limiter: RateLimiter, scope: RateLimitScope, subject: str | int) -> None:
    decision = limiter.hit(rule_for(scope, settings), str(subject))
    if decision.allowed:
        return

    RATE_LIMITED_REQUESTS.labels(scope=scope.value).inc()
    logger.warning("rate_limited scope=%s subject=%s retry_after=%s", scope.value, subject, decision.retry_after)
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests. Please try again later.",
        headers={"Retry-After": str(decision.retry_after)},
    )
