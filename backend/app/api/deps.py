"""FastAPI dependencies for the API layer."""

from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session, sessionmaker

from app.core.security import decode_access_token
from app.database import get_db
from app.models import User
from app.services import NewsflashServices

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Retrieve the current user from the JWT token."""

    return get_user_from_token(token, db)


def get_user_from_token(token: str, db: Session) -> User:
    """Resolve a user from a JWT token or raise an HTTP 401 error."""

    payload = decode_access_token(token)
    sub = payload.get("sub")
    if sub is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from None

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user


def make_token_verifier(session_factory: sessionmaker[Session]) -> Callable[[str], int | None]:
    """Build the verifier used by the live channel to authenticate connections."""

    def verify_access_token(token: str) -> int | None:
        try:
            with session_factory() as db:
                return get_user_from_token(token, db).id
        except HTTPException:
            return None

    return verify_access_token


def get_services(request: Request) -> NewsflashServices:
    """Return the fan-out services created at startup."""

    return request.app.state.services
