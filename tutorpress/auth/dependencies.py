from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from tutorpress.database import get_db
from tutorpress.auth.capabilities import CurrentUser, load_current_user
from tutorpress.auth.security import verify_token
from tutorpress.exceptions import UnauthorizedException
from tutorpress.services.store import WordPressStore

security = HTTPBearer(auto_error=False)


def get_store(db: Session = Depends(get_db)) -> WordPressStore:
    """Dependency wrapping the request's session in a WordPressStore"""
    return WordPressStore(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    store: WordPressStore = Depends(get_store),
) -> Optional[CurrentUser]:
    """
    Resolve the bearer token to a WordPress user.

    Anonymous requests resolve to None; each endpoint decides whether that is
    a 401 or a 403, as the WordPress permission callbacks did.
    """
    if credentials is None:
        return None

    payload = verify_token(credentials.credentials, expected_type="access")
    if payload is None:
        raise UnauthorizedException(code="invalid_token", message="Invalid or expired token")

    user_id = payload.get("sub")
    if user_id is None:
        raise UnauthorizedException(code="invalid_token", message="Invalid token payload")

    user = store.get_user(user_id)
    if user is None:
        raise UnauthorizedException(code="invalid_token", message="User not found")

    return load_current_user(store, user)


async def require_logged_in(
    current_user: Optional[CurrentUser] = Depends(get_current_user),
) -> CurrentUser:
    """Dependency for endpoints that answer 401 to anonymous callers"""
    if current_user is None:
        raise UnauthorizedException()
    return current_user
