import logging

from fastapi import APIRouter, Depends

from tutorpress.auth.dependencies import get_store
from tutorpress.auth.security import create_access_token, verify_password
from tutorpress.exceptions import UnauthorizedException
from tutorpress.schemas.auth import TokenRequest, TokenResponse
from tutorpress.services.store import WordPressStore

logger = logging.getLogger(__name__)


def issue_token(credentials: TokenRequest, store: WordPressStore = Depends(get_store)):
    """Authenticate a WordPress user and return a bearer token"""
    user = store.get_user_by_login_or_email(credentials.username)

    if not user or not verify_password(credentials.password, user.user_pass):
        logger.warning("Failed login for %s", credentials.username)
        raise UnauthorizedException(code="invalid_credentials", message="Invalid username or password")

    access_token = create_access_token({"sub": str(user.id)})
    logger.info("Issued token for user %s", user.id)
    return TokenResponse(access_token=access_token, user_id=user.id)


def build_router() -> APIRouter:
    router = APIRouter(prefix="/auth", tags=["Authentication"])
    router.add_api_route("/token", issue_token, methods=["POST"], response_model=TokenResponse)
    return router
