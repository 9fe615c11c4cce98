import logging

from fastapi import APIRouter, HTTPException, status

from renobook.api.schemas.auth import LoginRequest, TokenResponse
from renobook.core.config import settings
from renobook.core.security import authenticate_admin, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest) -> TokenResponse:
    if not authenticate_admin(body.email, body.password):
        logger.warning("Failed admin login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return TokenResponse(
        access_token=create_access_token(settings.admin_email.lower()),
        expires_in=settings.access_token_expire_minutes * 60,
    )
