"""Login and current-user endpoints for CMS operators."""
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from podcast_cms.core.config import settings
from podcast_cms.core.deps import get_current_user
from podcast_cms.core.limiter import limiter
from podcast_cms.core.security import create_access_token, verify_password
from podcast_cms.db.session import get_session
from podcast_cms.models.user import User
from podcast_cms.schemas.auth import Token, UserOut
from podcast_cms.services import audit as audit_svc

router = APIRouter()


@router.post("/login", response_model=Token, summary="Exchange email and password for a bearer token")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    form: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    result = await db.execute(
        select(User).where(User.email == form.username.lower().strip(), User.deleted_at.is_(None))
    )
    user = result.scalar_one_or_none()
    if user is None or not verify_password(form.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    user.last_login_at = datetime.now(timezone.utc)
    client_ip = request.client.host if request.client else "unknown"
    await audit_svc.log_async(
        db,
        action="user.login",
        entity_type="user",
        entity_id=user.id,
        actor_id=user.id,
        actor_email=user.email,
        notes=f"Login from {client_ip}",
    )
    await db.commit()

    return Token(
        access_token=create_access_token(subject=str(user.id), role=user.role),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        role=user.role,
    )


@router.get("/me", response_model=UserOut)
async def me(current_user: Annotated[User, Depends(get_current_user)]):
    return current_user
