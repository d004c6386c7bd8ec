# pyright: reportMissingTypeStubs=false
"""
Authentication and authorization dependencies for FastAPI.

Provides the authenticated dashboard user and site ownership enforcement for
the owner-only appointment endpoints.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from core.database import get_db
from services.jwt_service import jwt_service, TokenPayload
from models import Site

logger = logging.getLogger(__name__)


class UserContext:
    """Authenticated user context extracted from JWT token."""

    def __init__(self, email: str, subject_id: str, name: str = ""):
        self.email = email
        self.subject_id = subject_id
        self.name = name

    def owns(self, site: Site) -> bool:
        """Check if the user is the owner of a site (emails compared case-insensitively)."""
        return bool(site.owner_email) and site.owner_email.lower() == self.email.lower()

    def __repr__(self) -> str:
        return f"UserContext(email='{self.email}')"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None
    return jwt_service.verify_token(credentials.credentials)


def get_current_user(
    payload: Optional[TokenPayload] = Depends(get_token_payload)
) -> UserContext:
    """Get authenticated user context from JWT token."""
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="認証が必要です"
        )
    return UserContext(email=payload.email, subject_id=payload.sub, name=payload.name)


def get_site_or_404(site_id: str, db: Session) -> Site:
    """Load a site by ID or raise 404."""
    site = db.query(Site).filter(Site.id == site_id).first()
    if not site:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="サイトが見つかりません"
        )
    return site


def get_owned_site(site_id: str, user: UserContext, db: Session) -> Site:
    """Load a site and check that the user owns it (404 when missing, 403 when not the owner)."""
    site = get_site_or_404(site_id, db)
    if not user.owns(site):
        logger.warning(f"User {user.email} attempted to access site {site_id} without ownership")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="このサイトへのアクセス権がありません"
        )
    return site


def require_site_owner(
    site_id: str = Query(..., description="サイトID"),
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Site:
    """Require the authenticated user to own the site named by the site_id query parameter."""
    return get_owned_site(site_id, user, db)
