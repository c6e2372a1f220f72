"""
SignalOne - Authentication Router
GitHub and Google login plus token refresh.
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..auth import TokenService, get_settings, get_token_service
from ..config import Settings
from ..database import get_db
from ..errors import InvalidToken
from ..models.api import CamelModel
from ..models.domain import TokenPair
from ..services.identity import OAuthIdentityResolver
from ..services.users import UserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class GithubTokenRequest(CamelModel):
    code: str


class GoogleTokenRequest(CamelModel):
    id_token: str


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class TokenResponse(CamelModel):
    message: str = "Success"
    access_token: str
    refresh_token: str
    expires_in: int

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenResponse":
        return cls(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_in=pair.expires_in,
        )


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_identity_resolver(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> OAuthIdentityResolver:
    state = request.app.state
    return OAuthIdentityResolver(
        github=state.github_client,
        google=state.google_verifier,
        users=UserDirectory(db),
        tokens=tokens,
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/github", response_model=TokenResponse)
def login_with_github(
    request: GithubTokenRequest,
    resolver: OAuthIdentityResolver = Depends(get_identity_resolver),
):
    """Exchange a GitHub authorization code for a local token pair."""
    return TokenResponse.from_pair(resolver.login_with_github(request.code))


@router.post("/google", response_model=TokenResponse)
def login_with_google(
    request: GoogleTokenRequest,
    resolver: OAuthIdentityResolver = Depends(get_identity_resolver),
):
    """Verify a Google ID token and return a local token pair."""
    return TokenResponse.from_pair(resolver.login_with_google(request.id_token))


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: RefreshTokenRequest,
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    """
    Mint a new token pair from a refresh token.

    With REFRESH_CHECKS_USER enabled the embedded user must still exist.
    """
    if settings.refresh_checks_user:
        claims = tokens.decode(request.refresh_token)
        if UserDirectory(db).get(claims.user_id) is None:
            logger.warning(f"Refresh rejected: user {claims.user_id} no longer exists")
            raise InvalidToken()
    return TokenResponse.from_pair(tokens.refresh(request.refresh_token))
