"""
SignalOne - Authentication Utilities
Local JWT issuance/verification and the bearer-token dependency
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt

from .config import Settings
from .errors import InternalError, InvalidToken, Unauthorized
from .models.domain import TokenClaims, TokenPair

logger = logging.getLogger(__name__)

# Bearer token security; missing headers are reported as Unauthorized below
security = HTTPBearer(auto_error=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Stateless signer/verifier for access and refresh tokens.

    Claims: {"exp": unix-seconds, "id": user id, "userName": display name},
    HMAC-signed with the shared secret from Settings.
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = _utcnow):
        self._secret = settings.secret_key
        self._algorithm = settings.algorithm
        self.access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_ttl = timedelta(hours=settings.refresh_token_expire_hours)
        self._clock = clock

    @property
    def expires_in(self) -> int:
        return int(self.access_ttl.total_seconds())

    def _create_token(self, user_id: str, user_name: str, ttl: timedelta) -> str:
        expire = self._clock() + ttl
        to_encode = {
            "exp": int(expire.timestamp()),
            "id": user_id,
            "userName": user_name,
        }
        try:
            return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)
        except JWTError as e:
            logger.error(f"Token signing failed: {e}")
            raise InternalError("couldn't make authentication token")

    def issue_token_pair(self, user_id: str, user_name: str) -> TokenPair:
        """Mint a fresh access/refresh pair for the given identity."""
        return TokenPair(
            access_token=self._create_token(user_id, user_name, self.access_ttl),
            refresh_token=self._create_token(user_id, user_name, self.refresh_ttl),
            expires_in=self.expires_in,
        )

    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature, structure and expiry.

        Raises InvalidToken with a uniform message; the reason is only logged.
        """
        if not token:
            logger.warning("Token verification failed: empty token")
            raise InvalidToken()
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            logger.warning("Token verification failed: token expired")
            raise InvalidToken()
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            raise InvalidToken()

        user_id = payload.get("id")
        exp = payload.get("exp")
        if not isinstance(user_id, str) or not user_id or exp is None:
            logger.warning("Token verification failed: missing id/exp claims")
            raise InvalidToken()

        return TokenClaims(
            user_id=user_id,
            user_name=str(payload.get("userName") or ""),
            expires_at=int(exp),
        )

    def verify(self, token: str) -> str:
        """Return the user id carried by a valid token."""
        return self.decode(token).user_id

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Mint a new pair from a refresh token.

        Verified exactly like an access token. The embedded identity is
        trusted as-is; whether the user still exists is the caller's call
        (see Settings.refresh_checks_user).
        """
        claims = self.decode(refresh_token)
        return self.issue_token_pair(claims.user_id, claims.user_name)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """
    Dependency resolving the caller's user id from the bearer token.
    Every failure surfaces as 401 Unauthorized.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return tokens.verify(credentials.credentials)
