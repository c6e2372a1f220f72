"""
Google ID Token Verification

Verifies a Google-issued identity assertion against Google's published
signing certificates. Checks run in a fixed order and the first failure
aborts with its own error type:

1. header carries a key id (kid)
2. kid is present in the current certificate set      -> KeyNotFound
3. RS256 signature verifies with that key             -> SignatureInvalid
4. iss is one of the canonical Google issuers         -> InvalidIssuer
5. aud contains our client id                         -> InvalidAudience
6. exp is strictly in the future                      -> TokenExpired
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import requests
from jose import jws, jwt
from jose.exceptions import JOSEError

from ...config import Settings
from ...errors import (
    IdentityProviderError,
    InvalidAudience,
    InvalidIssuer,
    KeyNotFound,
    SignatureInvalid,
    TokenExpired,
)
from ...models.db_models import ProviderType
from ...models.domain import ProviderIdentity

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")
SIGNING_ALGORITHMS = ["RS256"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoogleTokenVerifier:
    """
    Verifier for Google ID tokens.

    The certificate set is fetched on every verification; Google rotates
    keys and this service keeps no key cache.
    """

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client_id = settings.google_client_id
        self.certs_url = settings.google_certs_url
        self.timeout = settings.http_timeout_seconds
        self.session = session or requests.Session()
        self._clock = clock

    def fetch_public_keys(self) -> Dict[str, str]:
        """Return {kid: PEM certificate} from Google's certs endpoint."""
        try:
            resp = self.session.get(self.certs_url, timeout=self.timeout)
            resp.raise_for_status()
            keys = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Fetching Google signing keys failed: {e}")
            raise IdentityProviderError("Unable to fetch Google signing keys") from e
        if not isinstance(keys, dict):
            raise IdentityProviderError("Google signing keys response is malformed")
        return keys

    def verify(self, id_token: str) -> Dict[str, Any]:
        """Run every check and return the verified claims."""
        try:
            header = jwt.get_unverified_header(id_token)
        except JOSEError as e:
            logger.warning(f"Google token rejected: malformed header ({e})")
            raise SignatureInvalid("Identity token is malformed") from e

        kid = header.get("kid")
        if not kid:
            logger.warning("Google token rejected: header has no kid")
            raise KeyNotFound()

        public_key = self.fetch_public_keys().get(kid)
        if public_key is None:
            logger.warning(f"Google token rejected: unknown kid {kid}")
            raise KeyNotFound()

        try:
            payload = jws.verify(id_token, public_key, algorithms=SIGNING_ALGORITHMS)
            claims = json.loads(payload)
        except JOSEError as e:
            logger.warning(f"Google token rejected: signature check failed ({e})")
            raise SignatureInvalid() from e
        except ValueError as e:
            logger.warning("Google token rejected: payload is not JSON")
            raise SignatureInvalid("Identity token payload is malformed") from e
        if not isinstance(claims, dict):
            raise SignatureInvalid("Identity token payload is malformed")

        if claims.get("iss") not in GOOGLE_ISSUERS:
            logger.warning(f"Google token rejected: issuer {claims.get('iss')!r}")
            raise InvalidIssuer()

        audience = claims.get("aud")
        audiences = audience if isinstance(audience, list) else [audience]
        if not self.client_id or self.client_id not in audiences:
            logger.warning(f"Google token rejected: audience {audience!r}")
            raise InvalidAudience()

        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            logger.warning("Google token rejected: missing exp")
            raise TokenExpired()
        if exp <= self._clock().timestamp():
            logger.warning("Google token rejected: expired")
            raise TokenExpired()

        return claims

    def resolve(self, id_token: str) -> ProviderIdentity:
        """Establish a provider identity from a verified ID token."""
        claims = self.verify(id_token)
        subject = claims.get("sub")
        if not subject:
            raise IdentityProviderError("Google token is missing the subject")
        user_name = claims.get("given_name") or claims.get("name") or claims.get("email") or ""
        return ProviderIdentity(
            provider=ProviderType.GOOGLE,
            provider_user_id=str(subject),
            user_name=str(user_name),
        )
