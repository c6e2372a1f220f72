"""
GitHub OAuth Identity

Exchanges an authorization code for a provider access token, then fetches
the authenticated user's profile. One inline attempt per call: no retries,
no caching. Any transport, HTTP or JSON failure is an IdentityProviderError.
"""
import logging
from typing import Any, Dict, Optional

import requests

from ...config import Settings
from ...errors import IdentityProviderError
from ...models.db_models import ProviderType
from ...models.domain import ProviderIdentity

logger = logging.getLogger(__name__)


class GitHubIdentityClient:
    """
    Client for the GitHub OAuth web flow.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.client_id = settings.github_client_id
        self.client_secret = settings.github_client_secret
        self.token_url = settings.github_token_url
        self.api_url = settings.github_api_url.rstrip("/")
        self.timeout = settings.http_timeout_seconds
        self.session = session or requests.Session()

    def _json(self, resp: requests.Response, what: str) -> Dict[str, Any]:
        try:
            resp.raise_for_status()
            data = resp.json()
        except requests.HTTPError as e:
            logger.warning(f"GitHub {what} failed: HTTP {resp.status_code}")
            raise IdentityProviderError(f"GitHub {what} failed") from e
        except ValueError as e:
            logger.warning(f"GitHub {what} returned malformed JSON")
            raise IdentityProviderError(f"GitHub {what} returned malformed response") from e
        if not isinstance(data, dict):
            raise IdentityProviderError(f"GitHub {what} returned malformed response")
        return data

    def exchange_code(self, code: str) -> str:
        """Trade an authorization code for a GitHub access token."""
        if not code:
            raise IdentityProviderError("Missing authorization code")
        try:
            resp = self.session.post(
                self.token_url,
                json={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                },
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"GitHub token exchange failed: {e}")
            raise IdentityProviderError("GitHub token exchange failed") from e

        data = self._json(resp, "token exchange")
        access_token = data.get("access_token")
        if not access_token:
            # GitHub answers 200 with {"error": "bad_verification_code"} for replayed codes
            logger.warning(f"GitHub token exchange rejected: {data.get('error', 'no access_token')}")
            raise IdentityProviderError(
                data.get("error_description") or "GitHub rejected the authorization code"
            )
        return access_token

    def fetch_user(self, access_token: str) -> Dict[str, Any]:
        """Fetch the profile of the user owning access_token."""
        try:
            resp = self.session.get(
                f"{self.api_url}/user",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"GitHub profile fetch failed: {e}")
            raise IdentityProviderError("GitHub profile fetch failed") from e
        return self._json(resp, "profile fetch")

    def resolve(self, code: str) -> ProviderIdentity:
        """Establish a provider identity from an authorization code."""
        profile = self.fetch_user(self.exchange_code(code))
        user_id = profile.get("id")
        if user_id is None or isinstance(user_id, bool):
            raise IdentityProviderError("GitHub profile is missing the user id")
        return ProviderIdentity(
            provider=ProviderType.GITHUB,
            provider_user_id=str(user_id),
            user_name=str(profile.get("login") or ""),
        )
