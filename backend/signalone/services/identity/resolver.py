"""
OAuth Identity Resolver

Both login paths converge here: the provider establishes who the user is,
the directory finds or creates the local record, and the token service
mints the local token pair.
"""
import logging

from ...auth import TokenService
from ...models.domain import ProviderIdentity, TokenPair
from ..users import UserDirectory
from .github import GitHubIdentityClient
from .google import GoogleTokenVerifier

logger = logging.getLogger(__name__)


class OAuthIdentityResolver:

    def __init__(
        self,
        github: GitHubIdentityClient,
        google: GoogleTokenVerifier,
        users: UserDirectory,
        tokens: TokenService,
    ):
        self.github = github
        self.google = google
        self.users = users
        self.tokens = tokens

    def _login(self, identity: ProviderIdentity) -> TokenPair:
        user = self.users.find_or_create(identity)
        logger.info(f"User logged in: {user.id} via {identity.provider.value}")
        return self.tokens.issue_token_pair(user.id, user.user_name)

    def login_with_github(self, code: str) -> TokenPair:
        return self._login(self.github.resolve(code))

    def login_with_google(self, id_token: str) -> TokenPair:
        return self._login(self.google.resolve(id_token))
