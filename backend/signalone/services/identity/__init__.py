"""SignalOne - Identity Providers

Establishes who a user is via GitHub (OAuth code exchange) or Google
(signed ID token), then hands off to the local token service.
"""
from .github import GitHubIdentityClient
from .google import GoogleTokenVerifier, GOOGLE_ISSUERS
from .resolver import OAuthIdentityResolver

__all__ = [
    "GitHubIdentityClient",
    "GoogleTokenVerifier",
    "GOOGLE_ISSUERS",
    "OAuthIdentityResolver",
]
