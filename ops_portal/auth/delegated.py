"""
Delegated Identity (third-party sign-in)
=============================================================================
CONCEPT: Trust the provider's signature, not the browser

With "Sign in with Google" the browser receives an ID token: a JWT signed by
the provider. The portal must not believe the email inside it until it has
checked:

  1. SIGNATURE   the token was signed by one of the provider's published
                 keys (the JWKS document at `delegated_jwks_url`)
  2. AUDIENCE    the token was minted for THIS portal (`delegated_client_id`)
  3. ISSUER      the token came from the expected provider
  4. EXPIRY      the token is still valid
  5. email_verified   the provider has confirmed the address

Only then is the email handed to IdentityService.login_with_delegated_identity,
which applies the domain allow-list and looks the user up.

The JWKS document is fetched with httpx and cached; when a token carries a key
id that is not in the cache (the provider rotated keys) it is fetched again
once.
=============================================================================
"""

import time
from typing import Any

import httpx
from jose import JWTError, jwt

from ops_portal.config import Settings
from ops_portal.errors import AuthenticationFailure
from ops_portal.observability.logging import get_logger

logger = get_logger(__name__)


class DelegatedTokenVerifier:
    def __init__(
        self,
        jwks_url: str,
        client_id: str,
        issuers: list[str],
        algorithms: list[str],
        http_client: httpx.AsyncClient | None = None,
        cache_seconds: float = 3600.0,
    ):
        self.jwks_url = jwks_url
        self.client_id = client_id
        self.issuers = issuers
        self.algorithms = algorithms
        self.cache_seconds = cache_seconds
        self._http = http_client or httpx.AsyncClient(timeout=10.0)
        self._keys: list[dict[str, Any]] = []
        self._fetched_at: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DelegatedTokenVerifier":
        return cls(
            jwks_url=settings.delegated_jwks_url,
            client_id=settings.delegated_client_id,
            issuers=settings.delegated_issuers,
            algorithms=settings.delegated_algorithms,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _fetch_keys(self) -> list[dict[str, Any]]:
        try:
            response = await self._http.get(self.jwks_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("jwks_fetch_failed", url=self.jwks_url, error=str(e))
            raise AuthenticationFailure("The sign-in provider is unavailable. Please try again.") from e
        try:
            keys = response.json().get("keys", [])
        except (ValueError, AttributeError) as e:
            logger.warning("jwks_malformed", url=self.jwks_url)
            raise AuthenticationFailure("The sign-in provider is unavailable. Please try again.") from e
        self._keys = keys
        self._fetched_at = time.monotonic()
        return self._keys

    async def _key_for(self, kid: str | None) -> dict[str, Any]:
        stale = self._fetched_at is None or time.monotonic() - self._fetched_at > self.cache_seconds
        keys = await self._fetch_keys() if stale else self._keys
        for key in keys:
            if key.get("kid") == kid:
                return key
        if not stale:
            # Unknown kid: the provider may have rotated its keys
            for key in await self._fetch_keys():
                if key.get("kid") == kid:
                    return key
        raise AuthenticationFailure("The sign-in token was not signed by a known key.")

    async def verify(self, id_token: str) -> str:
        """
        Validate a provider ID token and return the verified email address.

        Raises AuthenticationFailure for any invalid, expired, foreign or
        unverified token.
        """
        try:
            header = jwt.get_unverified_header(id_token)
        except JWTError as e:
            raise AuthenticationFailure("The sign-in token is malformed.") from e

        key = await self._key_for(header.get("kid"))

        try:
            claims = jwt.decode(
                id_token,
                key,
                algorithms=self.algorithms,
                audience=self.client_id or None,
                options={"verify_aud": bool(self.client_id), "verify_at_hash": False},
            )
        except JWTError as e:
            logger.info("delegated_token_rejected", error=str(e))
            raise AuthenticationFailure("The sign-in token is invalid or expired.") from e

        if self.issuers and claims.get("iss") not in self.issuers:
            raise AuthenticationFailure("The sign-in token was issued by an unexpected provider.")

        email = claims.get("email")
        if not email or claims.get("email_verified") not in (True, "true"):
            raise AuthenticationFailure("The sign-in provider has not verified this email address.")

        return email
