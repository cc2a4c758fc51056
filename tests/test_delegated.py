"""Provider ID-token verification with a JWKS served over httpx.MockTransport."""

import base64
import time

import httpx
import pytest
from jose import jwt

from ops_portal.auth.delegated import DelegatedTokenVerifier
from ops_portal.errors import AuthenticationFailure

SECRET = "provider-signing-secret-for-tests"
CLIENT_ID = "portal-client.apps.test"
ISSUER = "https://accounts.google.com"


def _jwk(kid: str, secret: str = SECRET) -> dict:
    encoded = base64.urlsafe_b64encode(secret.encode()).rstrip(b"=").decode()
    return {"kty": "oct", "kid": kid, "alg": "HS256", "k": encoded}


def _id_token(kid: str = "key-1", secret: str = SECRET, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": ISSUER,
        "aud": CLIENT_ID,
        "sub": "1234567890",
        "email": "tom@creooglobal.com",
        "email_verified": True,
        "iat": now,
        "exp": now + 600,
    }
    claims.update(overrides)
    return jwt.encode(claims, secret, algorithm="HS256", headers={"kid": kid})


class JwksServer:
    def __init__(self, *key_sets):
        self.key_sets = list(key_sets)
        self.fetches = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        keys = self.key_sets[min(self.fetches, len(self.key_sets) - 1)]
        self.fetches += 1
        return httpx.Response(200, json={"keys": keys})


def _verifier(server: JwksServer) -> DelegatedTokenVerifier:
    return DelegatedTokenVerifier(
        jwks_url="https://provider.test/certs",
        client_id=CLIENT_ID,
        issuers=[ISSUER],
        algorithms=["HS256"],
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(server.handler)),
    )


class TestDelegatedTokenVerifier:
    async def test_valid_token_returns_email(self):
        server = JwksServer([_jwk("key-1")])
        verifier = _verifier(server)

        assert await verifier.verify(_id_token()) == "tom@creooglobal.com"
        assert await verifier.verify(_id_token()) == "tom@creooglobal.com"
        assert server.fetches == 1
        await verifier.aclose()

    async def test_rotated_key_triggers_refetch(self):
        server = JwksServer([_jwk("key-1")], [_jwk("key-1"), _jwk("key-2", "rotated-secret-value")])
        verifier = _verifier(server)
        await verifier.verify(_id_token())

        email = await verifier.verify(_id_token(kid="key-2", secret="rotated-secret-value"))

        assert email == "tom@creooglobal.com"
        assert server.fetches == 2
        await verifier.aclose()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"aud": "someone-else"},
            {"iss": "https://evil.example"},
            {"exp": int(time.time()) - 60},
            {"email_verified": False},
            {"email": ""},
        ],
    )
    async def test_rejected_claims(self, overrides):
        verifier = _verifier(JwksServer([_jwk("key-1")]))
        with pytest.raises(AuthenticationFailure):
            await verifier.verify(_id_token(**overrides))
        await verifier.aclose()

    async def test_wrong_signature(self):
        verifier = _verifier(JwksServer([_jwk("key-1")]))
        with pytest.raises(AuthenticationFailure):
            await verifier.verify(_id_token(secret="not-the-provider-secret"))
        await verifier.aclose()

    async def test_unknown_key_id(self):
        verifier = _verifier(JwksServer([_jwk("key-1")]))
        with pytest.raises(AuthenticationFailure):
            await verifier.verify(_id_token(kid="key-9"))
        await verifier.aclose()

    async def test_malformed_token(self):
        verifier = _verifier(JwksServer([_jwk("key-1")]))
        with pytest.raises(AuthenticationFailure):
            await verifier.verify("definitely-not-a-jwt")
        await verifier.aclose()

    async def test_provider_down(self):
        verifier = DelegatedTokenVerifier(
            jwks_url="https://provider.test/certs",
            client_id=CLIENT_ID,
            issuers=[ISSUER],
            algorithms=["HS256"],
            http_client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(503))
            ),
        )
        with pytest.raises(AuthenticationFailure):
            await verifier.verify(_id_token())
        await verifier.aclose()

    async def test_provider_returns_non_json(self):
        verifier = DelegatedTokenVerifier(
            jwks_url="https://provider.test/certs",
            client_id=CLIENT_ID,
            issuers=[ISSUER],
            algorithms=["HS256"],
            http_client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>login</html>"))
            ),
        )
        with pytest.raises(AuthenticationFailure):
            await verifier.verify(_id_token())
        await verifier.aclose()
