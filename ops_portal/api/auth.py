"""
Authentication API Endpoints
=============================================================================
CONCEPT: Two ways in, one session token out

  POST /auth/login       email + password checked against the store
  POST /auth/delegated   an ID token from the third-party identity provider;
                         its verified email must belong to an allowed domain
                         AND match an existing portal user

Both return the same TokenResponse. The client sends the token back as
`Authorization: Bearer <token>`; ops_portal/auth/dependencies.py restores
the session from it on every request.

Every failed login returns the same 401 body ("Invalid credentials."), so
the response never reveals whether an email exists.

A user with status `active_temp_password` (fresh invite) gets
`mustChangePassword: true` and is expected to call
POST /auth/change-password, which returns a fresh token.
=============================================================================
"""

from fastapi import APIRouter, Depends
from pydantic import Field

from ops_portal.api.deps import get_identity, get_verifier
from ops_portal.auth.delegated import DelegatedTokenVerifier
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.identity import IdentityService
from ops_portal.auth.navigation import navigation_items
from ops_portal.auth.rbac import get_role_permissions
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import PortalModel, Role, User, UserStatus
from ops_portal.errors import AuthenticationFailure

router = APIRouter(prefix="/auth", tags=["Authentication"])


# =============================================================================
# Request/Response Schemas
# =============================================================================
class LoginRequest(PortalModel):
    email: str
    password: str


class DelegatedLoginRequest(PortalModel):
    id_token: str


class ChangePasswordRequest(PortalModel):
    new_password: str


class PublicUser(PortalModel):
    """A User without its credential."""
    user_id: str
    name: str
    email: str
    role: Role
    status: UserStatus
    last_login_at: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls.model_validate(user.model_dump(exclude={"password_hash"}))


class TokenResponse(PortalModel):
    access_token: str
    token_type: str = "bearer"
    user: PublicUser
    must_change_password: bool = False


class NavEntry(PortalModel):
    name: str
    path: str


class MeResponse(PortalModel):
    user: PublicUser
    permissions: dict[str, dict[str, bool]] = Field(default_factory=dict)
    navigation: list[NavEntry] = Field(default_factory=list)


def _token_response(session: SessionContext) -> TokenResponse:
    user = session.require_principal()
    return TokenResponse(
        access_token=session.token,
        user=PublicUser.from_user(user),
        must_change_password=user.status == UserStatus.ACTIVE_TEMP_PASSWORD,
    )


# =============================================================================
# Endpoints
# =============================================================================
@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Sign in with email and password",
    responses={401: {"description": "Invalid credentials"}},
)
async def login(
    body: LoginRequest,
    session: SessionContext = Depends(get_session),
    identity: IdentityService = Depends(get_identity),
) -> TokenResponse:
    user = await identity.login_with_password(session, body.email, body.password)
    if user is None:
        raise AuthenticationFailure()
    return _token_response(session)


@router.post(
    "/delegated",
    response_model=TokenResponse,
    summary="Sign in with a third-party ID token",
    responses={401: {"description": "Token invalid, domain not allowed, or no such user"}},
)
async def delegated_login(
    body: DelegatedLoginRequest,
    session: SessionContext = Depends(get_session),
    identity: IdentityService = Depends(get_identity),
    verifier: DelegatedTokenVerifier = Depends(get_verifier),
) -> TokenResponse:
    email = await verifier.verify(body.id_token)
    user = await identity.login_with_delegated_identity(session, email)
    if user is None:
        raise AuthenticationFailure()
    return _token_response(session)


@router.post("/logout", summary="Sign out")
async def logout(
    session: SessionContext = Depends(get_session),
    identity: IdentityService = Depends(get_identity),
):
    # Tokens are stateless; the client discards its copy
    identity.sign_out(session)
    return {"status": "signed_out"}


@router.get("/me", response_model=MeResponse, summary="The signed-in user and what they may do")
async def me(session: SessionContext = Depends(get_session)) -> MeResponse:
    user = session.require_principal()
    return MeResponse(
        user=PublicUser.from_user(user),
        permissions=get_role_permissions(user.role),
        navigation=[NavEntry(name=item.name, path=item.path) for item in navigation_items(user.role)],
    )


@router.post("/change-password", response_model=TokenResponse, summary="Replace your password")
async def change_password(
    body: ChangePasswordRequest,
    session: SessionContext = Depends(get_session),
    identity: IdentityService = Depends(get_identity),
) -> TokenResponse:
    await identity.change_password(session, body.new_password)
    return _token_response(session)
