"""
Session Context
=============================================================================
CONCEPT: Explicit session ownership

A SessionContext holds the signed-in principal for ONE request (API) or
one interactive session (scripts, tests). It is created by whoever handles
the request and passed down to identity, RBAC and workflow calls; nothing
reads "the current user" from a global.

    session = SessionContext(adapter, settings)
    await session.restore(bearer_token)      # from the Authorization header
    principal = session.require_principal()  # AuthenticationFailure if none

LIFECYCLE:
    restore(token)   verify the JWT, reload the user from the store
    establish(user)  after a successful login: issue a token
    refresh(user)    after the user's own record changed (password change)
    clear()          sign-out

The principal is a snapshot of the User row as of restore/establish/refresh.
=============================================================================
"""

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.jwt import create_session_token, verify_token
from ops_portal.config import Settings
from ops_portal.domain.entities import User, UserStatus
from ops_portal.errors import AuthenticationFailure
from ops_portal.observability.logging import get_logger

logger = get_logger(__name__)


class SessionContext:
    def __init__(self, adapter: DataAdapter, settings: Settings | None = None):
        self.adapter = adapter
        # None: the process-wide settings sign and verify tokens
        self.settings = settings
        self.principal: User | None = None
        self.token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    async def restore(self, token: str) -> User | None:
        """
        Rebuild the session from a session token.

        The token only names the user; role and status come from the store,
        so a deactivated or deleted account loses access on its next request.
        """
        try:
            claims = verify_token(token, self.settings)
        except ValueError as e:
            logger.info("session_token_rejected", reason=str(e))
            self.clear()
            return None

        email = claims.get("email")
        user = await self.adapter.get_user_by_email(email) if email else None
        if user is None or user.user_id != claims["sub"] or user.status == UserStatus.INACTIVE:
            logger.info("session_user_unavailable", user_id=claims["sub"])
            self.clear()
            return None

        self.principal = user
        self.token = token
        return user

    def establish(self, user: User) -> str:
        self.principal = user
        self.token = create_session_token(user, settings=self.settings)
        return self.token

    def refresh(self, user: User) -> str:
        """Replace the principal snapshot and re-issue the token."""
        return self.establish(user)

    def clear(self) -> None:
        self.principal = None
        self.token = None

    def require_principal(self) -> User:
        if self.principal is None:
            raise AuthenticationFailure("You must be signed in to do that.")
        return self.principal
