"""
Identity Service: login, credential change, sign-out
=============================================================================
CONCEPT: Two ways in, one session out

  PASSWORD
    1. normalize the email (trim + lower)
    2. look the user up through the adapter
    3. reject unknown, inactive, or wrong-secret attempts with the SAME
       result (None), so a caller cannot probe which emails exist
    4. stamp lastLoginAt, establish the session

  DELEGATED (third-party sign-in)
    The provider token has already been verified by DelegatedTokenVerifier.
    1. the email DOMAIN must be on the allow-list; otherwise stop before
       touching the store
    2. the user must already exist: this path never creates accounts
    3. stamp lastLoginAt, establish the session

CONCEPT: Legacy secrets

Older store rows hold the secret verbatim; rows written by this service hold
a bcrypt hash. passlib's CryptContext recognises both: a value starting with
"$2b$" is checked as bcrypt, anything else is compared verbatim in constant
time. Changing a password always writes a bcrypt hash.
=============================================================================
"""

from passlib.context import CryptContext

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.domain.entities import User, UserStatus, normalize_email, utc_now_iso
from ops_portal.errors import StoreNotImplemented, ValidationFailure
from ops_portal.observability.logging import get_logger
from ops_portal.observability.metrics import record_login

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt", "plaintext"], deprecated=["plaintext"])


def hash_password(password: str) -> str:
    # bcrypt is the default (first) scheme
    return pwd_context.hash(password)


def verify_password(password: str, stored: str) -> bool:
    if not stored:
        return False
    try:
        return pwd_context.verify(password, stored)
    except ValueError:
        # Corrupt hash in the store: treat as a failed attempt
        logger.warning("password_hash_unreadable")
        return False


def email_domain(email: str) -> str:
    _, at, domain = normalize_email(email).rpartition("@")
    return domain if at else ""


class IdentityService:
    def __init__(self, adapter: DataAdapter, settings: Settings):
        self.adapter = adapter
        self.settings = settings

    async def _stamp_last_login(self, user: User) -> User:
        timestamp = utc_now_iso()
        try:
            await self.adapter.update_user_last_login(user.user_id, timestamp)
        except StoreNotImplemented:
            # Read-only stores still allow sign-in
            logger.warning("last_login_not_recorded", user_id=user.user_id, adapter=self.adapter.kind)
        return user.model_copy(update={"last_login_at": timestamp})

    async def login_with_password(
        self, session: SessionContext, email: str, password: str
    ) -> User | None:
        """Returns the signed-in user, or None when the credentials do not match."""
        user = await self.adapter.get_user_by_email(normalize_email(email))

        if user is None or user.status == UserStatus.INACTIVE:
            record_login("password", "failure")
            return None
        if not verify_password(password, user.password_hash):
            record_login("password", "failure")
            return None

        user = await self._stamp_last_login(user)
        session.establish(user)
        record_login("password", "success")
        logger.info("user_logged_in", user_id=user.user_id, method="password")
        return user

    async def login_with_delegated_identity(self, session: SessionContext, email: str) -> User | None:
        """
        Sign in a user whose email a third-party provider has verified.

        Returns None when the domain is not allowed (no store call is made),
        when no portal user has this email, or when the account is inactive.
        """
        allowed = {domain.lower() for domain in self.settings.delegated_login_allowed_domains}
        domain = email_domain(email)
        if not domain or domain not in allowed:
            record_login("delegated", "domain_blocked")
            logger.info("delegated_login_domain_blocked", domain=domain)
            return None

        user = await self.adapter.get_user_by_email(normalize_email(email))
        if user is None or user.status == UserStatus.INACTIVE:
            record_login("delegated", "failure")
            return None

        user = await self._stamp_last_login(user)
        session.establish(user)
        record_login("delegated", "success")
        logger.info("user_logged_in", user_id=user.user_id, method="delegated")
        return user

    async def change_password(self, session: SessionContext, new_password: str) -> User:
        """
        Replace the signed-in user's secret and clear the temporary-password
        status. The session snapshot and token are refreshed.
        """
        principal = session.require_principal()
        if len(new_password) < self.settings.password_min_length:
            raise ValidationFailure(
                f"Password must be at least {self.settings.password_min_length} characters."
            )

        password_hash = hash_password(new_password)
        await self.adapter.update_user(
            principal.user_id,
            {"password_hash": password_hash, "status": UserStatus.ACTIVE},
        )
        updated = principal.model_copy(update={"password_hash": password_hash, "status": UserStatus.ACTIVE})
        session.refresh(updated)
        logger.info("password_changed", user_id=principal.user_id)
        return updated

    def sign_out(self, session: SessionContext) -> None:
        if session.principal is not None:
            logger.info("user_logged_out", user_id=session.principal.user_id)
        session.clear()
