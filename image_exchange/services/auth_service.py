import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from itsdangerous import BadSignature, URLSafeSerializer

from ..errors import Unauthorized
from ..models.auth import AuthToken, Identity
from ..utils.logging import logger

TOKEN_SALT = "auth-token"


class AuthService:
    """Issues and verifies signed, expiring login tokens.

    There is exactly one accepted credential pair. Tokens cannot be revoked;
    they stop working once ``exp`` has passed.
    """

    def __init__(
        self,
        username: str,
        password: str,
        secret_key: Optional[str] = None,
        token_ttl: timedelta = timedelta(hours=72),
    ) -> None:
        if not secret_key:
            logger.log_warning("auth_secret_generated", {
                "detail": "AUTH_SECRET_KEY not set; tokens will not survive a restart"
            })
            secret_key = secrets.token_hex(32)

        self._username = username
        self._password = password
        self.token_ttl = token_ttl
        self._serializer = URLSafeSerializer(secret_key, salt=TOKEN_SALT)

    def login(self, username: str, password: str, now: Optional[datetime] = None) -> AuthToken:
        user_ok = secrets.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        password_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        if not (user_ok and password_ok):
            logger.log_error("login_failed", {"username": username})
            raise Unauthorized("invalid credentials")

        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + self.token_ttl
        token = self._serializer.dumps({
            "sub": username,
            "admin": True,
            "exp": int(expires_at.timestamp()),
        })

        logger.log_step("login_succeeded", {
            "username": username,
            "expires_at": expires_at.isoformat()
        })
        return AuthToken(token=token, expires_at=expires_at)

    def authenticate(self, token: str, now: Optional[datetime] = None) -> Identity:
        try:
            claims = self._serializer.loads(token)
        except BadSignature as exc:
            logger.log_error("token_rejected", {"reason": "bad signature"})
            raise Unauthorized("invalid or expired token") from exc

        if not isinstance(claims, dict):
            logger.log_error("token_rejected", {"reason": "malformed claims"})
            raise Unauthorized("invalid or expired token")

        subject = claims.get("sub")
        expiry = claims.get("exp")
        if not isinstance(subject, str) or not isinstance(expiry, int) or isinstance(expiry, bool):
            logger.log_error("token_rejected", {"reason": "malformed claims"})
            raise Unauthorized("invalid or expired token")

        current = now or datetime.now(timezone.utc)
        if current.timestamp() >= expiry:
            logger.log_error("token_rejected", {"reason": "expired", "subject": subject})
            raise Unauthorized("invalid or expired token")

        return Identity(
            subject=subject,
            admin=bool(claims.get("admin", False)),
            expires_at=datetime.fromtimestamp(expiry, tz=timezone.utc),
        )
