from typing import Optional, Protocol
from passlib.context import CryptContext
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from fastapi import Request, HTTPException

from .config import settings
from .exceptions import ConfigurationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="staydesk-admin-session")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


class CredentialVerifier(Protocol):
    def verify(self, username: str, password: str) -> bool: ...


class SettingsCredentialVerifier:
    """Checks admin credentials against ADMIN_USERNAME and a hashed password.

    ADMIN_PASSWORD_HASH wins over ADMIN_PASSWORD; a plain password is hashed once
    at construction so it is never compared in clear.
    """

    def __init__(self, username: Optional[str] = None, password: Optional[str] = None, password_hash: Optional[str] = None):
        self.username = username if username is not None else settings.ADMIN_USERNAME
        hashed = password_hash if password_hash is not None else settings.ADMIN_PASSWORD_HASH
        if not hashed:
            plain = password if password is not None else settings.ADMIN_PASSWORD
            hashed = hash_password(plain) if plain else ""
        self._hashed = hashed

    def verify(self, username: str, password: str) -> bool:
        if not self.username or not self._hashed:
            raise ConfigurationError("Admin credentials are not configured (set ADMIN_PASSWORD or ADMIN_PASSWORD_HASH).")
        if username.strip() != self.username:
            return False
        return verify_password(password, self._hashed)


def session_max_age() -> int:
    return settings.SESSION_MAX_AGE_HOURS * 60 * 60


def issue_admin_token(username: str) -> str:
    return serializer.dumps({"admin": username})


def is_admin_session_active(token: Optional[str]) -> bool:
    if not token:
        return False
    try:
        data = serializer.loads(token, max_age=session_max_age())
    except (SignatureExpired, BadSignature):
        return False
    return isinstance(data, dict) and bool(data.get("admin"))


def token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def require_admin(request: Request) -> str:
    """
    Dependency to protect admin routes.
    Returns the session token so handlers can pass it along explicitly.
    """
    token = token_from_request(request)
    if not is_admin_session_active(token):
        raise HTTPException(status_code=401, detail="Admin session required")
    return token
