"""
auth/tokens.py -- JWT issue/verify and credential authentication.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the account id, kind ("admin" | "user"), role, display claims and a
       fixed expiry (Settings.token_expire_seconds, 24 h by default).
       Verification returns None on any failure -- malformed, expired, bad
       signature, missing claims -- and the route layer turns None into a
       uniform "unauthenticated" response. There is no refresh and no
       revocation list: a token is valid until it expires.

  Passwords: argon2 via auth.passwords. The _DUMMY_HASH constant enables
       timing equalization in the authenticate_* helpers so response time
       does not reveal whether a login handle exists.

  SECRET_KEY: sourced from core.config.get_settings(), which refuses to start
       in production without one. create_access_token() still refuses to sign
       with an empty key (TokenSigningError) rather than emit an unverifiable
       token.

Layer rule: no imports from api/, registry/, or notify/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt

from auth.errors import TokenSigningError
from auth.models import Admin, User
from auth.passwords import hash_password, verify_password
from core.config import get_settings
from core.models import AccountKind

if TYPE_CHECKING:
    from auth.store import AccountStore

logger = logging.getLogger("confreg.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# Claims every verified token must carry.
_REQUIRED_CLAIMS = ("id", "kind", "role", "exp")

# Computed once at module load so the first login attempt is not measurably
# slower than later ones.
_DUMMY_HASH: str = hash_password("confreg_timing_dummy")


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


def account_claims(kind: AccountKind, account: Admin | User) -> dict[str, Any]:
    """Build the identity and display claims embedded in a token for account."""
    claims: dict[str, Any] = {
        "sub": account.username,
        "id": account.id,
        "kind": kind.value,
        "role": account.role,
        "username": account.username,
        "profile_image": account.profile_image,
    }
    if isinstance(account, User):
        claims.update(
            organization=account.organization,
            organization_short_code=account.organization_short_code,
            contact_person=account.contact_person,
            contact_person_email=account.contact_person_email,
        )
    else:
        claims.update(fullname=account.fullname, email=account.email)
    return claims


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    claims: dict[str, Any],
    expire_seconds: int = 0,
    issued_at: datetime | None = None,
    secret_key: str | None = None,
) -> str:
    """Encode a signed JWT with the given claims and a fixed expiry.

    Args:
        claims:         Identity and display claims (see account_claims()).
        expire_seconds: Validity window. 0 means Settings.token_expire_seconds.
        issued_at:      Issue time; defaults to now (UTC).
        secret_key:     Signing key override. None means Settings.secret_key.

    Raises TokenSigningError if the effective signing key is empty.
    """
    key = _settings.secret_key if secret_key is None else secret_key
    if not key:
        raise TokenSigningError("No signing secret is configured.")
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = issued_at or datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + timedelta(seconds=duration)
    return jwt.encode(payload, key, algorithm=_ALGORITHM)


def decode_access_token(token: str, secret_key: str | None = None) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure."""
    key = _settings.secret_key if secret_key is None else secret_key
    if not key or not token:
        return None
    try:
        payload = jwt.decode(token, key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if any(claim not in payload for claim in _REQUIRED_CLAIMS):
        return None
    if payload["kind"] not in {k.value for k in AccountKind}:
        return None
    return payload


# ---------------------------------------------------------------------------
# Credential checks (constant-time on the unknown-account path)
# ---------------------------------------------------------------------------


def _check_credentials(account: Admin | User | None, password: str) -> bool:
    if account is None:
        verify_password(_DUMMY_HASH, password)
        return False
    # Raises CorruptCredentialError for a null or non-argon2 stored hash.
    return verify_password(account.hashed_password, password, account_id=account.id)


def authenticate_user(store: AccountStore, organization_short_code: str, username: str, password: str) -> User | None:
    """Authenticate an organization user by (short code, username, password).

    Returns the User on success, None for an unknown login or wrong password.
    Raises CorruptCredentialError if the stored hash is unusable.
    """
    user = store.get_user_by_login(organization_short_code, username)
    if not _check_credentials(user, password):
        return None
    return user


def authenticate_admin(store: AccountStore, username: str, password: str) -> Admin | None:
    """Authenticate an administrator by username and password. Same contract as authenticate_user()."""
    admin = store.get_admin_by_username(username)
    if not _check_credentials(admin, password):
        return None
    return admin


# ---------------------------------------------------------------------------
# Cookie helper
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str) -> None:
    """Write the JWT as an httpOnly cookie whose max_age matches the token expiry.

    The cookie is a convenience for browser clients; API clients send the
    same token as "Authorization: Bearer <token>".
    """
    response.set_cookie(
        "access_token",
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.token_expire_seconds,
    )
