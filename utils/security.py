"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT
- JTI generation for token identifiers

Access and refresh tokens are signed with different secrets and carry a
"type" claim, so a token of one kind never verifies as the other.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, Any, NamedTuple, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from flask import current_app

from utils.exceptions import InvalidToken, InvalidSignature, TokenExpired

ACCESS = "access"
REFRESH = "refresh"

_SECRET_KEYS = {
    ACCESS: "JWT_ACCESS_SECRET",
    REFRESH: "JWT_REFRESH_SECRET",
}
_EXPIRY_KEYS = {
    ACCESS: "ACCESS_TOKEN_EXPIRES",
    REFRESH: "REFRESH_TOKEN_EXPIRES",
}

ph = PasswordHasher()


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHashError:
        return True


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return ph.hash(uuid.uuid4().hex)


def burn_password_check(password: str) -> None:
    """Spend the cost of one verification when there is no user to check against."""
    verify_password(password, _dummy_hash())


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def token_digest(token: str) -> str:
    """SHA-256 hex digest of a raw token string."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def revocation_key(token: str) -> str:
    """
    Key a token is revoked under: its jti claim, read without verifying, or
    the SHA-256 digest of the normalized string when no usable jti exists.

    Re-encodings of a token share its jti and therefore its key.
    """
    canonical = _canonical(token)
    return unverified_jti(canonical) or token_digest(canonical)


def _canonical(token: str) -> str:
    """Token with its signature segment re-encoded in canonical base64url."""
    head, dot, signature = token.rpartition(".")
    if not dot:
        return token
    try:
        raw = base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4))
    except (binascii.Error, ValueError):
        return token
    return head + "." + base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _canonical_signature(token: str) -> bool:
    # The last base64url character of a signature has unused low bits
    return _canonical(token) == token


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _encode(claims: Dict[str, Any], token_type: str) -> str:
    cfg = current_app.config
    now = _now()
    exp = now + cfg[_EXPIRY_KEYS[token_type]]
    payload = {
        "iss": cfg.get("JWT_ISSUER"),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "type": token_type,
        "jti": generate_jti(),
        **claims,
    }
    return jwt.encode(payload, cfg[_SECRET_KEYS[token_type]], algorithm=cfg["JWT_ALGORITHM"])


def create_access_token(user_id: str, role: str) -> str:
    """Short-lived token sent on every protected request."""
    return _encode({"sub": str(user_id), "role": role}, ACCESS)


def create_refresh_token(user_id: str) -> str:
    """Long-lived token that can only be exchanged for a new access token."""
    return _encode({"sub": str(user_id)}, REFRESH)


def issue_tokens(user_id: str, role: str) -> TokenPair:
    return TokenPair(create_access_token(user_id, role), create_refresh_token(user_id))


def decode_token(token: str, expected_type: str = ACCESS) -> Dict[str, Any]:
    """
    Decode and validate a JWT against the secret for expected_type
    ("access" or "refresh").

    Raises TokenExpired, InvalidSignature or InvalidToken.
    """
    if expected_type not in _SECRET_KEYS:
        raise ValueError(f"Unknown token type: {expected_type}")
    if not token or not isinstance(token, str):
        raise InvalidToken("Missing token")
    if not _canonical_signature(token):
        raise InvalidToken("Invalid token: non-canonical signature encoding")

    cfg = current_app.config
    try:
        decoded = jwt.decode(
            token,
            cfg[_SECRET_KEYS[expected_type]],
            algorithms=[cfg["JWT_ALGORITHM"]],
            issuer=cfg.get("JWT_ISSUER"),
            leeway=cfg.get("JWT_LEEWAY", 0),
            options={"require": ["exp", "iat", "sub", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.InvalidSignatureError:
        raise InvalidSignature()
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(f"Invalid token: {exc}")

    if decoded.get("type") != expected_type:
        raise InvalidToken("Wrong token type")
    return decoded


def unverified_expiry(token: str) -> Optional[datetime]:
    """
    Read the exp claim without checking the signature.
    Only for sizing revocation entries; never trust the result otherwise.
    """
    try:
        claims = jwt.decode(_canonical(token), options={"verify_signature": False})
        return datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError, OverflowError):
        return None


def unverified_subject(token: str) -> Optional[str]:
    try:
        sub = jwt.decode(_canonical(token), options={"verify_signature": False}).get("sub")
    except jwt.InvalidTokenError:
        return None
    return str(sub) if sub is not None else None


def unverified_jti(token: str) -> Optional[str]:
    try:
        jti = jwt.decode(token, options={"verify_signature": False}).get("jti")
    except jwt.InvalidTokenError:
        return None
    # Issued jtis are UUID strings; anything else falls back to the digest
    if not isinstance(jti, str) or not 0 < len(jti) <= 64:
        return None
    return jti
