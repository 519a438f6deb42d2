"""
Revocation set for access tokens that were logged out before expiry.

Entries are keyed by the token's jti claim, read without verifying the
signature, so membership is checked before any verification and survives
re-encoding of the token. Tokens without a usable jti fall back to the
SHA-256 digest of the raw string. Each entry lives no longer than
the token it revokes: once the token's own exp has passed, the entry is
ignored and eventually purged.

Two backends:
- DatabaseRevocationSet: rows in the shared relational store; every app
  instance pointing at the same database sees the same revocations.
- MemoryRevocationSet: a process-local dict; single-process deployments and
  tests only.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import storage
from models.revoked_token import RevokedToken
from utils.exceptions import ConfigError
from utils.security import revocation_key, unverified_expiry, unverified_subject

logger = logging.getLogger(__name__)

EXTENSION_KEY = "revocation_set"
BACKENDS = ("database", "memory")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RevocationSet:
    """Interface shared by the backends."""

    def __init__(self, default_ttl: timedelta = timedelta(hours=1)):
        # Used when a token's exp cannot be read
        self.default_ttl = default_ttl

    def _expiry_for(self, token: str) -> datetime:
        return unverified_expiry(token) or (_utcnow() + self.default_ttl)

    def revoke(self, token: str) -> None:
        raise NotImplementedError

    def is_revoked(self, token: str) -> bool:
        raise NotImplementedError

    def purge_expired(self) -> int:
        raise NotImplementedError

    def __contains__(self, token: str) -> bool:
        return self.is_revoked(token)


class MemoryRevocationSet(RevocationSet):
    def __init__(self, default_ttl: timedelta = timedelta(hours=1)):
        super().__init__(default_ttl)
        self._entries: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def revoke(self, token: str) -> None:
        expires_at = self._expiry_for(token)
        with self._lock:
            self._purge_locked(_utcnow())
            key = revocation_key(token)
            # Keep the later expiry if the same token is revoked twice
            current = self._entries.get(key)
            if current is None or current < expires_at:
                self._entries[key] = expires_at

    def is_revoked(self, token: str) -> bool:
        if not token:
            return False
        key = revocation_key(token)
        with self._lock:
            expires_at = self._entries.get(key)
            if expires_at is None:
                return False
            if expires_at <= _utcnow():
                del self._entries[key]
                return False
            return True

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(_utcnow())

    def _purge_locked(self, now: datetime) -> int:
        dead = [key for key, expires_at in self._entries.items() if expires_at <= now]
        for key in dead:
            del self._entries[key]
        return len(dead)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _naive(dt: datetime) -> datetime:
    # Columns hold naive UTC
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


class DatabaseRevocationSet(RevocationSet):
    def revoke(self, token: str) -> None:
        key = revocation_key(token)
        session = storage.get_session()
        if session.get(RevokedToken, key) is not None:
            return
        storage.new(
            RevokedToken(
                jti=key,
                user_id=unverified_subject(token),
                expires_at=_naive(self._expiry_for(token)),
            )
        )
        try:
            storage.save()
        except IntegrityError:
            # Another request revoked the same token first
            logger.debug("Token %s already revoked", key[:12])
        self.purge_expired()

    def is_revoked(self, token: str) -> bool:
        if not token:
            return False
        session = storage.get_session()
        row = (
            session.query(RevokedToken.jti)
            .filter(
                RevokedToken.jti == revocation_key(token),
                RevokedToken.expires_at > _naive(_utcnow()),
            )
            .first()
        )
        return row is not None

    def purge_expired(self) -> int:
        session = storage.get_session()
        removed = (
            session.query(RevokedToken)
            .filter(RevokedToken.expires_at <= _naive(_utcnow()))
            .delete(synchronize_session=False)
        )
        storage.save()
        if removed:
            logger.info("Purged %d expired revocation entries", removed)
        return removed


def create_revocation_set(backend: str, default_ttl: timedelta) -> RevocationSet:
    if backend == "database":
        return DatabaseRevocationSet(default_ttl)
    if backend == "memory":
        return MemoryRevocationSet(default_ttl)
    raise ConfigError(f"Unknown REVOCATION_BACKEND {backend!r}; expected one of {BACKENDS}")


def get_revocation_set(app=None) -> RevocationSet:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def is_token_revoked(token: Optional[str]) -> bool:
    return bool(token) and get_revocation_set().is_revoked(token)
