"""
Session lifecycle: login, refresh and logout.

A "session" is the refresh token stored on the user row plus whatever
tokens the client holds:

    Anonymous --login--> Authenticated --logout--> Anonymous
    Authenticated --refresh--> Authenticated (new access token)

Each operation commits once, so a minted refresh token is either stored on
the user or never handed out.
"""
from __future__ import annotations

import hmac
import logging
from typing import NamedTuple

from flask import current_app

from models import storage
from models.user import User
from utils.exceptions import InvalidCredentials, InvalidToken
from utils.revocation import RevocationSet, get_revocation_set
from utils.security import (
    TokenPair,
    REFRESH,
    burn_password_check,
    create_access_token,
    decode_token,
    hash_password,
    issue_tokens,
    password_needs_rehash,
    verify_password,
)

logger = logging.getLogger(__name__)

EXTENSION_KEY = "session_controller"


class LoginResult(NamedTuple):
    user: User
    tokens: TokenPair


class SessionController:
    def __init__(self, revocations: RevocationSet):
        self.revocations = revocations

    def login(self, email: str, password: str) -> LoginResult:
        """
        Check credentials and mint a token pair.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        email = (email or "").strip().lower()
        session = storage.get_session()
        user = session.query(User).filter(User.email == email).first()
        if user is None:
            burn_password_check(password)
            logger.info("Login failed: unknown account")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Login failed for user %s", user.id)
            raise InvalidCredentials()

        tokens = issue_tokens(user.id, user.role)
        user.refresh_token = tokens.refresh_token
        user.touch()
        if password_needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
        storage.new(user)
        storage.save()

        logger.info("User %s logged in", user.id)
        return LoginResult(user, tokens)

    def refresh(self, refresh_token: str) -> str:
        """Exchange the user's current refresh token for a new access token."""
        try:
            claims = decode_token(refresh_token, expected_type=REFRESH)
        except InvalidToken as exc:
            logger.info("Refresh rejected: %s", exc.message)
            raise InvalidToken("Invalid refresh token")

        user = storage.get(User, claims["sub"])
        stored = user.refresh_token if user else None
        # A newer login or a logout replaces or clears the stored token
        if not stored or not hmac.compare_digest(stored.encode(), refresh_token.encode()):
            logger.info("Refresh rejected: token superseded or user gone (sub=%s)", claims["sub"])
            raise InvalidToken("Invalid refresh token")

        access_token = create_access_token(user.id, user.role)
        user.touch()
        storage.new(user)
        storage.save()
        return access_token

    def logout(self, access_token: str) -> bool:
        """
        Revoke the access token and clear the owner's refresh token.

        The revocation always stands. Returns False if the token could not be
        verified, in which case no refresh token is cleared.
        """
        self.revocations.revoke(access_token)
        try:
            claims = decode_token(access_token)
        except InvalidToken as exc:
            logger.warning("Logout revoked an unverifiable token (%s); refresh token left as is", exc.message)
            return False

        user = storage.get(User, claims["sub"])
        if user is None:
            return False
        user.refresh_token = None
        storage.new(user)
        storage.save()
        logger.info("User %s logged out", user.id)
        return True


def get_session_controller(app=None) -> SessionController:
    app = app or current_app
    controller = app.extensions.get(EXTENSION_KEY)
    if controller is None:
        controller = app.extensions[EXTENSION_KEY] = SessionController(get_revocation_set(app))
    return controller
