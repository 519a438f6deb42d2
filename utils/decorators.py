from __future__ import annotations
from functools import wraps
from flask import request, g, abort

from utils.exceptions import InvalidToken
from utils.revocation import is_token_revoked
from utils.security import decode_token
from models import storage
from models.user import User


def bearer_token() -> str | None:
    """Token from an 'Authorization: Bearer <token>' header, if any."""
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def reject_revoked_tokens():
    """
    before_request gate: any request presenting a revoked bearer token is
    refused before signature checks or route handlers run.
    """
    token = bearer_token()
    if token and is_token_revoked(token):
        abort(401, description="Token has been revoked")


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                abort(401, description="Missing or invalid Authorization header")
            try:
                decoded = decode_token(token)
            except InvalidToken as e:
                abort(401, description=e.message)

            user = storage.get(User, decoded.get("sub"))
            if not user:
                abort(401, description="User not found")
            g.current_user = user
            g.current_role = decoded.get("role")
            g.current_token = token
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the token's role claim is one of required_roles,
    otherwise 403.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if getattr(g, "current_role", None) not in req:
                abort(403, description="Insufficient role")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def is_self_or_admin(user_id: str) -> bool:
    return g.current_role == "admin" or g.current_user.id == user_id
