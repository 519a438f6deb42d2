"""
Authentication blueprint:
- POST /api/auth/login
- POST /api/auth/refresh
- POST /api/auth/logout
- GET  /api/auth/me

- argon2 password hashing (utils.security)
- short-lived access tokens and long-lived refresh tokens, JWTs signed with
  two different secrets
- the user's current refresh token is stored on the user row; a new login
  overwrites it and logout clears it
- logged-out access tokens go into the revocation set checked on every request
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort, current_app

from models.schemas.user import UserLoginSchema, RefreshSchema, UserOutSchema
from utils.decorators import jwt_required
from utils.exceptions import AuthError
from utils.session import get_session_controller

bp = Blueprint("auth", __name__)

user_login_schema = UserLoginSchema()
refresh_schema = RefreshSchema()
user_out_schema = UserOutSchema()


def _expires_in() -> int:
    return int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds())


@bp.post("/login")
def login():
    """
    Login: return the user plus accessToken and refreshToken
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: true
         schema:
           type: object
           required: [email, password]
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns user and tokens)
      400:
        description: Missing email or password
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    try:
        result = get_session_controller().login(data["email"], data["password"])
    except AuthError as e:
        abort(e.status, description=e.message)

    return jsonify(
        {
            "user": user_out_schema.dump(result.user),
            "accessToken": result.tokens.access_token,
            "refreshToken": result.tokens.refresh_token,
            "tokenType": "bearer",
            "expiresIn": _expires_in(),
        }
    ), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: true
         schema:
           type: object
           required: [refreshToken]
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns accessToken)
      400:
        description: Missing refreshToken
      401:
        description: Invalid, expired or superseded refresh token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)

    try:
        access_token = get_session_controller().refresh(data["refreshToken"])
    except AuthError as e:
        abort(e.status, description=e.message)

    return jsonify(
        {
            "accessToken": access_token,
            "tokenType": "bearer",
            "expiresIn": _expires_in(),
        }
    ), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the presented access token and clears the refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Missing, invalid or revoked token
    """
    get_session_controller().logout(g.current_token)
    return jsonify({"message": "Logged out successfully"}), 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Current user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"user": user_out_schema.dump(g.current_user)}), 200
