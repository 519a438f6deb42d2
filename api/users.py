from __future__ import annotations

from flask import Blueprint, request, jsonify, abort

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserListOutSchema, UserStatusSchema
from utils.decorators import jwt_required, roles_required, is_self_or_admin
from utils.security import hash_password

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_status_schema = UserStatusSchema()
user_list_item_schema = UserListOutSchema()
user_list_out_schema = UserListOutSchema(many=True)


def _get_user_or_404(user_id: str) -> User:
    user = storage.get(User, user_id)
    if not user:
        abort(404, description="User not found")
    return user


@bp.get("")
@roles_required(["admin"])
def list_users():
    """
    List all users, most recently active first - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      403: { description: Forbidden }
    """
    session = storage.get_session()
    rows = (
        session.query(User)
        .order_by(User.last_active.is_(None), User.last_active.desc(), User.name.asc())
        .all()
    )
    return jsonify({"data": user_list_out_schema.dump(rows)}), 200


@bp.post("")
@roles_required(["admin"])
def create_user():
    """
    Add a user - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [name, email, password]
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string, minLength: 8 }
            role: { type: string, enum: [admin, faculty, staff, student, researcher] }
            department: { type: string }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Email already registered }
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    session = storage.get_session()
    if session.query(User).filter(User.email == data["email"]).first():
        abort(409, description="Email already registered")

    user = User(
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=data["role"],
        department=data.get("department"),
    )
    storage.new(user)
    storage.save()
    return jsonify({"data": user_list_item_schema.dump(user)}), 201


@bp.get("/<user_id>")
@jwt_required()
def get_user(user_id: str):
    """
    Get one user - self or admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    if not is_self_or_admin(user_id):
        abort(403, description="Insufficient role")
    return jsonify({"data": user_list_item_schema.dump(_get_user_or_404(user_id))}), 200


@bp.put("/<user_id>/status")
@jwt_required()
def update_status(user_id: str):
    """
    Update a user's presence status - self or admin
    Only "Active" changes anything: it stamps last_active with the current time.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            status: { type: string, enum: [Active, Away, Inactive] }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    if not is_self_or_admin(user_id):
        abort(403, description="Insufficient role")
    data = user_status_schema.load(request.get_json(silent=True) or {})
    user = _get_user_or_404(user_id)
    if data["status"] == "Active":
        user.touch()
        storage.new(user)
        storage.save()
    return jsonify({"data": user_list_item_schema.dump(user)}), 200


@bp.delete("/<user_id>")
@roles_required(["admin"])
def delete_user(user_id: str):
    """
    Delete a user - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: Deleted }
      404: { description: Not found }
    """
    user = _get_user_or_404(user_id)
    user.delete()
    storage.save()
    return jsonify({"message": "User deleted successfully"}), 200
