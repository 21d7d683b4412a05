# backend/routes/users.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from auth_guard import require_role
from schemas.common import load
from schemas.users import UserCreate, UserUpdate
from services import users as svc

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.route("", methods=["GET"])
@require_role("admin")
def list_users():
    """
    GET /users
      Query:
        - role=admin|bus_owner|conductor|all
        - search=<username or email fragment>
    """
    rows = svc.list_users(
        role=(request.args.get("role") or "").strip().lower() or None,
        search=(request.args.get("search") or "").strip() or None,
    )
    return jsonify(users=[u.to_dict() for u in rows], total=len(rows)), 200


@users_bp.route("/stats/overview", methods=["GET"])
@require_role("admin")
def overview():
    return jsonify(svc.role_overview()), 200


@users_bp.route("/<int:user_id>", methods=["GET"])
@require_role("admin")
def get_user(user_id: int):
    return jsonify(user=svc.get_user(user_id).to_dict()), 200


@users_bp.route("", methods=["POST"])
@require_role("admin")
def create_user():
    data = load(UserCreate, request.get_json(silent=True))
    u = svc.create_user(data)
    return jsonify(message="User created successfully", user=u.to_dict()), 201


@users_bp.route("/<int:user_id>", methods=["PUT"])
@require_role("admin")
def update_user(user_id: int):
    data = load(UserUpdate, request.get_json(silent=True))
    u = svc.update_user(user_id, data)
    return jsonify(message="User updated successfully", user=u.to_dict()), 200


@users_bp.route("/<int:user_id>/toggle-status", methods=["PATCH"])
@require_role("admin")
def toggle_status(user_id: int):
    u = svc.toggle_status(user_id, actor=g.user)
    state = "activated" if u.is_active else "deactivated"
    return jsonify(message=f"User {state} successfully", isActive=bool(u.is_active)), 200


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@require_role("admin")
def delete_user(user_id: int):
    svc.deactivate_user(user_id, actor=g.user)
    return jsonify(message="User deleted successfully"), 200
