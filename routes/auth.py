# backend/routes/auth.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import OperationalError

from db import db
from models.user import User
from auth_guard import require_role, issue_token

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.after_request
def add_perf_headers(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


@auth_bp.route("/login", methods=["POST"])
def login():
    """Sign in with username + password and return a bearer JWT."""
    data = request.get_json(silent=True) or {}
    username = str(data.get("username") or "").strip()
    password = data.get("password")
    if not username or not password:
        return jsonify(error="Missing username or password"), 400

    def _get_user():
        return User.query.filter_by(username=username).first()

    # One-time retry if DB connection dropped
    try:
        user = _get_user()
    except OperationalError as e:
        current_app.logger.warning("[auth] DB connection dropped; retrying once: %s", e)
        db.session.remove()
        db.engine.dispose()
        user = _get_user()

    if not (user and user.check_password(password)):
        current_app.logger.info("[auth] failed login user=%s ip=%s", username, request.remote_addr)
        return jsonify(error="Invalid username or password"), 401
    if not user.is_active:
        return jsonify(error="Account is disabled"), 403

    token = issue_token(user)
    current_app.logger.info("[auth] login uid=%s role=%s", user.id, user.role)

    bus = user.assigned_bus
    return jsonify(
        message="Login successful",
        token=token,
        user=user.to_dict(),
        assignedBus=bus.to_dict() if bus else None,
    ), 200


@auth_bp.route("/me", methods=["GET"])
@require_role()
def me():
    u: User = g.user
    bus = u.assigned_bus
    out = u.to_dict()
    out["assignedBus"] = bus.to_dict() if bus else None
    return jsonify(out), 200
