# backend/services/users.py
"""
Admin user management.

Public API:
  - list_users(role=None, search=None) -> [User]
  - get_user(id) / create_user(data) / update_user(id, data)
  - toggle_status(id, actor) / deactivate_user(id, actor)
  - role_overview() -> dict
"""

from __future__ import annotations

from typing import List, Optional

from flask import current_app
from sqlalchemy import func, or_

from db import db
from models.bus import Bus
from models.user import USER_ROLES, User
from schemas.users import UserCreate, UserUpdate
from services.errors import Forbidden, InvalidPayload, NotFound


# ---------- small utils ----------

def _ensure_unique(username: Optional[str], email: Optional[str], *, exclude_id: Optional[int] = None) -> None:
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return
    q = User.query.filter(or_(*clauses))
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first():
        raise InvalidPayload("User with this email or username already exists")


def _not_self(user: User, actor: Optional[User]) -> None:
    if actor is not None and int(actor.id) == int(user.id):
        raise Forbidden("You cannot deactivate your own account")


def _release_bus(user: User) -> None:
    bus = Bus.query.filter_by(conductor_id=user.id).first()
    if bus is not None:
        bus.conductor_id = None


# ---------- queries ----------

def list_users(role: Optional[str] = None, search: Optional[str] = None) -> List[User]:
    q = User.query
    if role and role != "all":
        if role not in USER_ROLES:
            raise InvalidPayload("unknown role", role=role, allowed=list(USER_ROLES))
        q = q.filter(User.role == role)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(User.username.ilike(like), User.email.ilike(like)))
    return q.order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    u = db.session.get(User, user_id)
    if not u:
        raise NotFound("User not found", id=user_id)
    return u


def role_overview() -> dict:
    rows = (
        db.session.query(User.role, func.count(User.id))
        .filter(User.is_active.is_(True))
        .group_by(User.role)
        .all()
    )
    counts = {role: int(n) for role, n in rows}
    return {
        "totalUsers": sum(counts.values()),
        "totalInactiveUsers": User.query.filter(User.is_active.is_(False)).count(),
        "roleBreakdown": {role: counts.get(role, 0) for role in USER_ROLES},
    }


# ---------- writes ----------

def create_user(data: UserCreate) -> User:
    email = data.email.lower()
    _ensure_unique(data.username, email)

    u = User(
        username=data.username,
        email=email,
        role=data.role,
        employee_id=data.employee_id,
        is_active=True,
    )
    u.set_password(data.password)
    db.session.add(u)
    db.session.commit()
    current_app.logger.info("[users] created %s role=%s", u.username, u.role)
    return u


def update_user(user_id: int, data: UserUpdate) -> User:
    u = get_user(user_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "email" in changes:
        changes["email"] = changes["email"].lower()
    _ensure_unique(changes.get("username"), changes.get("email"), exclude_id=u.id)

    password = changes.pop("password", None)
    if password:
        u.set_password(password)
    if changes.get("role") and changes["role"] != "conductor":
        _release_bus(u)
    for k, v in changes.items():
        setattr(u, k, v)
    db.session.commit()
    current_app.logger.info("[users] updated %s fields=%s", u.username, sorted(changes) + (["password"] if password else []))
    return u


def toggle_status(user_id: int, actor: Optional[User] = None) -> User:
    u = get_user(user_id)
    if u.is_active:
        _not_self(u, actor)
        _release_bus(u)
    u.is_active = not u.is_active
    db.session.commit()
    current_app.logger.info("[users] %s is_active=%s", u.username, u.is_active)
    return u


def deactivate_user(user_id: int, actor: Optional[User] = None) -> User:
    u = get_user(user_id)
    _not_self(u, actor)
    _release_bus(u)
    u.is_active = False
    db.session.commit()
    current_app.logger.info("[users] %s deactivated", u.username)
    return u
