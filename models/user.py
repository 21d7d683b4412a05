# models/user.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash

USER_ROLES = ("admin", "bus_owner", "conductor")


class User(db.Model):
    __tablename__ = "users"

    id            = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username      = db.Column(db.String(50), nullable=False, unique=True, index=True)
    email         = db.Column(db.String(254), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role          = db.Column(db.String(32), nullable=False, default="conductor", index=True)
    employee_id   = db.Column(db.String(32), nullable=True)
    is_active     = db.Column(db.Boolean, nullable=False, default=True)

    created_at    = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    updated_at    = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # ── Relationships ────────────────────────────────────────────────────────
    assigned_bus = db.relationship(
        "Bus",
        back_populates="conductor",
        foreign_keys="Bus.conductor_id",
        uselist=False,
    )

    issued_tickets = db.relationship(
        "Ticket",
        back_populates="conductor",
        foreign_keys="Ticket.conductor_id",
        cascade="save-update",
    )

    # ── Helpers ─────────────────────────────────────────────────────────────
    def set_password(self, raw: str) -> None:
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        try:
            return check_password_hash(self.password_hash or "", raw or "")
        except Exception:
            return False

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "employeeId": self.employee_id,
            "isActive": bool(self.is_active),
        }
