from __future__ import annotations
from db import db
from sqlalchemy.sql import func

BUS_CATEGORIES = ("normal", "semi-luxury", "luxury", "super-luxury")


class Bus(db.Model):
    __tablename__ = "buses"

    id           = db.Column(db.Integer, primary_key=True)
    bus_number   = db.Column(db.String(64), nullable=False, unique=True)
    route_id     = db.Column(db.Integer, db.ForeignKey("bus_routes.id"), nullable=False, index=True)
    category     = db.Column(db.Enum(*BUS_CATEGORIES, name="bus_category"), nullable=False, default="normal")
    capacity     = db.Column(db.Integer, nullable=False, default=50)
    driver_name  = db.Column(db.String(128), nullable=True)
    conductor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    is_active    = db.Column(db.Boolean, nullable=False, default=True)
    last_maintenance_date = db.Column(db.Date, nullable=True)
    notes        = db.Column(db.String(255), nullable=True)

    created_at   = db.Column(db.DateTime, server_default=func.now(), nullable=False)

    route     = db.relationship("BusRoute", back_populates="buses")
    conductor = db.relationship("User", back_populates="assigned_bus", foreign_keys=[conductor_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "busNumber": self.bus_number,
            "routeId": self.route_id,
            "category": self.category,
            "capacity": self.capacity,
            "driverName": self.driver_name,
            "conductorId": self.conductor_id,
            "isActive": bool(self.is_active),
            "lastMaintenanceDate": self.last_maintenance_date.isoformat() if self.last_maintenance_date else None,
            "notes": self.notes,
        }
