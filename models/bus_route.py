# models/bus_route.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func


class BusRoute(db.Model):
    __tablename__ = "bus_routes"

    id                 = db.Column(db.Integer, primary_key=True)
    route_name         = db.Column(db.String(128), nullable=False)
    route_number       = db.Column(db.String(32), nullable=False, unique=True)
    start_point        = db.Column(db.String(128), nullable=False, default="Embilipitiya")
    end_point          = db.Column(db.String(128), nullable=False)
    distance_km        = db.Column(db.Numeric(7, 2), nullable=False)
    estimated_duration = db.Column(db.Integer, nullable=False)  # minutes
    is_active          = db.Column(db.Boolean, nullable=False, default=True)
    created_by         = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at         = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    updated_at         = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    stops = db.relationship(
        "Stop",
        back_populates="route",
        order_by="Stop.section_number",
        cascade="all, delete-orphan",
    )
    route_sections = db.relationship("RouteSection", back_populates="route", cascade="all, delete-orphan")
    buses = db.relationship("Bus", back_populates="route")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "routeName": self.route_name,
            "routeNumber": self.route_number,
            "startPoint": self.start_point,
            "endPoint": self.end_point,
            "distance": float(self.distance_km or 0),
            "estimatedDuration": self.estimated_duration,
            "isActive": bool(self.is_active),
        }
