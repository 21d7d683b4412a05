# models/route_section.py
from db import db
from sqlalchemy.sql import func
from models.bus import BUS_CATEGORIES


class RouteSection(db.Model):
    """
    Cumulative fare from the route origin to one stop, per bus category.
    Point-to-point fare is the difference of two rows of the same (route, category).
    """
    __tablename__ = "route_sections"
    __table_args__ = (
        db.UniqueConstraint("route_id", "stop_id", "category", name="uq_route_section_stop_category"),
        db.Index("ix_route_sections_route_category_order", "route_id", "category", "order"),
    )

    id             = db.Column(db.Integer, primary_key=True)
    route_id       = db.Column(db.Integer, db.ForeignKey("bus_routes.id"), nullable=False)
    stop_id        = db.Column(db.Integer, db.ForeignKey("stops.id"), nullable=False)
    section_number = db.Column(db.Integer, nullable=False)
    fare           = db.Column(db.Integer, nullable=False)   # whole rupees, cumulative
    stop_code      = db.Column(db.String(32), nullable=False)
    stop_name      = db.Column(db.String(128), nullable=False)
    order          = db.Column(db.Integer, nullable=False)
    category       = db.Column(db.Enum(*BUS_CATEGORIES, name="route_section_category"), nullable=False, default="normal")
    is_active      = db.Column(db.Boolean, nullable=False, default=True)

    created_at     = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    updated_at     = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    route = db.relationship("BusRoute", back_populates="route_sections")
    stop  = db.relationship("Stop")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "routeId": self.route_id,
            "stopId": self.stop_id,
            "sectionNumber": self.section_number,
            "fare": self.fare,
            "stopCode": self.stop_code,
            "stopName": self.stop_name,
            "order": self.order,
            "category": self.category,
            "isActive": bool(self.is_active),
        }
