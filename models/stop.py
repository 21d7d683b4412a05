# models/stop.py
from db import db


class Stop(db.Model):
    __tablename__ = "stops"
    __table_args__ = (
        db.Index("ix_stops_route_section", "route_id", "section_number"),
        db.Index("ix_stops_route_order", "route_id", "order"),
    )

    id             = db.Column(db.Integer, primary_key=True)
    code           = db.Column(db.String(32), nullable=False, unique=True)
    stop_name      = db.Column(db.String(128), nullable=False)
    route_id       = db.Column(db.Integer, db.ForeignKey("bus_routes.id"), nullable=False)
    section_number = db.Column(db.Integer, nullable=False)   # canonical, 0 = route origin
    order          = db.Column(db.Integer, nullable=False)
    fare           = db.Column(db.Integer, nullable=True)    # legacy cumulative fare
    latitude       = db.Column(db.Float, nullable=True)
    longitude      = db.Column(db.Float, nullable=True)
    is_active      = db.Column(db.Boolean, nullable=False, default=True)

    route = db.relationship("BusRoute", back_populates="stops")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "stopName": self.stop_name,
            "routeId": self.route_id,
            "sectionNumber": self.section_number,
            "order": self.order,
            "fare": self.fare,
            "coordinates": {"latitude": self.latitude, "longitude": self.longitude},
        }
