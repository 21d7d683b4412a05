from db import db
from datetime import datetime, timezone

TICKET_STATUSES = ("active", "used", "cancelled")
PAYMENT_METHODS = ("cash", "card", "mobile")
DIRECTIONS      = ("forward", "return")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Ticket(db.Model):
    __tablename__ = 'tickets'
    __table_args__ = (
        db.Index('ix_tickets_conductor_issued', 'conductor_id', 'issued_at'),
        db.Index('ix_tickets_route_issued', 'route_id', 'issued_at'),
    )

    id             = db.Column(db.Integer, primary_key=True)
    ticket_number  = db.Column(db.String(32), unique=True, nullable=False)

    route_id       = db.Column(db.Integer, db.ForeignKey('bus_routes.id'), nullable=False)
    bus_number     = db.Column(db.String(64), nullable=False)
    category       = db.Column(db.String(32), nullable=False)
    direction      = db.Column(db.Enum(*DIRECTIONS, name='ticket_direction'), nullable=False, server_default='forward')

    # stop snapshot, frozen at issuance
    from_stop_id        = db.Column(db.Integer, db.ForeignKey('stops.id', ondelete='SET NULL'), nullable=True)
    from_stop_name      = db.Column(db.String(128), nullable=False)
    from_section_number = db.Column(db.Integer, nullable=False)
    to_stop_id          = db.Column(db.Integer, db.ForeignKey('stops.id', ondelete='SET NULL'), nullable=True)
    to_stop_name        = db.Column(db.String(128), nullable=False)
    to_section_number   = db.Column(db.Integer, nullable=False)

    sections        = db.Column(db.Integer, nullable=False)
    unit_fare       = db.Column(db.Integer, nullable=False)   # whole rupees, per passenger
    fare            = db.Column(db.Integer, nullable=False)   # unit_fare * passenger_count
    fare_source     = db.Column(db.String(32), nullable=False)
    passenger_count = db.Column(db.Integer, nullable=False, default=1)
    payment_method  = db.Column(db.Enum(*PAYMENT_METHODS, name='ticket_payment_method'), nullable=False, server_default='cash')
    status          = db.Column(db.Enum(*TICKET_STATUSES, name='ticket_status'), nullable=False, server_default='active', index=True)

    conductor_id   = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    issued_at      = db.Column(db.DateTime, default=_utcnow, nullable=False)

    cancelled_at   = db.Column(db.DateTime, nullable=True)
    cancelled_by   = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    cancel_reason  = db.Column(db.String(120))

    conductor = db.relationship('User', foreign_keys=[conductor_id], back_populates='issued_tickets')
    route     = db.relationship('BusRoute')

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticketNumber": self.ticket_number,
            "routeId": self.route_id,
            "busNumber": self.bus_number,
            "category": self.category,
            "direction": self.direction,
            "fromStop": {
                "stopId": self.from_stop_id,
                "stopName": self.from_stop_name,
                "sectionNumber": self.from_section_number,
            },
            "toStop": {
                "stopId": self.to_stop_id,
                "stopName": self.to_stop_name,
                "sectionNumber": self.to_section_number,
            },
            "sections": self.sections,
            "unitFare": self.unit_fare,
            "fare": self.fare,
            "dataSource": self.fare_source,
            "passengerCount": self.passenger_count,
            "paymentMethod": self.payment_method,
            "status": self.status,
            "conductorId": self.conductor_id,
            "issueDate": self.issued_at.isoformat() if self.issued_at else None,
            "cancelledAt": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelReason": self.cancel_reason,
        }


class TicketCounter(db.Model):
    """Per-day issuance sequence; bumped with a single UPDATE so concurrent issuers never share a number."""
    __tablename__ = 'ticket_counters'

    day      = db.Column(db.Date, primary_key=True)
    last_seq = db.Column(db.Integer, nullable=False, default=0)
