#!/usr/bin/env python3
# seed.py
"""
Demo data: route RT-001 (Embilipitiya - Heen Iluk Hinna) with its nine stops,
cumulative `normal` fares, the category Section table, one bus per category
and an admin / bus owner / conductor account.

Safe to run more than once: existing rows are looked up by their natural key
and left alone.

    flask --app app seed-demo
    python seed.py
"""

import logging

from db import db
from models.bus import Bus
from models.bus_route import BusRoute
from models.route_section import RouteSection
from models.section import Section
from models.stop import Stop
from models.user import User

log = logging.getLogger("seed")

USERS = [
    # username, email, password, role, employee id
    ("admin",      "admin@busticket.com",     "admin123",     "admin",     None),
    ("busowner1",  "owner@busticket.com",     "owner123",     "bus_owner", None),
    ("conductor1", "conductor@busticket.com", "conductor123", "conductor", "EMP-001"),
]

ROUTE = {
    "route_name": "Embilipitiya - Heen Iluk Hinna",
    "route_number": "RT-001",
    "start_point": "Embilipitiya",
    "end_point": "Heen Iluk Hinna",
    "distance_km": 45,
    "estimated_duration": 90,
}

# code, name, canonical section, cumulative `normal` fare
STOPS = [
    ("00", "Embilipitiya",    0, 0),
    ("01", "Udagama",         1, 35),
    ("02", "Sampathwatta",    2, 45),
    ("03", "Thelbaduara",     3, 45),
    ("04", "2 Kanuwa",        4, 55),
    ("05", "3 Kanuwa",        5, 66),
    ("06", "5 Kanuwa",        6, 76),
    ("07", "Panamura",        7, 86),
    ("08", "Heen Iluk Hinna", 8, 90),
]

# fare for a journey of N sections (index 0 -> 1 section)
SECTION_FARES = {
    "normal":       [40, 55, 70, 85, 100, 115, 130, 145],
    "semi-luxury":  [52, 72, 91, 111, 130, 150, 169, 189],
    "luxury":       [64, 88, 112, 136, 160, 184, 208, 232],
    "super-luxury": [80, 110, 140, 170, 200, 230, 260, 290],
}

BUSES = [
    # bus number, category, driver
    ("BUS-101", "normal",       "Sunil Perera"),
    ("BUS-201", "semi-luxury",  "Kamal Silva"),
    ("BUS-301", "luxury",       "Nimal Fernando"),
    ("BUS-401", "super-luxury", "Ruwan Jayasinghe"),
]


def _user(username, email, password, role, employee_id) -> User:
    u = User.query.filter_by(username=username).first()
    if u:
        return u
    u = User(username=username, email=email, role=role, employee_id=employee_id)
    u.set_password(password)
    db.session.add(u)
    log.info("➕ user %s (%s)", username, role)
    return u


def seed_demo() -> BusRoute:
    """Seed into the current app context's database. Returns the demo route."""
    users = {row[0]: _user(*row) for row in USERS}
    db.session.flush()

    route = BusRoute.query.filter_by(route_number=ROUTE["route_number"]).first()
    if not route:
        route = BusRoute(created_by=users["busowner1"].id, **ROUTE)
        db.session.add(route)
        db.session.flush()
        log.info("➕ route %s", route.route_number)

    for code, name, section, fare in STOPS:
        stop = Stop.query.filter_by(code=code).first()
        if not stop:
            stop = Stop(code=code, stop_name=name, route_id=route.id,
                        section_number=section, order=section, fare=fare)
            db.session.add(stop)
            db.session.flush()
        if not RouteSection.query.filter_by(route_id=route.id, stop_id=stop.id, category="normal").first():
            db.session.add(RouteSection(
                route_id=route.id, stop_id=stop.id, category="normal",
                section_number=section, fare=fare, order=section + 1,
                stop_code=code, stop_name=name,
            ))

    for category, fares in SECTION_FARES.items():
        for n, fare in enumerate(fares, start=1):
            if Section.query.filter_by(section_number=n, category=category).first():
                continue
            db.session.add(Section(
                section_number=n, category=category, fare=fare,
                description=f"{n} section{'s' if n > 1 else ''} journey",
            ))

    conductor = users["conductor1"]
    for number, category, driver in BUSES:
        if Bus.query.filter_by(bus_number=number).first():
            continue
        db.session.add(Bus(
            bus_number=number, route_id=route.id, category=category, driver_name=driver,
            conductor_id=conductor.id if number == "BUS-101" else None,
        ))

    db.session.commit()
    log.info("✅ demo data ready (route id=%s)", route.id)
    return route


if __name__ == "__main__":
    from app import create_app

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = create_app()
    with app.app_context():
        db.create_all()
        seed_demo()
