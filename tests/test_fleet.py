import pytest

from db import db
from models.bus import Bus
from models.route_section import RouteSection
from models.stop import Stop
from schemas.fleet import BusCreate, BusUpdate, RouteCreate, RouteUpdate, StopCreate, StopUpdate
from services import fleet
from services.direction import canonical_stops
from services.errors import InvalidPayload, NotFound

from conftest import user


def _bus(number) -> Bus:
    return Bus.query.filter_by(bus_number=number).one()


# ---------- routes ----------

def test_create_route_defaults_start_point(app):
    r = fleet.create_route(RouteCreate.model_validate({
        "routeName": "Embilipitiya - Colombo",
        "routeNumber": "RT-002",
        "endPoint": "Colombo",
        "distance": 160.5,
        "estimatedDuration": 240,
    }))
    assert r.start_point == "Embilipitiya"
    assert r.to_dict()["distance"] == 160.5
    assert [x.route_number for x in fleet.list_routes()] == ["RT-002"]


def test_route_number_is_unique_and_revived(demo_route):
    body = {"routeName": "Again", "routeNumber": "RT-001", "endPoint": "X", "distance": 10, "estimatedDuration": 30}
    with pytest.raises(InvalidPayload):
        fleet.create_route(RouteCreate.model_validate(body))

    fleet.deactivate_route(demo_route.id)
    assert fleet.list_routes() == []
    with pytest.raises(NotFound):
        fleet.get_route(demo_route.id)

    again = fleet.create_route(RouteCreate.model_validate(body))
    assert again.id == demo_route.id
    assert again.route_name == "Again"
    assert again.is_active


def test_update_route_rejects_taken_number(demo_route, bare_route):
    with pytest.raises(InvalidPayload):
        fleet.update_route(bare_route.id, RouteUpdate(route_number="RT-001"))

    r = fleet.update_route(bare_route.id, RouteUpdate.model_validate({"distance": 42.0, "routeName": None}))
    assert float(r.distance_km) == 42.0
    assert r.route_name == "Ratnapura - Balangoda"


# ---------- stops ----------

def test_create_stop_on_route(bare_route):
    s = fleet.create_stop(StopCreate.model_validate({
        "code": "900-6",
        "stopName": "Balangoda",
        "routeId": bare_route.id,
        "sectionNumber": 6,
        "order": 6,
        "coordinates": {"latitude": 6.65, "longitude": 80.7},
    }))
    assert (s.latitude, s.longitude) == (6.65, 80.7)
    assert canonical_stops(bare_route.id)[-1].id == s.id


def test_create_stop_checks_route_and_code(demo_route, bare_route):
    with pytest.raises(NotFound):
        fleet.create_stop(StopCreate(code="X-1", stop_name="X", route_id=9999, section_number=1, order=1))
    with pytest.raises(InvalidPayload):
        fleet.create_stop(StopCreate(code="00", stop_name="Dup", route_id=bare_route.id, section_number=1, order=1))


def test_deactivated_stop_leaves_walk_and_can_be_revived(bare_route):
    stop = Stop.query.filter_by(code="900-3").one()
    fleet.deactivate_stop(stop.id)
    assert "900-3" not in [s.code for s in canonical_stops(bare_route.id)]
    with pytest.raises(NotFound):
        fleet.update_stop(stop.id, StopUpdate(stop_name="Y"))

    back = fleet.create_stop(StopCreate(code="900-3", stop_name="Stop 3b", route_id=bare_route.id, section_number=3, order=3))
    assert back.id == stop.id
    assert back.stop_name == "Stop 3b"


def test_renaming_stop_updates_route_section_copy(demo_route):
    stop = Stop.query.filter_by(route_id=demo_route.id, section_number=4).one()
    fleet.update_stop(stop.id, StopUpdate(stop_name="New Town"))
    rs = RouteSection.query.filter_by(stop_id=stop.id, category="normal").one()
    assert rs.stop_name == "New Town"


def test_update_stop_rejects_taken_code(demo_route):
    stop = Stop.query.filter_by(code="01").one()
    with pytest.raises(InvalidPayload):
        fleet.update_stop(stop.id, StopUpdate(code="02"))


# ---------- buses ----------

def test_buses_for_route_and_category(demo_route):
    assert [b.bus_number for b in fleet.buses_for(demo_route.id, "luxury")] == ["BUS-301"]
    fleet.deactivate_bus(_bus("BUS-301").id)
    assert fleet.buses_for(demo_route.id, "luxury") == []
    assert len(fleet.list_buses(route_id=demo_route.id)) == 4
    assert len(fleet.list_buses(is_active=False)) == 1


def test_conductor_can_drive_only_one_active_bus(demo_route):
    conductor = user("conductor1")
    body = {"busNumber": "BUS-102", "routeId": demo_route.id, "conductorId": conductor.id}
    with pytest.raises(InvalidPayload, match="already assigned"):
        fleet.create_bus(BusCreate.model_validate(body))
    with pytest.raises(InvalidPayload, match="Invalid conductor"):
        fleet.create_bus(BusCreate.model_validate({**body, "conductorId": user("busowner1").id}))

    assert fleet.available_conductors() == []
    fleet.deactivate_bus(_bus("BUS-101").id)
    assert [u.username for u in fleet.available_conductors()] == ["conductor1"]

    bus = fleet.create_bus(BusCreate.model_validate(body))
    assert bus.capacity == 50
    assert bus.category == "normal"
    db.session.expire_all()
    assert user("conductor1").assigned_bus.bus_number == "BUS-102"


def test_update_bus_null_clears_conductor_only(demo_route):
    bus = _bus("BUS-101")
    fleet.update_bus(bus.id, BusUpdate.model_validate({"conductorId": None, "capacity": None}))
    assert bus.conductor_id is None
    assert bus.capacity == 50

    moved = fleet.update_bus(_bus("BUS-201").id, BusUpdate(conductor_id=user("conductor1").id))
    assert moved.conductor_id == user("conductor1").id


def test_update_bus_checks_number_and_route(demo_route):
    bus = _bus("BUS-201")
    with pytest.raises(InvalidPayload):
        fleet.update_bus(bus.id, BusUpdate(bus_number="BUS-101"))
    with pytest.raises(NotFound):
        fleet.update_bus(bus.id, BusUpdate(route_id=9999))


def test_deleted_bus_number_is_revived(demo_route):
    old = _bus("BUS-401")
    fleet.deactivate_bus(old.id)
    with pytest.raises(NotFound):
        fleet.deactivate_bus(old.id)

    again = fleet.create_bus(BusCreate.model_validate({
        "busNumber": "BUS-401", "routeId": demo_route.id, "category": "luxury", "capacity": 40,
    }))
    assert again.id == old.id
    assert (again.category, again.capacity, again.is_active) == ("luxury", 40, True)
