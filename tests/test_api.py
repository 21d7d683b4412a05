import datetime as dt

from models.ticket import Ticket


def _ticket_body(**kw):
    body = {"busNumber": "BUS-101", "fromSectionNumber": 2, "toSectionNumber": 7, "paymentMethod": "cash"}
    body.update(kw)
    return body


# ---------- auth ----------

def test_health(client):
    assert client.get("/").get_json()["status"] == "ok"


def test_login_and_me(client, demo_route):
    r = client.post("/auth/login", json={"username": "conductor1", "password": "conductor123"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["user"]["role"] == "conductor"
    assert body["assignedBus"]["busNumber"] == "BUS-101"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()["username"] == "conductor1"


def test_login_rejects_bad_password(client, demo_route):
    r = client.post("/auth/login", json={"username": "conductor1", "password": "nope"})
    assert r.status_code == 401


def test_guard(client, demo_route, as_owner):
    assert client.post("/fares/calculate", json={}).status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401
    r = client.post("/tickets/generate", json=_ticket_body(), headers=as_owner)
    assert r.status_code == 403


# ---------- fares / stops ----------

def test_calculate_fare(client, demo_route, as_conductor):
    r = client.post("/fares/calculate", headers=as_conductor, json={
        "routeId": demo_route.id, "fromSection": 2, "toSection": 7, "category": "normal",
    })
    assert r.status_code == 200
    body = r.get_json()
    assert body["fare"] == body["calculatedFare"] == 41
    assert body["sections"] == 5
    assert body["dataSource"] == "route-section"
    assert body["fromStop"]["stopName"] == "Sampathwatta"
    assert body["toStop"]["stopName"] == "Panamura"


def test_calculate_fare_return_direction(client, demo_route, as_conductor):
    r = client.post("/fares/calculate", headers=as_conductor, json={
        "routeId": demo_route.id, "fromSection": 6, "toSection": 1, "direction": "return",
    })
    assert r.status_code == 200
    assert r.get_json()["fare"] == 41


def test_calculate_fare_errors(client, demo_route, as_conductor):
    r = client.post("/fares/calculate", headers=as_conductor, json={
        "routeId": demo_route.id, "fromSection": 7, "toSection": 2,
    })
    assert r.status_code == 400
    assert r.get_json()["code"] == "INVALID_SECTION_ORDER"

    r = client.post("/fares/calculate", headers=as_conductor, json={
        "routeId": demo_route.id, "fromSection": -1, "toSection": 2,
    })
    assert r.get_json()["code"] == "NEGATIVE_SECTION"

    r = client.post("/fares/calculate", headers=as_conductor, json={
        "routeId": demo_route.id, "fromSection": 1, "toSection": 2, "surprise": True,
    })
    assert r.status_code == 400
    assert r.get_json()["code"] == "INVALID_PAYLOAD"


def test_matrix_and_structure(client, demo_route, as_conductor):
    m = client.get(f"/fares/matrix/{demo_route.id}?category=normal", headers=as_conductor).get_json()
    assert m["fareMatrix"][2][7]["fare"] == 41
    assert m["fareMatrix"][7][2] is None

    s = client.get("/fares/structure/luxury", headers=as_conductor).get_json()
    assert s["totalSections"] == 8
    assert s["fareStructure"][0] == {"section": 1, "fare": 64, "description": "1 section journey"}

    assert client.get("/fares/structure/bogus", headers=as_conductor).status_code == 400


def test_route_stops_by_direction(client, demo_route, as_conductor):
    fwd = client.get(f"/stops/route/{demo_route.id}", headers=as_conductor).get_json()
    back = client.get(f"/stops/route/{demo_route.id}?direction=return", headers=as_conductor).get_json()
    assert fwd["totalSections"] == 9
    assert fwd["stops"][0]["stopName"] == "Embilipitiya"
    assert back["stops"][0]["stopName"] == "Heen Iluk Hinna"
    assert [s["displayedSection"] for s in back["stops"]] == list(range(9))


def test_typed_section_lookup(client, demo_route, as_conductor):
    base = f"/stops/route/{demo_route.id}/section"
    r = client.get(f"{base}/1?direction=return&fromSection=6", headers=as_conductor)
    assert r.status_code == 200
    j = r.get_json()["journey"]
    assert (j["fromSection"], j["toSection"], j["sections"]) == (2, 7, 5)

    assert client.get(f"{base}/42", headers=as_conductor).status_code == 404
    r = client.get(f"{base}/1?fromSection=6", headers=as_conductor)
    assert r.get_json()["code"] == "BACKWARD_TRAVEL"


# ---------- tickets ----------

def test_generate_preview_cancel(client, demo_route, as_conductor):
    p = client.post("/tickets/preview", json=_ticket_body(passengerCount=2), headers=as_conductor)
    assert p.status_code == 200
    assert p.get_json()["fare"] == 82

    r1 = client.post("/tickets/generate", json=_ticket_body(), headers=as_conductor)
    r2 = client.post("/tickets/generate", json=_ticket_body(), headers=as_conductor)
    assert r1.status_code == r2.status_code == 201
    t1, t2 = r1.get_json()["ticket"], r2.get_json()["ticket"]
    assert t1["ticketNumber"] != t2["ticketNumber"]
    assert t1["ticketNumber"].startswith("TKT" + dt.datetime.now(dt.timezone.utc).strftime("%Y%m%d"))
    assert t1["dataSource"] == "route-section"

    found = client.get(f"/tickets/number/{t1['ticketNumber']}", headers=as_conductor)
    assert found.get_json()["ticket"]["id"] == t1["id"]

    c = client.patch(f"/tickets/{t1['id']}/cancel", json={"reason": "passenger left"}, headers=as_conductor)
    assert c.status_code == 200
    assert c.get_json()["ticket"]["status"] == "cancelled"

    again = client.patch(f"/tickets/{t1['id']}/cancel", json={}, headers=as_conductor)
    assert again.status_code == 409
    assert again.get_json()["code"] == "INVALID_TICKET_TRANSITION"

    mine = client.get("/tickets/my-tickets", headers=as_conductor).get_json()
    assert mine["summary"]["totalTickets"] == 2
    assert mine["summary"]["totalRevenue"] == 41


def test_generate_validation(client, demo_route, as_conductor):
    r = client.post("/tickets/generate", json=_ticket_body(passengerCount=0), headers=as_conductor)
    assert r.status_code == 400
    assert r.get_json()["errors"][0]["field"] == "passengerCount"

    r = client.post("/tickets/generate", json=_ticket_body(fromSectionNumber=7, toSectionNumber=2), headers=as_conductor)
    assert r.get_json()["code"] == "BACKWARD_TRAVEL"
    assert Ticket.query.count() == 0


# ---------- admin ----------

def test_manager_reports(client, demo_route, as_conductor, as_admin):
    for body in (_ticket_body(), _ticket_body(busNumber="BUS-301", fromSectionNumber=0, toSectionNumber=3)):
        assert client.post("/tickets/generate", json=body, headers=as_conductor).status_code == 201

    assert client.get("/manager/revenue-report", headers=as_conductor).status_code == 403

    rep = client.get("/manager/revenue-report", headers=as_admin).get_json()
    assert rep["summary"] == {"totalRevenue": 153, "totalTickets": 2, "averageFare": 76.5}
    assert rep["revenueByRoute"][0]["routeNumber"] == "RT-001"
    assert rep["revenueByConductor"][0]["conductorName"] == "conductor1"

    listing = client.get("/manager/tickets?status=active", headers=as_admin).get_json()
    assert listing["count"] == 2
    assert client.get("/manager/tickets?status=bogus", headers=as_admin).status_code == 400


def test_config_roles(client, demo_route, as_owner, as_admin):
    r = client.post("/config/sections", json={"sectionNumber": 9, "fare": 160, "category": "normal"}, headers=as_owner)
    assert r.status_code == 201

    # route sections are admin-only
    assert client.get(f"/config/route-sections/route/{demo_route.id}", headers=as_owner).status_code == 403

    listing = client.get(f"/config/route-sections/route/{demo_route.id}", headers=as_admin).get_json()
    assert listing["total"] == 9
    row_id = listing["groupedByCategory"]["normal"][7]["id"]

    bad = client.put(f"/config/route-sections/{row_id}", json={"fare": 10}, headers=as_admin)
    assert bad.status_code == 400
    assert bad.get_json()["code"] == "NON_MONOTONIC_FARE"


def test_auto_generate_endpoint(client, demo_route, as_admin):
    r = client.post(
        f"/config/route-sections/auto-generate/{demo_route.id}/semi-luxury",
        json={"fareMultiplier": 1.0},
        headers=as_admin,
    )
    assert r.status_code == 201
    assert [row["fare"] for row in r.get_json()["created"]] == [0, 52, 72, 91, 111, 130, 150, 169, 189]


def test_section_update_with_null_fare_keeps_fare(client, demo_route, as_owner):
    rows = client.get("/config/sections?category=normal", headers=as_owner).get_json()
    first = rows["sections"][0]

    r = client.put(f"/config/sections/{first['id']}", json={"fare": None}, headers=as_owner)
    assert r.status_code == 200
    assert r.get_json()["section"]["fare"] == first["fare"]


# ---------- management ----------

def test_route_management_roles(client, demo_route, as_owner, as_admin, as_conductor):
    body = {"routeName": "Embilipitiya - Ratnapura", "routeNumber": "RT-010", "endPoint": "Ratnapura",
            "distance": 65, "estimatedDuration": 120}
    assert client.post("/routes", json=body, headers=as_conductor).status_code == 403

    r = client.post("/routes", json=body, headers=as_owner)
    assert r.status_code == 201
    route_id = r.get_json()["route"]["id"]
    assert r.get_json()["route"]["startPoint"] == "Embilipitiya"

    dup = client.post("/routes", json=body, headers=as_owner)
    assert dup.status_code == 400
    extra = client.post("/routes", json={**body, "routeNumber": "RT-011", "color": "red"}, headers=as_owner)
    assert extra.status_code == 400
    assert extra.get_json()["code"] == "INVALID_PAYLOAD"

    assert client.put(f"/routes/{route_id}", json={"estimatedDuration": 110}, headers=as_owner).status_code == 200
    assert client.delete(f"/routes/{route_id}", headers=as_owner).status_code == 403
    assert client.delete(f"/routes/{route_id}", headers=as_admin).status_code == 200

    listed = client.get("/routes", headers=as_conductor).get_json()["routes"]
    assert [x["routeNumber"] for x in listed] == ["RT-001"]
    assert client.get(f"/routes/{route_id}", headers=as_conductor).status_code == 404
    assert client.get(f"/routes/{demo_route.id}", headers=as_conductor).get_json()["route"]["stopCount"] == 9


def test_stop_management(client, demo_route, as_owner, as_admin):
    body = {"code": "09", "stopName": "Kiriella", "routeId": demo_route.id, "sectionNumber": 9, "order": 9}
    r = client.post("/stops", json=body, headers=as_owner)
    assert r.status_code == 201
    stop_id = r.get_json()["stop"]["id"]

    walk = client.get(f"/stops/route/{demo_route.id}", headers=as_owner).get_json()
    assert walk["totalSections"] == 10

    upd = client.put(f"/stops/{stop_id}", json={"stopName": "Kiriella Junction"}, headers=as_owner)
    assert upd.get_json()["stop"]["stopName"] == "Kiriella Junction"

    assert client.delete(f"/stops/{stop_id}", headers=as_owner).status_code == 403
    assert client.delete(f"/stops/{stop_id}", headers=as_admin).status_code == 200
    walk = client.get(f"/stops/route/{demo_route.id}", headers=as_owner).get_json()
    assert walk["totalSections"] == 9


def test_bus_management(client, demo_route, as_owner, as_admin, as_conductor):
    by_cat = client.get(f"/buses/route/{demo_route.id}/category/semi-luxury", headers=as_conductor).get_json()
    assert [b["busNumber"] for b in by_cat["buses"]] == ["BUS-201"]
    assert by_cat["buses"][0]["route"]["routeNumber"] == "RT-001"
    assert client.get(f"/buses/route/{demo_route.id}/category/deluxe", headers=as_conductor).status_code == 400

    body = {"busNumber": "BUS-501", "routeId": demo_route.id, "category": "luxury", "capacity": 45}
    assert client.post("/buses", json=body, headers=as_owner).status_code == 403
    r = client.post("/buses", json=body, headers=as_admin)
    assert r.status_code == 201
    bus_id = r.get_json()["bus"]["id"]

    taken = client.put(f"/buses/{bus_id}", json={"busNumber": "BUS-101"}, headers=as_admin)
    assert taken.status_code == 400

    assert client.get("/buses/conductors/available", headers=as_admin).get_json()["conductors"] == []
    assert client.delete(f"/buses/{bus_id}", headers=as_admin).status_code == 200
    inactive = client.get("/buses?isActive=false", headers=as_conductor).get_json()["buses"]
    assert [b["busNumber"] for b in inactive] == ["BUS-501"]


def test_user_management(client, demo_route, as_owner, as_admin):
    assert client.get("/users", headers=as_owner).status_code == 403

    body = {"username": "conductor2", "email": "c2@busticket.com", "password": "secret99", "role": "conductor"}
    r = client.post("/users", json=body, headers=as_admin)
    assert r.status_code == 201
    uid = r.get_json()["user"]["id"]
    assert "password" not in r.get_json()["user"]
    assert client.post("/users", json=body, headers=as_admin).status_code == 400
    assert client.post("/users", json={**body, "username": "c3", "email": "x"}, headers=as_admin).status_code == 400

    login = client.post("/auth/login", json={"username": "conductor2", "password": "secret99"})
    assert login.status_code == 200

    off = client.patch(f"/users/{uid}/toggle-status", headers=as_admin).get_json()
    assert off == {"message": "User deactivated successfully", "isActive": False}
    assert client.post("/auth/login", json={"username": "conductor2", "password": "secret99"}).status_code == 403

    admin_id = client.get("/auth/me", headers=as_admin).get_json()["id"]
    assert client.delete(f"/users/{admin_id}", headers=as_admin).status_code == 403

    stats = client.get("/users/stats/overview", headers=as_admin).get_json()
    assert stats["totalInactiveUsers"] == 1
    assert client.get("/users?role=conductor", headers=as_admin).get_json()["total"] == 2
