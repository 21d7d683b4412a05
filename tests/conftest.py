# tests/conftest.py
import pytest

from app import create_app
from auth_guard import issue_token
from config import TestingConfig
from db import db
from models.bus_route import BusRoute
from models.stop import Stop
from models.user import User
from seed import seed_demo


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def demo_route(app) -> BusRoute:
    """RT-001: 9 stops (sections 0..8), normal RouteSection fares [0,35,45,45,55,66,76,86,90]."""
    return seed_demo()


@pytest.fixture
def bare_route(app) -> BusRoute:
    """A route with stops but no RouteSection rows."""
    route = BusRoute(
        route_name="Ratnapura - Balangoda",
        route_number="RT-900",
        start_point="Ratnapura",
        end_point="Balangoda",
        distance_km=40,
        estimated_duration=80,
    )
    db.session.add(route)
    db.session.flush()
    for n in range(6):
        db.session.add(Stop(code=f"900-{n}", stop_name=f"Stop {n}", route_id=route.id, section_number=n, order=n))
    db.session.commit()
    return route


def user(username: str) -> User:
    return User.query.filter_by(username=username).one()


def auth_header(username: str) -> dict:
    return {"Authorization": f"Bearer {issue_token(user(username))}"}


@pytest.fixture
def conductor(demo_route) -> User:
    return user("conductor1")


@pytest.fixture
def as_conductor(demo_route) -> dict:
    return auth_header("conductor1")


@pytest.fixture
def as_admin(demo_route) -> dict:
    return auth_header("admin")


@pytest.fixture
def as_owner(demo_route) -> dict:
    return auth_header("busowner1")
