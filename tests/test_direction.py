import pytest

from services.direction import (
    canonical_stops,
    displayed_stops,
    find_displayed_stop,
    locate_journey,
    reconcile,
    resolve_destination,
    route_span,
    to_canonical,
    to_display,
)
from services.errors import BackwardTravel, InvalidPayload, NegativeSection, NotFound


def test_mirror_refers_to_same_stop(demo_route):
    stops = canonical_stops(demo_route.id)
    n = route_span(stops)
    assert n == 9
    forward = dict(displayed_stops(stops, "forward"))
    back = dict(displayed_stops(stops, "return"))
    for k in range(n):
        assert forward[k].id == back[n - 1 - k].id


def test_display_round_trips():
    for k in range(9):
        assert to_canonical(to_display(k, 9, "return"), 9, "return") == k
        assert to_display(k, 9, "forward") == k


def test_forward_reconcile():
    assert reconcile(9, "forward", 2, 7) == (2, 7)


def test_return_reconcile_unmirrors():
    # displayed 6 -> 1 on the way back is canonical 2 -> 7
    assert reconcile(9, "return", 6, 1) == (2, 7)


@pytest.mark.parametrize("direction,frm,to", [
    ("forward", 7, 2),
    ("forward", 3, 3),
    ("return", 1, 6),
])
def test_backward_travel_rejected(direction, frm, to):
    with pytest.raises(BackwardTravel) as exc:
        reconcile(9, direction, frm, to)
    assert direction in exc.value.message


def test_reconcile_bounds():
    with pytest.raises(NegativeSection):
        reconcile(9, "forward", -1, 3)
    with pytest.raises(NotFound):
        reconcile(9, "forward", 2, 9)


def test_locate_journey_return_snapshots_canonical_stops(demo_route):
    j = locate_journey(demo_route.id, "return", 6, 1)
    assert (j.from_section, j.to_section) == (2, 7)
    assert j.from_stop.stop_name == "Sampathwatta"
    assert j.to_stop.stop_name == "Panamura"


def test_locate_journey_bad_direction(demo_route):
    with pytest.raises(InvalidPayload):
        locate_journey(demo_route.id, "sideways", 1, 2)


def test_typed_destination(demo_route):
    stops = canonical_stops(demo_route.id)
    shown, stop = find_displayed_stop(stops, "return", " 0 ")
    assert shown == 0
    assert stop.stop_name == "Heen Iluk Hinna"


@pytest.mark.parametrize("typed", ["42", "abc", "", None])
def test_typed_destination_not_found(demo_route, typed):
    stops = canonical_stops(demo_route.id)
    with pytest.raises(NotFound):
        find_displayed_stop(stops, "forward", typed)


def test_resolve_destination_revalidates(demo_route):
    stops = canonical_stops(demo_route.id)
    j = resolve_destination(stops, "forward", 2, "5")
    assert (j.from_section, j.to_section) == (2, 5)
    assert j.to_stop.stop_name == "3 Kanuwa"

    with pytest.raises(BackwardTravel):
        resolve_destination(stops, "forward", 5, "2")
