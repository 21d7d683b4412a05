# backend/services/fares.py
"""
Fare resolution.

A journey between two canonical sections of a route is priced from the first
data source that can answer it:

  1. RouteSection  -> to.fare - from.fare (cumulative)   source 'route-section'
  2. Section table -> flat fare for N sections           source 'section-based'
  3. formula       -> ceil((base + N * per) * mult)      source 'calculated'

Section numbers handled here are CANONICAL (origin stop = 0, ascending).
Callers holding displayed numbers reconcile them first (services.direction).

Amounts are WHOLE RUPEES (ints).

Public API:
  - FareResolver().resolve(route_id, category, from_section, to_section) -> FareQuote
  - FareResolver().formula_fare(sections, category) -> (fare, source)
  - FareResolver().fare_matrix(route_id, category) -> (stops, rows)
  - fare_structure(category) -> [Section, ...]
  - normalize_source(tag) -> canonical source tag
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from flask import current_app

from models.route_section import RouteSection
from models.section import Section
from services.direction import canonical_stops
from services.errors import InvalidSectionOrder, NegativeSection

SOURCE_ROUTE_SECTION       = "route-section"
SOURCE_SECTION_BASED       = "section-based"
SOURCE_CALCULATED          = "calculated"
SOURCE_CALCULATED_FALLBACK = "calculated-fallback"

SOURCES = (
    SOURCE_ROUTE_SECTION,
    SOURCE_SECTION_BASED,
    SOURCE_CALCULATED,
    SOURCE_CALCULATED_FALLBACK,
)

# labels older clients/reports still send
_LEGACY_SOURCES = {
    "routesection": SOURCE_ROUTE_SECTION,
    "route_section": SOURCE_ROUTE_SECTION,
    "fallbacktable": SOURCE_SECTION_BASED,
    "section": SOURCE_SECTION_BASED,
}


def normalize_source(tag: Optional[str]) -> Optional[str]:
    if tag is None:
        return None
    raw = str(tag).strip()
    if raw in SOURCES:
        return raw
    key = raw.lower()
    if key in SOURCES:
        return key
    return _LEGACY_SOURCES.get(key, raw)


class FareQuote(NamedTuple):
    fare: int
    sections: int
    source: str
    from_row: Optional[RouteSection] = None
    to_row: Optional[RouteSection] = None


class FareResolver:
    def __init__(
        self,
        base_fare: Optional[int] = None,
        per_section_fare: Optional[int] = None,
        multipliers: Optional[Dict[str, float]] = None,
    ):
        cfg = current_app.config
        self.base_fare = int(cfg["FARE_BASE"] if base_fare is None else base_fare)
        self.per_section_fare = int(cfg["FARE_PER_SECTION"] if per_section_fare is None else per_section_fare)
        self.multipliers = dict(cfg["FARE_CATEGORY_MULTIPLIERS"] if multipliers is None else multipliers)

    # ---------- tiers ----------

    def _route_section_rows(self, route_id: int, category: str, numbers: Iterable[int]) -> Dict[int, RouteSection]:
        rows = (
            RouteSection.query
            .filter(
                RouteSection.route_id == route_id,
                RouteSection.category == category,
                RouteSection.is_active.is_(True),
                RouteSection.section_number.in_(list(numbers)),
            )
            .order_by(RouteSection.order.asc(), RouteSection.id.asc())
            .all()
        )
        out: Dict[int, RouteSection] = {}
        for r in rows:
            out.setdefault(int(r.section_number), r)
        return out

    def _section_entry(self, sections: int, category: str) -> Optional[Section]:
        return (
            Section.query
            .filter_by(section_number=sections, category=category, is_active=True)
            .first()
        )

    def formula_fare(self, sections: int, category: str) -> Tuple[int, str]:
        mult = self.multipliers.get(category)
        source = SOURCE_CALCULATED
        if mult is None:
            mult = 1.0
            source = SOURCE_CALCULATED_FALLBACK
        raw = Decimal(self.base_fare + sections * self.per_section_fare) * Decimal(str(mult))
        return int(math.ceil(raw)), source

    # ---------- public ----------

    def resolve(self, route_id: int, category: str, from_section: int, to_section: int) -> FareQuote:
        from_section, to_section = int(from_section), int(to_section)

        if from_section < 0 or to_section < 0:
            raise NegativeSection(
                "Section numbers must be zero or greater",
                fromSection=from_section,
                toSection=to_section,
            )
        if to_section < from_section:
            raise InvalidSectionOrder(
                "Invalid section numbers. From section must be less than to section.",
                fromSection=from_section,
                toSection=to_section,
            )

        sections = to_section - from_section
        if sections == 0:
            return FareQuote(0, 0, SOURCE_CALCULATED)

        rows = self._route_section_rows(route_id, category, (from_section, to_section))
        frm, to = rows.get(from_section), rows.get(to_section)
        if frm is not None and to is not None:
            fare = int(to.fare) - int(frm.fare)
            if fare >= 0:
                current_app.logger.debug(
                    "[fares] route=%s cat=%s %s->%s route-section fare=%s",
                    route_id, category, from_section, to_section, fare,
                )
                return FareQuote(fare, sections, SOURCE_ROUTE_SECTION, frm, to)
            current_app.logger.warning(
                "[fares] route=%s cat=%s cumulative fares decrease between sections %s and %s; skipping route sections",
                route_id, category, from_section, to_section,
            )

        entry = self._section_entry(sections, category)
        if entry is not None:
            current_app.logger.debug(
                "[fares] route=%s cat=%s sections=%s section-based fare=%s",
                route_id, category, sections, entry.fare,
            )
            return FareQuote(int(entry.fare), sections, SOURCE_SECTION_BASED)

        fare, source = self.formula_fare(sections, category)
        current_app.logger.info(
            "[fares] route=%s cat=%s sections=%s no fare data; %s fare=%s",
            route_id, category, sections, source, fare,
        )
        return FareQuote(fare, sections, source)

    def fare_matrix(self, route_id: int, category: str):
        """
        Upper-triangular point-to-point table over the route's canonical stops.
        Cells on or below the diagonal are None.
        """
        stops = canonical_stops(route_id)
        rows: List[List[Optional[dict]]] = []
        for i, origin in enumerate(stops):
            row: List[Optional[dict]] = []
            for j, dest in enumerate(stops):
                if j <= i or dest.section_number <= origin.section_number:
                    row.append(None)
                    continue
                q = self.resolve(route_id, category, origin.section_number, dest.section_number)
                row.append({
                    "from": origin.stop_name,
                    "to": dest.stop_name,
                    "fare": q.fare,
                    "sections": q.sections,
                    "dataSource": q.source,
                })
            rows.append(row)
        return stops, rows


def fare_structure(category: str) -> List[Section]:
    return (
        Section.query
        .filter_by(category=category, is_active=True)
        .order_by(Section.section_number.asc())
        .all()
    )
