"""
Merchandising calendar.

A fixed, year-independent rule table keyed by month-of-year is unrolled over
the 12-month forecast window. Generation depends on the start month only, so
regenerating for the same start month reproduces the same event ids and a
caller's saved selection stays valid.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

import deal

from sellabroad.forecast.markets import countries_for_market, country_display_name, market_for_country

HORIZON_MONTHS = 12
MAX_EVENT_DAY = 28
_FRIDAY = 4


class Scope(str, Enum):
    GLOBAL = "global"
    COUNTRY = "country"
    MULTI = "multi"


# ---------------------------------------------------------------------------
# month arithmetic
# ---------------------------------------------------------------------------


def month_start(d: date) -> date:
    return date(d.year, d.month, 1)


def add_months(d: date, n: int) -> date:
    """First day of the month ``n`` months after ``d``'s month."""
    idx = d.year * 12 + (d.month - 1) + n
    return date(idx // 12, idx % 12 + 1, 1)


_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_label(d: date) -> str:
    return f"{_MONTH_ABBR[d.month - 1]} {d.year}"


def peak_friday_day(year: int, month: int) -> int:
    """Day of the Friday 21 days after the month's first Friday, capped at 28."""
    first = date(year, month, 1)
    first_friday = 1 + (_FRIDAY - first.weekday()) % 7
    return min(first_friday + 21, MAX_EVENT_DAY)


# ---------------------------------------------------------------------------
# records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EventKey:
    scope: Scope
    countries: Tuple[str, ...]
    name: str
    date: date

    def serialize(self) -> str:
        # JSON array: names containing separators cannot collide
        return json.dumps(
            [self.scope.value, list(self.countries), self.name, self.date.isoformat()],
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @classmethod
    def parse(cls, raw: str) -> "EventKey":
        try:
            scope, countries, name, iso = json.loads(raw)
            return cls(Scope(scope), tuple(countries), str(name), date.fromisoformat(iso))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid event id: {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class MerchandisingEvent:
    key: EventKey
    conversion_lift_percent: int
    description: Optional[str] = None

    @property
    def id(self) -> str:
        return self.key.serialize()

    @property
    def name(self) -> str:
        return self.key.name

    @property
    def date(self) -> date:
        return self.key.date

    @property
    def scope(self) -> Scope:
        return self.key.scope

    @property
    def countries(self) -> Tuple[str, ...]:
        return self.key.countries

    @property
    def country(self) -> Optional[str]:
        return self.key.countries[0] if self.key.scope is Scope.COUNTRY else None

    @property
    def region(self) -> str:
        """Display market: the single country's market, EU for every other event."""
        return market_for_country(self.country) if self.country else "EU"


@dataclass(frozen=True, slots=True)
class EventRule:
    name: str
    day: Optional[int]  # None: floating peak Friday
    lift_percent: int
    scope: Scope = Scope.GLOBAL
    countries: Tuple[str, ...] = ()
    description: Optional[str] = None

    def resolve(self, year: int, month: int) -> date:
        day = peak_friday_day(year, month) if self.day is None else self.day
        return date(year, month, min(day, MAX_EVENT_DAY))

    def materialize(self, year: int, month: int) -> MerchandisingEvent:
        key = EventKey(self.scope, self.countries, self.name, self.resolve(year, month))
        return MerchandisingEvent(key=key, conversion_lift_percent=self.lift_percent, description=self.description)


def _global(day: Optional[int], name: str, lift: int, description: str) -> EventRule:
    return EventRule(name, day, lift, Scope.GLOBAL, (), description)


def _country(day: int, name: str, country: str, lift: int, description: str) -> EventRule:
    return EventRule(name, day, lift, Scope.COUNTRY, (country,), description)


def _multi(day: int, name: str, countries: Sequence[str], lift: int, description: str) -> EventRule:
    return EventRule(name, day, lift, Scope.MULTI, tuple(countries), description)


# Order inside each month matters: it drives the lift tie-break.
RULE_TABLE: Mapping[int, Tuple[EventRule, ...]] = MappingProxyType(
    {
        1: (
            _global(1, "New Year Sale", 7, "Post-holiday clearance"),
            _country(26, "Boxing Day", "UK", 12, "UK holiday sales"),
        ),
        2: (_global(14, "Valentine's Day", 5, "Gift shopping"),),
        3: (_global(15, "Easter prep / Spring sale", 6, "Spring promotions"),),
        4: (
            _global(20, "Easter", 8, "Holiday shopping"),
            _country(15, "Ramadan / Eid", "GCC", 18, "High gift-giving period"),
        ),
        5: (
            _global(10, "Mother's Day", 5, "Gift demand"),
            _global(1, "May Day / Labour Day", 3, "EU-wide public holiday"),
        ),
        6: (
            _global(21, "Summer Sales start", 8, "Worldwide mid-year sales"),
            _global(21, "Father's Day", 4, "Gift demand"),
        ),
        7: (
            _global(15, "Summer Sale", 9, "Mid-year promotion"),
            _country(14, "Bastille Day", "FR", 5, "National holiday"),
        ),
        8: (
            _global(15, "Back to School", 5, "Seasonal demand"),
            _country(15, "Assumption Day", "IT", 3, "Public holiday"),
            _country(15, "Assumption Day", "ES", 3, "Public holiday"),
        ),
        9: (
            _global(1, "Back to School (Sept)", 5, "Peak BTS"),
            _country(20, "Oktoberfest", "DE", 8, "Germany: major shopping period"),
        ),
        10: (
            _country(3, "German Unity Day", "DE", 4, "Public holiday"),
            _global(31, "Halloween", 6, "Seasonal shopping"),
        ),
        11: (
            _global(None, "Black Friday", 12, "Peak shopping"),
            _global(28, "Cyber Monday", 10, "E-commerce peak"),
            _global(11, "Singles' Day", 7, "Shopping festival"),
            _global(11, "St Martin's Day", 4, "EU & North America"),
        ),
        12: (
            _global(25, "Christmas", 12, "Peak holiday"),
            _global(6, "St Nicholas Day", 4, "EU & North America"),
            _multi(26, "Boxing Day", ("UK", "US", "Canada"), 10, "UK & North America only"),
            _country(2, "UAE National Day", "GCC", 10, "Local holiday"),
        ),
    }
)


# ---------------------------------------------------------------------------
# operations
# ---------------------------------------------------------------------------


@deal.post(lambda result: len({e.id for e in result}) == len(result), message="event ids must be unique")
@deal.raises(ValueError, TypeError, AttributeError)
def generate_events(forecast_start: date) -> List[MerchandisingEvent]:
    """
    Events for the 12 months beginning at ``forecast_start``'s month.

    Ordered by window month, then by rule order within the month.
    """
    base = month_start(forecast_start)
    events: List[MerchandisingEvent] = []
    for offset in range(HORIZON_MONTHS):
        m = add_months(base, offset)
        for rule in RULE_TABLE[m.month]:
            events.append(rule.materialize(m.year, m.month))
    return events


def applies_to_market(event: MerchandisingEvent, market: str) -> bool:
    if event.scope is Scope.GLOBAL:
        return True
    return not countries_for_market(market).isdisjoint(event.countries)


def default_selection(events: Iterable[MerchandisingEvent], market: Optional[str] = None) -> FrozenSet[str]:
    """Every event id, or only those applying to ``market``."""
    return frozenset(e.id for e in events if market is None or applies_to_market(e, market))


def toggle_event(selection: Iterable[str], event_id: str) -> FrozenSet[str]:
    """New selection with ``event_id`` flipped."""
    current = frozenset(selection)
    return current - {event_id} if event_id in current else current | {event_id}


def events_in_month(events: Iterable[MerchandisingEvent], month: date) -> List[MerchandisingEvent]:
    lo = month_start(month)
    hi = add_months(lo, 1)
    return [e for e in events if lo <= e.date < hi]


def event_label(event: MerchandisingEvent) -> str:
    if event.scope is Scope.GLOBAL:
        return event.name
    return f"{event.name} ({', '.join(country_display_name(c) for c in event.countries)})"
