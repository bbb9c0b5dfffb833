from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple

# Tier-1 European markets served from the EU storefront.
EUROPE_TIER1_COUNTRIES: Tuple[Tuple[str, str], ...] = (
    ("UK", "United Kingdom"),
    ("DE", "Germany"),
    ("FR", "France"),
    ("IT", "Italy"),
    ("ES", "Spain"),
    ("NL", "Netherlands"),
    ("BE", "Belgium"),
    ("AT", "Austria"),
    ("IE", "Ireland"),
    ("SE", "Sweden"),
    ("DK", "Denmark"),
    ("FI", "Finland"),
    ("PL", "Poland"),
    ("PT", "Portugal"),
    ("CH", "Switzerland"),
    ("NO", "Norway"),
)

MARKET_COUNTRY_CODES: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {
        "GCC": frozenset({"GCC"}),
        "US": frozenset({"US"}),
        "Canada": frozenset({"Canada"}),
        "EU": frozenset(code for code, _ in EUROPE_TIER1_COUNTRIES),
    }
)

MARKET_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "GCC": "GCC",
        "EU": "New Europe",
        "US": "North America (US)",
        "Canada": "Canada",
    }
)

_COUNTRY_DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "GCC": "GCC",
        "US": "United States",
        "Canada": "Canada",
        **dict(EUROPE_TIER1_COUNTRIES),
    }
)


def countries_for_market(market: str) -> FrozenSet[str]:
    """Country codes of a market scope; empty for an unknown scope."""
    return MARKET_COUNTRY_CODES.get(market, frozenset())


def market_for_country(country: str) -> str:
    if country in ("GCC", "US", "Canada"):
        return country
    return "EU"


def country_display_name(code: str) -> str:
    return _COUNTRY_DISPLAY_NAMES.get(code, code)
