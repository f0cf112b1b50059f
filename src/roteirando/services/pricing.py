"""Ticket pricing and revenue for tour attendance."""

from collections.abc import Iterable

from roteirando.domain.attendance import AttendanceInfo
from roteirando.domain.models import Group, PriceTier, Tour


def resolve_price_tier(tour: Tour, selected_price_key: str | None) -> PriceTier | None:
    """Return the tier a group selected, matching case-insensitively as a fallback."""
    if not tour.prices or not selected_price_key:
        return None
    key = selected_price_key.strip()
    if not key:
        return None
    if key in tour.prices:
        return tour.prices[key]
    lowered = key.lower()
    for tier_key, tier in tour.prices.items():
        if tier_key.lower() == lowered:
            return tier
    return None


def price_per_person(tour: Tour, info: AttendanceInfo) -> float:
    """Return the ticket price applied to each attending member."""
    tier = resolve_price_tier(tour, info.selected_price_key)
    if tier is not None and tier.value is not None:
        return tier.value
    return tour.price


def amount_for_group(tour: Tour, info: AttendanceInfo) -> float:
    """Return what a group owes for a tour."""
    if info.is_empty:
        return 0
    return len(info.members) * price_per_person(tour, info)


def total_revenue_for_tour(tour: Tour, groups: Iterable[Group]) -> float:
    """Sum the amount owed by every group for a tour."""
    return sum(
        amount_for_group(tour, group.attendance_for(tour.id)) for group in groups
    )
