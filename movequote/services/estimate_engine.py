"""Price estimate for a moving quote.

``compute_estimate`` is a pure function of the rate configuration, the
customer's wizard selections and the (optional) route distance. It never
raises for a structurally valid selection: anything missing simply costs
nothing, and a missing rate or labor entry falls back to the team's
minimum hours.
"""
import math
from typing import Optional, Tuple

from movequote.models.estimate import EstimateResult
from movequote.models.pricing import RateConfiguration, TeamRate, default_team_tier
from movequote.models.selection import (
    DistanceResult,
    LaborHelpType,
    LocationDetails,
    WizardSelection,
)
from movequote.services.promo_service import apply_promo_discount

_UNSET = object()


def team_group_for(selection: WizardSelection) -> str:
    labor_help = selection.effective_labor_help
    if labor_help == LaborHelpType.LOADING_ONLY:
        return "loaders"
    if labor_help == LaborHelpType.UNLOADING_ONLY:
        return "unloading"
    return "move"


def resolve_team(rates: RateConfiguration, selection: WizardSelection) -> Tuple[str, Optional[str], TeamRate]:
    """Return ``(group, tier, pricing)`` for the crew the customer will get.

    A tier that does not belong to the group (e.g. left over from an earlier
    labor choice) is replaced by the group's recommended tier.
    """
    group = team_group_for(selection)
    table = getattr(rates.teams, group)
    tier = selection.team_tier if selection.team_tier in table else default_team_tier(group)
    pricing = table.get(tier) if tier else None
    return group, tier, pricing or TeamRate()


def _as_hours(value) -> Optional[float]:
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(hours) or hours <= 0:
        return None
    return hours


def resolve_labor_range(rates: RateConfiguration, selection: WizardSelection, minimum_hours: float) -> Tuple[float, float]:
    if selection.uses_explicit_hours:
        hours = _as_hours(selection.explicit_hours)
        adjusted = max(hours if hours is not None else minimum_hours, minimum_hours)
        return adjusted, adjusted

    labor_range = None
    if selection.move_type is not None and selection.size_bucket:
        group = getattr(rates.estimate_labor, selection.move_type.value)
        labor_range = group.get(selection.size_bucket)

    min_labor = max(labor_range.min_labor if labor_range else minimum_hours, minimum_hours)
    max_labor = max(labor_range.max_labor if labor_range else min_labor, min_labor)
    return min_labor, max_labor


def location_accessibility_cost(rates: RateConfiguration, location: LocationDetails) -> float:
    charges = rates.accessibility
    cost = 0.0
    if not location.has_elevator:
        cost += charges.no_elevator_charge
    if location.stairs_tier != "none":
        cost += charges.stairs_charge.get(location.stairs_tier, 0)
    # walking distance always looks up its tier; "short" is normally configured as 0
    cost += charges.walking_distance.get(location.walking_tier, 0)
    return cost


def compute_estimate(rates: RateConfiguration, selection: WizardSelection, distance=_UNSET) -> EstimateResult:
    """
    Combine rates and selections into a min/max price range.

    ``distance`` defaults to the selection's own resolved distance; pass
    ``None`` explicitly to price without travel.
    """
    if distance is _UNSET:
        distance = selection.distance
    distance = distance if isinstance(distance, DistanceResult) else None

    group, tier, team = resolve_team(rates, selection)
    min_labor, max_labor = resolve_labor_range(rates, selection, team.minimum_hours)

    min_labor_cost = min_labor * team.rate
    max_labor_cost = max_labor * team.rate

    travel_hours = distance.travel_hours if distance else 0.0
    miles = distance.miles if distance else 0.0
    travel_cost = travel_hours * team.rate * rates.travel_rate
    distance_cost = miles * rates.price_per_mile

    accessibility_cost = (
        location_accessibility_cost(rates, selection.origin)
        + location_accessibility_cost(rates, selection.destination)
    )
    protection_cost = rates.protection_charge if selection.protection_selected else 0.0

    shared = travel_cost + distance_cost + accessibility_cost + protection_cost
    min_total = min_labor_cost + shared
    max_total = max_labor_cost + shared

    promo = selection.applied_promo
    if promo is not None:
        discounted_min = apply_promo_discount(min_total, promo)
        discounted_max = apply_promo_discount(max_total, promo)
    else:
        discounted_min, discounted_max = min_total, max_total

    return EstimateResult(
        team_group=group,
        team_tier=tier,
        hourly_rate=team.rate,
        minimum_hours=team.minimum_hours,
        min_labor_hours=min_labor,
        max_labor_hours=max_labor,
        travel_hours=travel_hours,
        distance_miles=miles,
        min_labor_cost=min_labor_cost,
        max_labor_cost=max_labor_cost,
        travel_cost=travel_cost,
        distance_cost=distance_cost,
        accessibility_cost=accessibility_cost,
        protection_cost=protection_cost,
        min_total=min_total,
        max_total=max_total,
        discounted_min_total=discounted_min,
        discounted_max_total=discounted_max,
        promo=promo,
    )
