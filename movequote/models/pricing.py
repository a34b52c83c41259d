"""Operator-defined rate tables for a widget.

The effective configuration is resolved once, when a widget is loaded or
saved, by merging whatever the operator stored over ``DEFAULT_PRICING``.
Everything downstream reads a complete :class:`RateConfiguration` and never
falls back to defaults on its own.
"""
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TeamRate(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rate: float = Field(0, ge=0, description="Hourly rate for the crew")
    minimum_hours: float = Field(0, ge=0, alias="minimumHours")


class LaborRange(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_labor: float = Field(..., ge=0, alias="minLabor")
    max_labor: float = Field(..., ge=0, alias="maxLabor")

    @model_validator(mode="after")
    def check_order(self):
        if self.min_labor > self.max_labor:
            raise ValueError("minLabor must not exceed maxLabor")
        return self


class TeamTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    move: Dict[str, TeamRate] = {}
    loaders: Dict[str, TeamRate] = {}
    unloading: Dict[str, TeamRate] = {}


class LaborTables(BaseModel):
    model_config = ConfigDict(frozen=True)

    home: Dict[str, LaborRange] = {}
    storage: Dict[str, LaborRange] = {}
    office: Dict[str, LaborRange] = {}


class AccessibilityCharges(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    no_elevator_charge: float = Field(0, ge=0, alias="noElevatorCharge")
    stairs_charge: Dict[str, float] = Field(default_factory=dict, alias="stairsCharge")
    walking_distance: Dict[str, float] = Field(default_factory=dict, alias="walkingDistance")

    @model_validator(mode="after")
    def check_non_negative(self):
        for table in (self.stairs_charge, self.walking_distance):
            for key, value in table.items():
                if value < 0:
                    raise ValueError(f"accessibility charge '{key}' must be >= 0")
        return self


class RateConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    teams: TeamTables
    estimate_labor: LaborTables = Field(..., alias="estimateLabor")
    travel_rate: float = Field(..., ge=0, alias="travelRate")
    price_per_mile: float = Field(..., ge=0, alias="pricePerMile")
    protection_charge: float = Field(..., ge=0, alias="protectionCharge")
    accessibility: AccessibilityCharges


class TeamOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    recommended: bool = False


TEAM_OPTIONS: Dict[str, List[TeamOption]] = {
    "move": [
        TeamOption(id="2-1", title="2 movers, 1 truck", recommended=True),
        TeamOption(id="3-1", title="3 movers, 1 truck"),
        TeamOption(id="3-2", title="3 movers, 2 trucks"),
        TeamOption(id="4-2", title="4 movers, 2 trucks"),
    ],
    "loaders": [
        TeamOption(id="loaders-2", title="2 loaders", recommended=True),
        TeamOption(id="loaders-3", title="3 loaders"),
    ],
    "unloading": [
        TeamOption(id="2-1", title="2 movers, 1 truck"),
        TeamOption(id="3-1", title="3 movers, 1 truck"),
    ],
}

SIZE_LABELS: Dict[str, str] = {
    "studio": "Studio",
    "1bed": "1 Bedroom",
    "2bed": "2 Bedroom",
    "3bed": "3 Bedroom",
    "4bed": "4 Bedroom",
    "5bed": "5+ Bedroom",
}

STAIRS_TIERS = ("none", "1-2", "3-4", "5+")
WALKING_TIERS = ("short", "medium", "long")


DEFAULT_PRICING: Dict[str, Any] = {
    "teams": {
        "move": {
            "2-1": {"rate": 120, "minimumHours": 2},
            "3-1": {"rate": 180, "minimumHours": 3},
            "3-2": {"rate": 220, "minimumHours": 2},
            "4-2": {"rate": 300, "minimumHours": 2},
        },
        "loaders": {
            "loaders-2": {"rate": 120, "minimumHours": 2},
            "loaders-3": {"rate": 180, "minimumHours": 2},
        },
        "unloading": {
            "2-1": {"rate": 0, "minimumHours": 2},
            "3-1": {"rate": 0, "minimumHours": 2},
        },
    },
    "estimateLabor": {
        "home": {
            "studio": {"minLabor": 2, "maxLabor": 3},
            "1bed": {"minLabor": 2.5, "maxLabor": 3.5},
            "2bed": {"minLabor": 3, "maxLabor": 4},
            "3bed": {"minLabor": 4, "maxLabor": 5},
            "4bed": {"minLabor": 5, "maxLabor": 6},
            "5bed": {"minLabor": 6, "maxLabor": 8},
        },
        "storage": {
            "25": {"minLabor": 1, "maxLabor": 1.5},
            "50": {"minLabor": 1.5, "maxLabor": 2},
            "75": {"minLabor": 2, "maxLabor": 2.5},
            "100": {"minLabor": 2.5, "maxLabor": 3},
            "200": {"minLabor": 3, "maxLabor": 4},
            "300": {"minLabor": 4, "maxLabor": 5},
        },
        "office": {
            "1-4": {"minLabor": 2, "maxLabor": 3},
            "5-9": {"minLabor": 3, "maxLabor": 4},
            "10-19": {"minLabor": 4, "maxLabor": 5},
            "20-49": {"minLabor": 5, "maxLabor": 7},
            "50-99": {"minLabor": 7, "maxLabor": 9},
            "over-100": {"minLabor": 10, "maxLabor": 12},
        },
    },
    # multiplier on the hourly rate while the crew is driving
    "travelRate": 0.75,
    "pricePerMile": 2.5,
    "protectionCharge": 15,
    "accessibility": {
        # per location
        "noElevatorCharge": 25,
        "stairsCharge": {"1-2": 0, "3-4": 25, "5+": 50},
        "walkingDistance": {"short": 0, "medium": 15, "long": 30},
    },
}


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def resolve_rate_config(raw: Optional[Mapping[str, Any]] = None) -> RateConfiguration:
    """Merge a stored (possibly partial) pricing table over the defaults.

    Accepts camelCase keys as stored by the widget editor. A
    :class:`RateConfiguration` is returned unchanged.
    """
    if isinstance(raw, RateConfiguration):
        return raw
    merged = _deep_merge(DEFAULT_PRICING, raw or {})
    return RateConfiguration.model_validate(merged)


def default_team_tier(group: str) -> Optional[str]:
    options = TEAM_OPTIONS.get(group) or []
    for option in options:
        if option.recommended:
            return option.id
    return options[0].id if options else None


def team_title(group: str, tier: Optional[str]) -> str:
    for option in TEAM_OPTIONS.get(group, []):
        if option.id == tier:
            return option.title
    return tier or ""
