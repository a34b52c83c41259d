import pytest
from pydantic import ValidationError

from movequote.models.pricing import (
    DEFAULT_PRICING,
    RateConfiguration,
    default_team_tier,
    resolve_rate_config,
    team_title,
)


def test_defaults_are_complete():
    rates = resolve_rate_config()

    assert set(rates.teams.move) == {"2-1", "3-1", "3-2", "4-2"}
    assert rates.teams.move["2-1"].rate == 120
    assert rates.estimate_labor.home["2bed"].max_labor == 4
    assert rates.travel_rate == 0.75
    assert rates.accessibility.stairs_charge["5+"] == 50


def test_partial_pricing_is_merged_over_defaults():
    rates = resolve_rate_config({
        "teams": {"move": {"2-1": {"rate": 140}}},
        "pricePerMile": 3,
        "accessibility": {"walkingDistance": {"long": 40}},
    })

    assert rates.teams.move["2-1"].rate == 140
    assert rates.teams.move["2-1"].minimum_hours == 2
    assert rates.teams.move["4-2"].rate == 300
    assert rates.price_per_mile == 3
    assert rates.accessibility.walking_distance == {"short": 0, "medium": 15, "long": 40}


def test_null_values_keep_the_default():
    rates = resolve_rate_config({"travelRate": None, "protectionCharge": 20})
    assert rates.travel_rate == DEFAULT_PRICING["travelRate"]
    assert rates.protection_charge == 20


def test_resolved_configuration_passes_through():
    rates = resolve_rate_config()
    assert resolve_rate_config(rates) is rates


@pytest.mark.parametrize("override", [
    {"pricePerMile": -1},
    {"teams": {"move": {"2-1": {"rate": -120}}}},
    {"estimateLabor": {"home": {"2bed": {"minLabor": 5, "maxLabor": 4}}}},
    {"accessibility": {"stairsCharge": {"3-4": -25}}},
])
def test_invalid_pricing_is_rejected(override):
    with pytest.raises(ValidationError):
        resolve_rate_config(override)


def test_team_catalog_helpers():
    assert default_team_tier("move") == "2-1"
    assert default_team_tier("loaders") == "loaders-2"
    assert default_team_tier("unloading") == "2-1"
    assert default_team_tier("nothing") is None
    assert team_title("loaders", "loaders-3") == "3 loaders"
    assert team_title("move", "9-9") == "9-9"


def test_pricing_serializes_in_camel_case():
    data = resolve_rate_config().model_dump(by_alias=True)
    assert "estimateLabor" in data
    assert data["teams"]["move"]["2-1"] == {"rate": 120, "minimumHours": 2}
    assert isinstance(RateConfiguration.model_validate(data), RateConfiguration)
