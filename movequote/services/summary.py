"""Human-readable labels for the review screen and the confirmation payload.

Nothing here feeds back into pricing; amounts are only rounded for display.
"""
import math
import re
from datetime import date
from typing import Optional

from movequote.models.pricing import SIZE_LABELS
from movequote.models.selection import LaborHelpType, LocationDetails, MoveType, ServiceType

TIME_OPTIONS = [
    {"id": "morning", "label": "8AM-12PM", "description": "Morning", "value": "08:00"},
    {"id": "afternoon", "label": "12PM-4PM", "description": "Afternoon", "value": "12:00"},
]


def format_currency(value: float) -> str:
    if value is None or not math.isfinite(value):
        return "$0"
    has_decimals = abs(value - round(value)) > 1e-9
    sign = "-" if value < 0 else ""
    if has_decimals:
        return f"{sign}${abs(value):,.2f}"
    return f"{sign}${abs(value):,.0f}"


def format_estimate_range(min_value: float, max_value: float) -> str:
    if not math.isfinite(min_value) or not math.isfinite(max_value):
        return format_currency(0)
    if abs(min_value - max_value) < 0.01:
        return format_currency(max_value)
    return f"{format_currency(min_value)}-{format_currency(max_value)}"


def format_hour_label(hours: float) -> str:
    normalized = hours if math.isfinite(hours) else 0
    unit = "hour" if normalized == 1 else "hours"
    return f"{normalized:g} {unit}"


def labor_hours_label(min_hours: float, max_hours: float) -> str:
    if abs(min_hours - max_hours) < 1e-9:
        return format_hour_label(max_hours)
    return f"{min_hours:g}-{format_hour_label(max_hours)}"


def format_location(location: LocationDetails, fallback: str) -> str:
    parts = [location.query_string.strip(), location.unit.strip()]
    label = ", ".join(part for part in parts if part)
    return label or fallback


def labor_help_label(labor_help_type: Optional[LaborHelpType]) -> str:
    if labor_help_type == LaborHelpType.LOADING_ONLY:
        return "Loading only"
    if labor_help_type == LaborHelpType.UNLOADING_ONLY:
        return "Unloading only"
    return "Loading and unloading"


def move_activity_label(service_type: Optional[ServiceType], labor_help_type: Optional[LaborHelpType]) -> str:
    if service_type != ServiceType.LABOR_ONLY:
        return "Move (loading, travel, unloading)"
    return f"Move ({labor_help_label(labor_help_type).lower()})"


def laborer_count_label(labor_help_type: Optional[LaborHelpType], team_title: str) -> str:
    match = re.search(r"\d+", team_title or "")
    count = match.group(0) if match else "2"
    if labor_help_type == LaborHelpType.LOADING_ONLY:
        return f"{count} Loaders"
    if labor_help_type == LaborHelpType.UNLOADING_ONLY:
        return f"{count} Unloaders"
    return f"{count} Movers"


def move_type_summary(move_type: Optional[MoveType], size_bucket: Optional[str]) -> str:
    if move_type == MoveType.HOME:
        size_label = SIZE_LABELS.get(size_bucket or "")
        return f"{size_label} home" if size_label else "Home"
    if move_type == MoveType.OFFICE:
        return "Office move"
    if move_type == MoveType.STORAGE:
        return "Storage move"
    return "Move"


def _time_option(value: Optional[str]) -> Optional[dict]:
    for option in TIME_OPTIONS:
        if option["value"] == value:
            return option
    return None


def time_range_label(value: Optional[str]) -> str:
    option = _time_option(value)
    return option["label"] if option else ""


def time_slot_description(value: Optional[str]) -> str:
    option = _time_option(value)
    return option["description"] if option else ""


def format_long_date(value: Optional[date]) -> str:
    if value is None:
        return "your selected date"
    return f"{value:%A}, {value:%B} {value.day}"


def move_date_summary(move_date: Optional[date], move_time: Optional[str]) -> str:
    label = format_long_date(move_date)
    time_label = time_range_label(move_time)
    if time_label:
        label += f", {time_label}"
    description = time_slot_description(move_time)
    if description:
        label += f" ({description.lower()})"
    return label
