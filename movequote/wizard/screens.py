from enum import Enum


class WizardScreen(str, Enum):
    SERVICE_SELECT = "service_select"
    LABOR_HELP_SELECT = "labor_help_select"
    MOVE_TYPE_SELECT = "move_type_select"
    SIZE_SELECT = "size_select"
    CONTACT_INFO = "contact_info"
    MOVE_DATE = "move_date"
    MOVE_TIME = "move_time"
    ORIGIN_SEARCH = "origin_search"
    ORIGIN_DETAILS = "origin_details"
    DESTINATION_SEARCH = "destination_search"
    DESTINATION_DETAILS = "destination_details"
    TEAM_SELECT = "team_select"
    UNLOADING_HOURS = "unloading_hours"
    SERVICES_SELECT = "services_select"
    STORAGE_EDITOR = "storage_editor"
    PROTECTION_EDITOR = "protection_editor"
    PROMO_CODE = "promo_code"
    REVIEW = "review"
    SUBMITTED = "submitted"


SEARCH_SCREENS = {WizardScreen.ORIGIN_SEARCH, WizardScreen.DESTINATION_SEARCH}
EDITOR_SCREENS = {WizardScreen.STORAGE_EDITOR, WizardScreen.PROTECTION_EDITOR}

# screen the customer is searching from, per address target
SEARCH_SCREEN_FOR = {
    "origin": WizardScreen.ORIGIN_SEARCH,
    "destination": WizardScreen.DESTINATION_SEARCH,
}
DETAILS_SCREEN_FOR = {
    "origin": WizardScreen.ORIGIN_DETAILS,
    "destination": WizardScreen.DESTINATION_DETAILS,
}
