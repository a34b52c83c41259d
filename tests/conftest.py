from datetime import date

import pytest

from movequote.core.config import settings
from movequote.models.pricing import resolve_rate_config
from movequote.models.selection import ContactInfo
from movequote.services.store import store


@pytest.fixture(autouse=True)
def reset_store():
    store.clear()
    yield
    store.clear()


@pytest.fixture(autouse=True)
def unconfigured_integrations(monkeypatch):
    """No test talks to Google, Resend or Gravity Forms unless it opts in."""
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", None)
    monkeypatch.setattr(settings, "RESEND_API_KEY", None)
    monkeypatch.setattr(settings, "GRAVITY_FORMS_BASE_URL", None)
    monkeypatch.setattr(settings, "GRAVITY_FORMS_PUBLIC_KEY", None)
    monkeypatch.setattr(settings, "GRAVITY_FORMS_PRIVATE_KEY", None)


@pytest.fixture
def rates():
    return resolve_rate_config()


@pytest.fixture
def contact():
    return ContactInfo(
        first_name="Ana",
        last_name="Lopez",
        email="ana.lopez@gmail.com",
        phone="5125550147",
    )


@pytest.fixture
def today():
    return date(2030, 4, 1)
