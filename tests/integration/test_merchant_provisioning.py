"""Integration tests for the merchant provisioning saga.

The identity service is a recording fake; the database is SQLite.
"""

from datetime import date

import pytest
from sqlmodel import select

from app.core.errors import AuthorizationError, ConflictError
from app.models.profile import Profile
from app.models.store import Store
from app.repositories.profile_repo import ProfileRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.merchant import MerchantRegistration, StorePlanUpdate
from app.services.merchant_service import MerchantService
from tests.conftest import FakeIdentityService
from tests.factories import make_admin, make_plan, make_profile, make_store

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _registration(**overrides):
    data = {
        "storeName": "Sweet Corner",
        "slug": "sweet-corner",
        "category": "bakery",
        "subscriptionType": "Pro",
        "subscriptionDuration": 6,
        "startDate": "2026-08-31",
        "ownerName": "Sara Ahmed",
        "phone": "07701234567",
        "email": "sara@sweetcorner.iq",
        "password": "secret123",
    }
    data.update(overrides)
    return MerchantRegistration.model_validate(data)


def _service(identity):
    return MerchantService(StoreRepository(), ProfileRepository(), identity)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_provision_creates_identity_profile_and_store(session, identity):
    admin = make_admin(session)
    plan = make_plan(session, name_en="Pro")

    store = _service(identity).provision_merchant(session, admin, _registration())

    assert identity.created == [store.merchant_id]
    profile = session.get(Profile, store.merchant_id)
    assert profile.role == "merchant"
    assert profile.full_name == "Sara Ahmed"
    assert store.slug == "sweet-corner"
    assert store.plan_id == plan.id
    assert store.subscription_type == "Pro"
    assert store.plan_started_at.date() == date(2026, 8, 31)
    assert store.plan_expires_at.date() == date(2027, 2, 28)


# ---------------------------------------------------------------------------
# Failures and compensation
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_non_admin_has_no_side_effects(session, identity):
    merchant = make_profile(session)

    with pytest.raises(AuthorizationError):
        _service(identity).provision_merchant(session, merchant, _registration())

    assert identity.created == []
    assert session.exec(select(Store)).all() == []


@pytest.mark.integration
def test_duplicate_slug_deletes_created_identity(session, identity):
    admin = make_admin(session)
    make_store(session, slug="sweet-corner")
    profiles_before = len(session.exec(select(Profile)).all())

    with pytest.raises(ConflictError, match="slug"):
        _service(identity).provision_merchant(session, admin, _registration())

    assert len(identity.created) == 1
    assert identity.deleted == identity.created
    assert identity.users == {}
    assert len(session.exec(select(Profile)).all()) == profiles_before
    assert len(session.exec(select(Store)).all()) == 1


@pytest.mark.integration
def test_failed_identity_cleanup_still_reports_slug_conflict(session):
    identity = FakeIdentityService(fail_delete=True)
    admin = make_admin(session)
    make_store(session, slug="sweet-corner")

    with pytest.raises(ConflictError, match="slug"):
        _service(identity).provision_merchant(session, admin, _registration())

    assert identity.deleted == []


@pytest.mark.integration
def test_duplicate_email_is_a_conflict(session, identity):
    admin = make_admin(session)
    service = _service(identity)
    service.provision_merchant(session, admin, _registration())

    with pytest.raises(ConflictError, match="email"):
        service.provision_merchant(session, admin, _registration(slug="another-shop"))

    assert len(session.exec(select(Store)).all()) == 1


@pytest.mark.integration
def test_invalid_payload_never_reaches_services():
    with pytest.raises(ValueError):
        _registration(slug="Bad Slug!")
    with pytest.raises(ValueError):
        _registration(subscriptionDuration=5)
    with pytest.raises(ValueError):
        _registration(email="not-an-email")


# ---------------------------------------------------------------------------
# Admin store management
# ---------------------------------------------------------------------------


@pytest.mark.integration
def test_update_store_plan(session, identity):
    premium = make_plan(session, name_en="Premium")
    store = make_store(session)

    updated = _service(identity).update_store_plan(
        session,
        store.id,
        StorePlanUpdate.model_validate(
            {"subscriptionType": "Premium", "subscriptionDuration": 12, "startDate": "2026-01-15"}
        ),
    )

    assert updated.plan_id == premium.id
    assert updated.subscription_type == "Premium"
    assert updated.plan_expires_at.date() == date(2027, 1, 15)


@pytest.mark.integration
def test_check_slug_exists(session, identity):
    make_store(session, slug="taken-slug")
    service = _service(identity)

    assert service.check_slug_exists(session, "taken-slug") is True
    assert service.check_slug_exists(session, "free-slug") is False
