import pytest

from urbanesta.application.services.profile_service import ProfileService
from urbanesta.exceptions import NotFoundError, ValidationError


@pytest.fixture
def user(user_repo, clock):
    return user_repo.create("+919876543210", "Asha", "Noida", clock.now)


def test_update_profile_validates_and_updates(user_repo, user):
    svc = ProfileService(user_repo=user_repo)
    updated = svc.update_profile(user.id, name=" Asha Rao ", city="Gurgaon", email="Asha@Example.com")
    assert (updated.name, updated.city, updated.email) == ("Asha Rao", "Gurgaon", "asha@example.com")


@pytest.mark.parametrize("name,city,email,message", [
    ("", "Noida", "a@b.com", "Name is required"),
    ("Asha", " ", "a@b.com", "City is required"),
    ("Asha", "Noida", None, "Email is required"),
    ("Asha", "Noida", "not-an-email", "valid email"),
])
def test_update_profile_rejects_bad_fields(user_repo, user, name, city, email, message):
    with pytest.raises(ValidationError) as exc:
        ProfileService(user_repo=user_repo).update_profile(user.id, name, city, email)
    assert message in exc.value.detail


def test_email_must_be_unique(user_repo, user, clock):
    other = user_repo.create("+919000000000", "Ravi", "Delhi", clock.now)
    user_repo.update_profile(other.id, "Ravi", "Delhi", "ravi@example.com")
    with pytest.raises(ValidationError) as exc:
        ProfileService(user_repo=user_repo).update_profile(user.id, "Asha", "Noida", "ravi@example.com")
    assert "already in use" in exc.value.detail


def test_unknown_user(user_repo):
    with pytest.raises(NotFoundError):
        ProfileService(user_repo=user_repo).get_profile("missing")


def test_watchlist_add_is_idempotent_and_remove(user_repo, user):
    svc = ProfileService(user_repo=user_repo)
    svc.add_to_watchlist(user.id, "p1")
    svc.add_to_watchlist(user.id, "p1")
    svc.add_to_watchlist(user.id, "p2")
    assert svc.watchlist(user.id) == ["p1", "p2"]
    svc.remove_from_watchlist(user.id, "p1")
    assert svc.watchlist(user.id) == ["p2"]
    with pytest.raises(ValidationError):
        svc.add_to_watchlist(user.id, "")
