import pytest

from urbanesta.utils import (
    format_phone_for_api, format_phone_for_storage, is_valid_local_phone, mask_phone, is_valid_email,
)


@pytest.mark.parametrize("raw", ["9876543210", "9123456789", "7000000001"])
def test_local_numbers_get_country_code(raw):
    assert format_phone_for_api(raw) == "91" + raw
    assert format_phone_for_storage(raw) == "+91" + raw


@pytest.mark.parametrize("raw", ["9876543210", "9123456789"])
def test_formatting_is_idempotent(raw):
    api = format_phone_for_api(raw)
    stored = format_phone_for_storage(raw)
    assert format_phone_for_api(api) == api
    assert format_phone_for_storage(stored) == stored


def test_prefixed_numbers_are_not_double_prefixed():
    assert format_phone_for_api("919876543210") == "919876543210"
    assert format_phone_for_api("+91 98765 43210") == "919876543210"
    assert format_phone_for_storage("+919876543210") == "+919876543210"
    assert format_phone_for_storage("919876543210") == "+919876543210"


def test_local_phone_validation():
    assert is_valid_local_phone("9876543210")
    assert not is_valid_local_phone("987654321")
    assert not is_valid_local_phone("98765 43210")
    assert not is_valid_local_phone("")


def test_mask_phone_keeps_last_four():
    assert mask_phone("9876543210") == "******3210"


def test_email_validation():
    assert is_valid_email("buyer@example.com")
    assert not is_valid_email("buyer@")
