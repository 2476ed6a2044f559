"""
Tests for phone and social network validation.
"""

import pytest

from profile_sync.utils.validators import (
    format_handle,
    get_network_rule,
    network_url,
    validate_handle,
    validate_phone,
)


class TestPhoneValidation:
    """Tests for validate_phone."""

    def test_tj_number_with_nine_digits(self):
        assert validate_phone("+992912345678", "tj")

    def test_tj_number_with_eight_digits(self):
        assert not validate_phone("+99291234567", "tj")

    def test_international_number(self):
        assert validate_phone("+14155552671", "international")

    def test_international_without_plus(self):
        assert not validate_phone("4155552671", "international")

    def test_empty_number(self):
        assert not validate_phone("", "tj")
        assert not validate_phone(None, "international")


class TestSocialHandles:
    """Tests for handle validation, formatting and links."""

    def test_telegram_strips_at(self):
        handle = format_handle("telegram", "@my_handle")
        assert handle == "my_handle"
        assert network_url("telegram", handle) == "https://t.me/my_handle"

    def test_empty_handle_is_valid(self):
        assert validate_handle("instagram", "")
        assert validate_handle("telegram", "   ")

    def test_invalid_handle(self):
        assert not validate_handle("telegram", "abc")
        assert not validate_handle("google", "not-an-email")

    def test_unknown_network(self):
        assert get_network_rule("myspace") is None
        assert not validate_handle("myspace", "someone")
        assert network_url("myspace", "someone") is None

    def test_network_lookup_is_case_insensitive(self):
        assert get_network_rule("Telegram").label == "Telegram"

    @pytest.mark.parametrize("network,raw,stored,url", [
        ("whatsapp", "992 912 345 678", "+992912345678", "https://wa.me/992912345678"),
        ("site", "example.com", "https://example.com", "https://example.com"),
        ("vk", "id12345", "id12345", "https://vk.com/id12345"),
        ("twitter", "@handle", "handle", "https://x.com/handle"),
    ])
    def test_format_and_link(self, network, raw, stored, url):
        assert validate_handle(network, raw)
        assert format_handle(network, raw) == stored
        assert network_url(network, stored) == url

    def test_no_url_for_empty_handle(self):
        assert network_url("telegram", "") is None
