"""Tests for per-platform link validation and redirect formatting."""

import pytest

from cardlink.core.enums import Platform
from cardlink.core.errors import ValidationError
from cardlink.domain.links import next_order, redirect_url, validate_link


@pytest.mark.unit
class TestValidateLink:
    """Validation dispatch per platform."""

    def test_whatsapp_number_is_normalized(self):
        assert validate_link("whatsapp", "+962790000000") == "https://wa.me/962790000000"

    def test_whatsapp_url_is_kept(self):
        assert validate_link(Platform.WHATSAPP, "https://wa.me/962790000000") == "https://wa.me/962790000000"
        assert (
            validate_link("whatsapp", "https://api.whatsapp.com/962790000000")
            == "https://api.whatsapp.com/962790000000"
        )

    @pytest.mark.parametrize("value", ["12345", "+9627900000001234567", "wa.me/962790000000", "call me"])
    def test_whatsapp_rejects(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_link("whatsapp", value)
        assert exc_info.value.extra["platform"] == "whatsapp"

    def test_email_accepts_address(self):
        assert validate_link("email", "jane@example.com") == "jane@example.com"

    @pytest.mark.parametrize("value", ["not-an-email", "jane@example", "jane doe@example.com"])
    def test_email_rejects(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_link("email", value)
        assert value in exc_info.value.message
        assert exc_info.value.field == "url"

    def test_phone_accepts_separators(self):
        assert validate_link("phone", "+962 (79) 000-0000") == "+962 (79) 000-0000"

    @pytest.mark.parametrize("value", ["call me", "+-() ", "079-ABC"])
    def test_phone_rejects(self, value):
        with pytest.raises(ValidationError):
            validate_link("phone", value)

    @pytest.mark.parametrize("platform", ["website", "linkedin", "instagram", "twitter", "github"])
    def test_web_platforms_require_http_scheme(self, platform):
        assert validate_link(platform, "https://example.com/jane") == "https://example.com/jane"
        assert validate_link(platform, "HTTP://example.com") == "HTTP://example.com"
        with pytest.raises(ValidationError) as exc_info:
            validate_link(platform, "example.com/jane")
        assert platform in exc_info.value.message

    def test_value_is_trimmed(self):
        assert validate_link("website", "  https://example.com  ") == "https://example.com"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_value_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_link("website", value)

    def test_unknown_platform_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_link("myspace", "https://myspace.com/jane")
        assert exc_info.value.field == "platform"


@pytest.mark.unit
class TestRedirectUrl:
    """Formatting of stored values as click targets."""

    def test_phone_becomes_tel_uri(self):
        assert redirect_url("phone", "+962 (79) 000-0000") == "tel:962790000000"

    def test_email_becomes_mailto_uri(self):
        assert redirect_url("email", "jane@example.com") == "mailto:jane@example.com"

    def test_whatsapp_uses_wa_me(self):
        assert redirect_url("whatsapp", "https://api.whatsapp.com/962790000000") == "https://wa.me/962790000000"
        assert redirect_url("whatsapp", "https://wa.me/962790000000") == "https://wa.me/962790000000"

    def test_web_links_unchanged(self):
        assert redirect_url("github", "https://github.com/jane") == "https://github.com/jane"


@pytest.mark.unit
class TestNextOrder:
    def test_first_link_gets_one(self):
        assert next_order([]) == 1

    def test_appends_after_maximum(self):
        assert next_order([1, 5, 2]) == 6

    def test_non_positive_orders_still_start_at_one(self):
        assert next_order([0]) == 1
