"""
Unit tests for PII redaction used by the audit trail and logs.
"""

import pytest

from approv.core.audit import REDACTED, is_sensitive_key, mask_value, safe_log


class TestSafeLog:
    """Test recursive redaction of sensitive keys."""

    @pytest.mark.parametrize(
        "key",
        ["password", "accessToken", "client_secret", "apiKey", "api-key", "Authorization", "email", "clientPhone"],
    )
    def test_sensitive_keys(self, key):
        assert is_sensitive_key(key)

    @pytest.mark.parametrize("key", ["projectId", "stage", "status", "revision"])
    def test_ordinary_keys(self, key):
        assert not is_sensitive_key(key)

    def test_redacts_nested_values(self):
        data = {
            "projectId": "p1",
            "client": {"email": "john@example.test", "name": "John"},
            "recipients": [{"email": "a@example.test"}, {"stage": "PLANNING"}],
        }

        redacted = safe_log(data)

        assert redacted == {
            "projectId": "p1",
            "client": {"email": REDACTED, "name": "John"},
            "recipients": [{"email": REDACTED}, {"stage": "PLANNING"}],
        }

    def test_sensitive_key_is_redacted_even_when_value_is_a_dict(self):
        assert safe_log({"session": {"id": "abc"}}) == {"session": REDACTED}

    def test_input_is_not_modified(self):
        data = {"token": "abc"}
        safe_log(data)
        assert data == {"token": "abc"}

    def test_scalars_pass_through(self):
        assert safe_log("plain") == "plain"
        assert safe_log(3) == 3
        assert safe_log(None) is None


class TestMaskValue:
    """Test partial masking of identifiers."""

    def test_keeps_both_ends(self):
        assert mask_value("john.smith@example.test") == "john********test"

    def test_short_values_are_fully_masked(self):
        assert mask_value("abcdefgh") == "********"

    def test_custom_visible_length(self):
        assert mask_value("abcdefghij", visible=2) == "ab******ij"
