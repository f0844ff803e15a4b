"""Tests for log processors and request context."""

from edumarket.core.context import (
    clear_context,
    get_context,
    set_request_id,
    set_user_id,
)
from edumarket.core.logging import add_context_processor, filter_sensitive_data


class TestSensitiveDataFilter:
    """Tests for filter_sensitive_data."""

    def test_credentials_fully_masked(self) -> None:
        event = filter_sensitive_data(
            None,
            "info",
            {
                "event": "user_signed_up",
                "password": "SecureP@ssword123",
                "password_hash": "ab" * 64,
                "salt": "cd" * 16,
            },
        )
        assert event["password"] == "***"
        assert event["password_hash"] == "***"
        assert event["salt"] == "***"
        assert event["event"] == "user_signed_up"

    def test_tokens_partially_masked(self) -> None:
        event = filter_sensitive_data(None, "info", {"token": "abcdefgh"})
        assert event["token"] == "ab****gh"

    def test_short_values_fully_masked(self) -> None:
        event = filter_sensitive_data(None, "info", {"api_key": "abc"})
        assert event["api_key"] == "***"

    def test_nested_dicts(self) -> None:
        event = filter_sensitive_data(
            None, "info", {"body": {"email": "a@example.com", "password": "x"}}
        )
        assert event["body"] == {"email": "a@example.com", "password": "***"}

    def test_other_fields_untouched(self) -> None:
        event = filter_sensitive_data(
            None, "info", {"user_id": "user-1", "has_access": True}
        )
        assert event == {"user_id": "user-1", "has_access": True}


class TestRequestContext:
    """Tests for contextvars-based request context."""

    def test_context_added_to_events(self) -> None:
        set_request_id("req-1")
        set_user_id("user-1")
        try:
            event = add_context_processor(None, "info", {"event": "x"})
            assert event["request_id"] == "req-1"
            assert event["user_id"] == "user-1"
        finally:
            clear_context()

    def test_cleared_context_is_empty(self) -> None:
        set_request_id("req-1")
        clear_context()
        assert get_context() == {}
