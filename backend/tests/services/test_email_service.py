# backend/tests/services/test_email_service.py
"""Tests for the Resend and console email backends."""

from unittest.mock import patch

import pytest

from tutorhub.core.config import settings
from tutorhub.core.exceptions import ServiceException
from tutorhub.services.email import (
    ConsoleEmailService,
    EmailService,
    get_email_service,
    html_to_text,
)


def test_html_to_text():
    assert html_to_text("<p>Hi <b>Ana</b>,</p>\n\n<p>See you</p>") == "Hi Ana, See you"


def test_console_backend_is_default():
    assert isinstance(get_email_service(), ConsoleEmailService)


class TestResendBackend:
    @pytest.fixture(autouse=True)
    def resend_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "email_provider", "resend")
        monkeypatch.setattr(settings, "resend_api_key", "re_test_key")

    def test_selected_by_provider(self):
        assert isinstance(get_email_service(), EmailService)

    def test_sends_html_and_text(self):
        with patch("tutorhub.services.email.resend.Emails.send", return_value={"id": "m1"}) as send:
            response = EmailService().send_email(
                to_email="ana@example.com", subject="Lesson", html_content="<p>Hello</p>"
            )

        assert response == {"id": "m1"}
        payload = send.call_args.args[0]
        assert payload["to"] == "ana@example.com"
        assert payload["text"] == "Hello"
        assert payload["from"] == settings.from_email

    def test_provider_error_raises_service_exception(self):
        with patch(
            "tutorhub.services.email.resend.Emails.send", side_effect=RuntimeError("rate limited")
        ):
            with pytest.raises(ServiceException):
                EmailService().send_email(
                    to_email="ana@example.com", subject="Lesson", html_content="<p>Hello</p>"
                )

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "resend_api_key", None)

        with pytest.raises(ServiceException):
            EmailService()
