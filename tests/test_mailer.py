"""Unit tests for notify/mailer.py.

smtplib.SMTP is patched so no network connection is made.
"""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from core.config import Settings
from notify.mailer import EmailMessage, LogNotifier, NotificationError, SmtpNotifier, build_notifier

MESSAGE = EmailMessage(to="user@example.com", subject="Hello", html="<p>Hi</p>", text="Hi")


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, access_token_key="x" * 40, refresh_token_key="y" * 40, **overrides)


def test_build_notifier_without_smtp_logs():
    assert isinstance(build_notifier(_settings()), LogNotifier)


def test_build_notifier_with_smtp():
    notifier = build_notifier(
        _settings(smtp_host="smtp.example.com", smtp_from_email="noreply@example.com", smtp_timeout_seconds=3)
    )
    assert isinstance(notifier, SmtpNotifier)
    assert notifier.timeout == 3


def test_log_notifier_never_raises(caplog):
    with caplog.at_level("INFO", logger="taskpro.notify"):
        LogNotifier().send(MESSAGE)
    assert "user@example.com" in caplog.text


@patch("notify.mailer.smtplib.SMTP")
def test_smtp_send(mock_smtp):
    server = MagicMock()
    mock_smtp.return_value.__enter__.return_value = server

    SmtpNotifier("smtp.example.com", 587, "noreply@example.com", username="u", password="p", timeout=5).send(MESSAGE)

    mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=5)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("u", "p")
    from_addr, to_addrs, body = server.sendmail.call_args.args
    assert from_addr == "noreply@example.com"
    assert to_addrs == ["user@example.com"]
    assert "Subject: Hello" in body


@patch("notify.mailer.smtplib.SMTP")
def test_smtp_without_credentials_skips_login(mock_smtp):
    server = MagicMock()
    mock_smtp.return_value.__enter__.return_value = server
    SmtpNotifier("smtp.example.com", 25, "noreply@example.com", use_tls=False).send(MESSAGE)
    server.starttls.assert_not_called()
    server.login.assert_not_called()


@pytest.mark.parametrize("error", [OSError("connection refused"), smtplib.SMTPAuthenticationError(535, b"nope")])
@patch("notify.mailer.smtplib.SMTP")
def test_smtp_failure_raises_notification_error(mock_smtp, error):
    mock_smtp.side_effect = error
    with pytest.raises(NotificationError):
        SmtpNotifier("smtp.example.com", 587, "noreply@example.com").send(MESSAGE)
