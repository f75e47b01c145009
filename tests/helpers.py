"""
tests/helpers.py -- Test doubles and builders shared by conftest and test modules.

Kept out of conftest.py so test modules can import them by name; pytest puts
tests/ on sys.path because the directory has no __init__.py.
"""

from __future__ import annotations

from auth.avatars import AvatarStorage
from auth.session import SessionAuthority
from auth.store import UserStore
from auth.tokens import SessionTokenIssuer
from notify.mailer import EmailMessage, NotificationError

ACCESS_KEY = "a" * 32 + "-access-signing-key"
REFRESH_KEY = "r" * 32 + "-refresh-signing-key"
HELP_DESK = "helpdesk@taskpro.test"


class RecordingNotifier:
    """Notifier double: keeps every message, raises NotificationError when fail is set."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = False

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise NotificationError(f"Failed to send email to {message.to}")
        self.sent.append(message)


def make_authority(store: UserStore, notifier: RecordingNotifier, avatar_dir) -> SessionAuthority:
    return SessionAuthority(
        store=store,
        issuer=SessionTokenIssuer(ACCESS_KEY, REFRESH_KEY),
        notifier=notifier,
        avatars=AvatarStorage(avatar_dir),
        confirmation_base_url="https://taskpro.test/confirm",
        help_desk_email=HELP_DESK,
        bcrypt_rounds=4,
    )
