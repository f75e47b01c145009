"""
auth/session.py -- SessionAuthority: the credential and session token lifecycle.

Per-user session state machine:

    LOGGED_OUT --login--> ACTIVE --refresh--> ACTIVE (new pair) --logout--> LOGGED_OUT

  login    verifies the password and stores a freshly minted pair.
  refresh  accepts a refresh token only while it equals the stored one, then
           swaps in a new pair atomically (UserStore.rotate_tokens). The old
           refresh token is dead the moment the swap commits.
  logout   clears both tokens; calling it again is a no-op.

Profile and theme updates never change session state.

Every failure is a typed SessionError (auth/errors.py). The HTTP layer maps
them to responses; nothing here builds a response.

Methods are synchronous and bcrypt-heavy. FastAPI runs the calling routes
(plain `def`) in its thread pool so hashing never blocks the event loop.
"""

from __future__ import annotations

import html
import logging

from sqlalchemy.exc import IntegrityError

from auth.avatars import AvatarStorage
from auth.errors import Conflict, Forbidden, ServerError, TokenError, Unauthorized
from auth.models import AvatarUpload, CurrentSession, LoginResult, RegistrationResult, TokenPair, User
from auth.store import UserStore
from auth.tokens import (
    SessionTokenIssuer,
    authenticate_user,
    dummy_hash,
    generate_confirmation_token,
    hash_password,
)
from notify.mailer import EmailMessage, NotificationError, Notifier

logger = logging.getLogger("taskpro.auth")

REGISTRATION_MESSAGE = "Registration successful! Please check your email to confirm your account."
HELP_REPLY_MESSAGE = "Reply email sent"


class SessionAuthority:
    """Registration, login, token rotation, logout, and profile updates.

    Collaborators are injected so tests can swap the notifier and point the
    store at an in-memory database:

        authority = SessionAuthority(
            store=UserStore(settings.database_url),
            issuer=SessionTokenIssuer.from_settings(settings),
            notifier=build_notifier(settings),
            avatars=AvatarStorage(settings.avatar_dir),
            confirmation_base_url=settings.confirmation_base_url,
            help_desk_email=settings.help_desk_email,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
    """

    def __init__(
        self,
        store: UserStore,
        issuer: SessionTokenIssuer,
        notifier: Notifier,
        avatars: AvatarStorage | None = None,
        confirmation_base_url: str = "",
        help_desk_email: str = "",
        bcrypt_rounds: int = 10,
    ) -> None:
        self.store = store
        self.issuer = issuer
        self.notifier = notifier
        self.avatars = avatars
        self.confirmation_base_url = confirmation_base_url
        self.help_desk_email = help_desk_email
        self.bcrypt_rounds = bcrypt_rounds
        # Hash the timing dummy now so the first login is not slower than the rest.
        dummy_hash(bcrypt_rounds)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, name: str = "", theme: str = "light") -> RegistrationResult:
        """Create an account and email its confirmation link.

        The account is NOT rolled back when the email fails: the caller gets
        ServerError but can already log in.
        """
        if self.store.get_by_email(email) is not None:
            raise Conflict("Email is already in use")

        confirmation_token = generate_confirmation_token()
        user = User(
            email=email,
            name=name,
            hashed_password=hash_password(password, self.bcrypt_rounds),
            theme=theme,
            avatar_url="",
            confirmation_token=confirmation_token,
        )
        try:
            user_id = self.store.create_user(user)
        except IntegrityError as exc:
            # A concurrent registration won the race between check and insert.
            raise Conflict("Email is already in use") from exc
        logger.info("Registered user %s", user_id)

        link = f"{self.confirmation_base_url}?token={confirmation_token}"
        message = EmailMessage(
            to=email,
            subject="Registration Confirmation",
            text=f"Welcome to our site! Please confirm your registration by clicking the following link: {link}",
            html=(
                "<p>Welcome to our site! Please confirm your registration by clicking the following link: "
                f'<a href="{html.escape(link)}">{html.escape(link)}</a>.</p>'
            ),
        )
        try:
            self.notifier.send(message)
        except NotificationError as exc:
            logger.error("Failed to send the confirmation email for user %s: %s", user_id, exc)
            raise ServerError("Failed to send confirmation email") from exc

        return RegistrationResult(email=email, message=REGISTRATION_MESSAGE)

    # ------------------------------------------------------------------
    # Session transitions
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> LoginResult:
        user = authenticate_user(self.store, email, password, self.bcrypt_rounds)
        if user is None:
            logger.info("Rejected login attempt")
            raise Unauthorized("Email or password is wrong")

        tokens = self.issuer.mint(user.id)
        self.store.set_tokens(user.id, tokens.access_token, tokens.refresh_token)
        user.access_token = tokens.access_token
        user.refresh_token = tokens.refresh_token
        logger.info("User %s logged in", user.id)
        return LoginResult(tokens=tokens, user=user)

    def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate the pair behind a still-current refresh token.

        Forbidden when the token is malformed, expired, signed with the wrong
        key, not a refresh token, or no longer the one stored for the user.
        """
        try:
            claims = self.issuer.decode_refresh(refresh_token)
        except TokenError as exc:
            logger.info("Rejected refresh token: %s", exc)
            raise Forbidden(str(exc)) from exc

        user_id = claims["id"]
        user = self.store.get_by_id(user_id)
        if user is None or user.refresh_token != refresh_token:
            logger.warning("Refresh token for user %s is not the current one", user_id)
            raise Forbidden("Token invalid")

        tokens = self.issuer.mint(user_id)
        if not self.store.rotate_tokens(user_id, refresh_token, tokens.access_token, tokens.refresh_token):
            logger.warning("Concurrent refresh for user %s lost the rotation race", user_id)
            raise Forbidden("Token invalid")
        return tokens

    def logout(self, user_id: int) -> None:
        self.store.clear_tokens(user_id)
        logger.info("User %s logged out", user_id)

    def get_current(self, user: User) -> CurrentSession:
        return CurrentSession(token=user.access_token, user=user)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def update_theme(self, user_id: int, theme: str) -> User:
        self.store.update_user(user_id, theme=theme)
        return self._reload(user_id)

    def update_profile(
        self,
        user_id: int,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
        avatar: AvatarUpload | None = None,
    ) -> User:
        """Apply the supplied profile fields.

        The password is re-hashed only when a non-empty one is supplied; an
        omitted password leaves the stored hash untouched.
        """
        fields: dict = {}
        if name is not None:
            fields["name"] = name
        if email is not None:
            if self.store.email_taken(email, exclude_id=user_id):
                raise Conflict("Email is already in use")
            fields["email"] = email
        if password:
            fields["hashed_password"] = hash_password(password, self.bcrypt_rounds)
        if avatar is not None:
            if self.avatars is None:
                raise ServerError("Avatar storage is not configured")
            try:
                fields["avatar_url"] = self.avatars.save(user_id, avatar.filename, avatar.data)
            except OSError as exc:
                logger.error("Failed to store avatar for user %s: %s", user_id, exc)
                raise ServerError("Failed to store avatar") from exc

        try:
            self.store.update_user(user_id, **fields)
        except IntegrityError as exc:
            raise Conflict("Email is already in use") from exc
        return self._reload(user_id)

    # ------------------------------------------------------------------
    # Help requests
    # ------------------------------------------------------------------

    def request_help(self, email: str, comment: str) -> str:
        """Forward a help request to the help desk and acknowledge the sender."""
        safe_email = html.escape(email)
        safe_comment = html.escape(comment)
        messages = [
            EmailMessage(
                to=self.help_desk_email,
                subject="User need help",
                html=f"<p> Email: {safe_email}, Comment: {safe_comment}</p>",
            ),
            EmailMessage(
                to=email,
                subject="Support",
                html=f"<p>Thank you for you request! We will consider your comment {safe_comment}</p>",
            ),
        ]
        try:
            for message in messages:
                self.notifier.send(message)
        except NotificationError as exc:
            raise ServerError("Failed to send help request email") from exc
        return HELP_REPLY_MESSAGE

    def _reload(self, user_id: int) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise Unauthorized("Not authorized")
        return user
