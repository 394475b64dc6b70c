"""Profile update client abstraction and its Telegram implementation."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from telethon.errors import (
    FloodError,
    FloodWaitError,
    InvalidDCError,
    RPCError,
    ServerError,
    TimedOutError,
)
from telethon.sessions import StringSession
from telethon.sync import TelegramClient
from telethon.tl.functions.account import UpdateProfileRequest

from retry_policy import ClassifiedError, ErrorKind


class ProfileClientBase(ABC):
    """Abstract base class for clients that can set a profile's about text."""

    @abstractmethod
    def connect(self) -> None:
        """Open the connection to the remote service."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    def set_profile_text(self, text: str) -> None:
        """
        Replace the profile's about text. Safe to repeat with the same text.

        Raises:
            ProfileUpdateError: If the update fails
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass


class ProfileUpdateError(ClassifiedError):
    """Exception raised when the profile service rejects or drops a call."""
    pass


TRANSIENT_RPC_ERRORS = (FloodError, ServerError, TimedOutError, InvalidDCError)
TRANSPORT_ERRORS = (RPCError, OSError, asyncio.TimeoutError)


def classify_telegram_error(err: Exception) -> ProfileUpdateError:
    """Translate a raw Telethon/transport failure into a tagged ProfileUpdateError."""
    if isinstance(err, FloodWaitError):
        return ProfileUpdateError(
            f"Flood wait of {err.seconds}s required",
            kind=ErrorKind.TRANSIENT,
            retry_after=float(err.seconds),
        )
    if isinstance(err, TRANSIENT_RPC_ERRORS):
        return ProfileUpdateError(f"Telegram RPC error: {err}", kind=ErrorKind.TRANSIENT)
    if isinstance(err, (OSError, asyncio.TimeoutError)):
        return ProfileUpdateError(f"Connection error: {err!r}", kind=ErrorKind.TRANSIENT)
    return ProfileUpdateError(f"Telegram rejected the request: {err}")


class TelegramProfileClient(ProfileClientBase):
    """
    Profile client backed by Telethon's synchronous facade.

    With a saved session string the client connects headless; without one,
    ``login(interactive=True)`` walks through phone/code/2FA prompts on stdin.
    """

    def __init__(
        self,
        api_id: int,
        api_hash: str,
        session_string: str = "",
        connection_retries: int = 5
    ):
        self.session = StringSession(session_string or None)
        self.has_saved_session = bool(session_string)
        self._client = TelegramClient(
            self.session, api_id, api_hash, connection_retries=connection_retries
        )

    def login(self, interactive: bool = False) -> Optional[str]:
        """
        Connect and make sure the session is authorized.

        Args:
            interactive: Allow prompting for phone, code and password

        Returns:
            The new session string after an interactive login, otherwise None

        Raises:
            ProfileUpdateError: If the session is missing or not authorized
        """
        if self.has_saved_session:
            self.connect()
            try:
                authorized = self._client.is_user_authorized()
            except TRANSPORT_ERRORS as err:
                raise classify_telegram_error(err) from err
            if not authorized:
                raise ProfileUpdateError("Saved session is not authorized, regenerate SESSION_STRING")
            logging.info("Connected to Telegram with the saved session")
            return None

        if not interactive:
            raise ProfileUpdateError("No SESSION_STRING configured and interactive login is disabled")

        logging.warning("SESSION_STRING is not set, starting interactive login")
        try:
            self._client.start()
        except TRANSPORT_ERRORS as err:
            raise classify_telegram_error(err) from err
        logging.info("Logged in to Telegram")
        return self.session.save()

    def connect(self) -> None:
        try:
            self._client.connect()
        except TRANSPORT_ERRORS as err:
            raise classify_telegram_error(err) from err

    def is_connected(self) -> bool:
        return self._client.is_connected()

    def set_profile_text(self, text: str) -> None:
        try:
            self._client(UpdateProfileRequest(about=text))
        except TRANSPORT_ERRORS as err:
            raise classify_telegram_error(err) from err

    def disconnect(self) -> None:
        self._client.disconnect()
