"""Tests for the Telegram profile client adapter."""
import asyncio
import pytest
from unittest.mock import Mock, patch
from telethon.errors import (
    BadRequestError,
    FloodWaitError,
    RPCError,
    ServerError,
    TimedOutError,
    UnauthorizedError,
)
from telethon.tl.functions.account import UpdateProfileRequest
from profile_client import ProfileUpdateError, TelegramProfileClient, classify_telegram_error
from retry_policy import ErrorKind


def rpc_error(cls, **attrs):
    """Stand-in instance that passes isinstance checks for a Telethon error class."""
    err = Mock(spec=cls)
    for name, value in attrs.items():
        setattr(err, name, value)
    return err


def test_flood_wait_is_transient_with_wait_hint():
    result = classify_telegram_error(rpc_error(FloodWaitError, seconds=42))

    assert isinstance(result, ProfileUpdateError)
    assert result.kind is ErrorKind.TRANSIENT
    assert result.retry_after == 42.0


@pytest.mark.parametrize("cls", [ServerError, TimedOutError])
def test_server_side_rpc_errors_are_transient(cls):
    result = classify_telegram_error(rpc_error(cls))
    assert result.transient
    assert result.retry_after is None


@pytest.mark.parametrize("err", [ConnectionResetError("reset"), ConnectionRefusedError(), asyncio.TimeoutError()])
def test_connection_errors_are_transient(err):
    assert classify_telegram_error(err).transient


@pytest.mark.parametrize("cls", [BadRequestError, UnauthorizedError, RPCError])
def test_request_errors_are_permanent(cls):
    assert classify_telegram_error(rpc_error(cls)).kind is ErrorKind.PERMANENT


@pytest.fixture
def telegram():
    """Patch the Telethon client class and session; yield the client instance mock."""
    with patch('profile_client.TelegramClient') as client_cls, patch('profile_client.StringSession') as session_cls:
        session_cls.return_value.save.return_value = "1SESSION"
        yield client_cls.return_value


def test_set_profile_text_sends_update_request(telegram):
    client = TelegramProfileClient(12345, "hash", "saved")

    client.set_profile_text("🔥 Осталось 4 дня | ☀️21°C")

    (request,), _ = telegram.call_args
    assert isinstance(request, UpdateProfileRequest)
    assert request.about == "🔥 Осталось 4 дня | ☀️21°C"


def test_set_profile_text_translates_transport_errors(telegram):
    telegram.side_effect = ConnectionResetError("peer reset")
    client = TelegramProfileClient(12345, "hash", "saved")

    with pytest.raises(ProfileUpdateError) as exc_info:
        client.set_profile_text("hello")

    assert exc_info.value.transient
    assert isinstance(exc_info.value.__cause__, ConnectionResetError)


def test_set_profile_text_lets_programming_errors_through(telegram):
    telegram.side_effect = TypeError("bad argument")
    client = TelegramProfileClient(12345, "hash", "saved")

    with pytest.raises(TypeError):
        client.set_profile_text("hello")


def test_connect_translates_errors(telegram):
    telegram.connect.side_effect = OSError("network unreachable")
    client = TelegramProfileClient(12345, "hash", "saved")

    with pytest.raises(ProfileUpdateError) as exc_info:
        client.connect()

    assert exc_info.value.transient


def test_login_with_saved_session(telegram):
    telegram.is_user_authorized.return_value = True
    client = TelegramProfileClient(12345, "hash", "saved")

    assert client.login() is None
    telegram.connect.assert_called_once()
    telegram.start.assert_not_called()


def test_login_with_unauthorized_session(telegram):
    telegram.is_user_authorized.return_value = False
    client = TelegramProfileClient(12345, "hash", "saved")

    with pytest.raises(ProfileUpdateError, match="not authorized"):
        client.login()


def test_login_without_session_requires_interactive(telegram):
    client = TelegramProfileClient(12345, "hash", "")

    with pytest.raises(ProfileUpdateError, match="interactive"):
        client.login(interactive=False)
    telegram.start.assert_not_called()


def test_interactive_login_returns_new_session(telegram):
    client = TelegramProfileClient(12345, "hash", "")

    assert client.login(interactive=True) == "1SESSION"
    telegram.start.assert_called_once()


def test_connection_state_and_disconnect(telegram):
    telegram.is_connected.return_value = True
    client = TelegramProfileClient(12345, "hash", "saved")

    assert client.is_connected() is True
    client.disconnect()
    telegram.disconnect.assert_called_once()
