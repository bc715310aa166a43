import hashlib
import hmac
import uuid
from unittest import mock

import pusher
import pytest
from django.test import override_settings

from taskboard.realtime.exceptions import UnavailableError
from taskboard.realtime.pusher import PusherChannels
from taskboard.realtime.pusher import configured_channels

BOARD_ID = uuid.UUID("55555555-5555-4555-8555-555555555555")
CHANNEL = f"private-board-{BOARD_ID}"


@pytest.fixture
def channels():
    return PusherChannels.from_settings()


def test_from_settings_builds_a_pusher_client(channels):
    assert isinstance(channels.client, pusher.Pusher)


@pytest.mark.parametrize("name", ["PUSHER_APP_ID", "PUSHER_KEY", "PUSHER_SECRET"])
def test_missing_configuration_is_unavailable(name):
    with override_settings(**{name: ""}), pytest.raises(UnavailableError):
        PusherChannels.from_settings()


@override_settings(PUSHER_KEY="")
def test_configured_channels_is_none_without_credentials():
    assert configured_channels() is None


def test_configured_channels_from_settings():
    assert isinstance(configured_channels(), PusherChannels)


def test_grant_is_bound_to_socket_and_channel(channels):
    grant = channels.authorize("1234.5678", CHANNEL)

    digest = hmac.new(
        b"test-secret", f"1234.5678:{CHANNEL}".encode(), hashlib.sha256
    ).hexdigest()
    assert grant == {"auth": f"test-key:{digest}"}
    assert channels.authorize("1234.5679", CHANNEL) != grant


def test_publish_triggers_on_the_board_channel(channels):
    with mock.patch.object(channels.client, "trigger") as trigger:
        channels.publish(BOARD_ID.hex, "task:deleted", {"taskId": "t-1"})

    trigger.assert_called_once_with(CHANNEL, "task:deleted", {"taskId": "t-1"})


def test_publish_rejects_invalid_board_id(channels):
    with mock.patch.object(channels.client, "trigger") as trigger:
        with pytest.raises(ValueError, match="Invalid board id"):
            channels.publish("42", "task:deleted", {"taskId": "t-1"})

    trigger.assert_not_called()
