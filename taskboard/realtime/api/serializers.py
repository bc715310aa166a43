from __future__ import annotations

import re

from rest_framework import serializers

_SOCKET_ID_RE = re.compile(r"^\d+\.\d+$")


class ChannelAuthSerializer(serializers.Serializer):
    """Body of a channel grant request (form or JSON encoded)."""

    socket_id = serializers.CharField(max_length=64)
    channel_name = serializers.CharField(max_length=200)

    def validate_socket_id(self, value: str) -> str:
        if not _SOCKET_ID_RE.match(value):
            msg = "Invalid socket_id."
            raise serializers.ValidationError(msg)
        return value


class ChannelGrantSerializer(serializers.Serializer):
    auth = serializers.CharField()
