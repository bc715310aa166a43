from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from taskboard.realtime.exceptions import NotFoundError
from taskboard.realtime.exceptions import RoomRejectedError
from taskboard.realtime.exceptions import UnavailableError
from taskboard.realtime.gate import RoomAuthorizationGate
from taskboard.realtime.hub import current_hub
from taskboard.realtime.pusher import PusherChannels
from taskboard.realtime.rooms import board_id_from_channel

from .serializers import ChannelAuthSerializer
from .serializers import ChannelGrantSerializer

logger = logging.getLogger(__name__)


def _gate_and_channels() -> tuple[RoomAuthorizationGate, PusherChannels | None]:
    try:
        hub = current_hub()
    except UnavailableError:
        return RoomAuthorizationGate(), None
    return hub.gate, hub.channels


class ChannelAuthView(APIView):
    """Authorize a Pusher private board channel subscription.

    Same checks as joining a board room over Socket.IO, through the installed
    hub's gate; on success returns a grant bound to ``socket_id`` and
    ``channel_name``.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Realtime"],
        request=ChannelAuthSerializer,
        responses={200: ChannelGrantSerializer},
    )
    def post(self, request, *args, **kwargs):
        serializer = ChannelAuthSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"detail": "Missing socket_id or channel_name", **serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        socket_id = serializer.validated_data["socket_id"]
        channel_name = serializer.validated_data["channel_name"]
        user_id = request.user.pk

        board_id_raw = board_id_from_channel(channel_name)
        if board_id_raw is None:
            logger.warning("Invalid channel format: %s", channel_name)
            return Response(
                {"detail": "Invalid channel name"},
                status=status.HTTP_403_FORBIDDEN,
            )

        gate, channels = _gate_and_channels()
        try:
            gate.authorize_sync(user_id, board_id_raw)
        except NotFoundError as exc:
            return Response({"detail": exc.message}, status=status.HTTP_404_NOT_FOUND)
        except RoomRejectedError as exc:
            return Response(
                {"detail": exc.message, "reason": exc.reason},
                status=status.HTTP_403_FORBIDDEN,
            )

        try:
            channels = channels or PusherChannels.from_settings()
        except UnavailableError as exc:
            logger.error("Channel grants unavailable: %s", exc.message)  # noqa: TRY400
            return Response(
                {"detail": "Realtime channels are not configured"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        logger.info("User %s authorized for channel: %s", user_id, channel_name)
        return Response(channels.authorize(socket_id, channel_name))
