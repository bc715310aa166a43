import logging

from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.mixins import ListModelMixin
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from taskboard.users.models import User

from .serializers import UserSerializer

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


@extend_schema_view(
    list=extend_schema(
        tags=["Users"],
        parameters=[
            OpenApiParameter(
                "email",
                str,
                required=True,
                description="Case-insensitive fragment of the email address.",
            ),
        ],
    ),
    retrieve=extend_schema(tags=["Users"]),
)
class UserViewSet(RetrieveModelMixin, ListModelMixin, GenericViewSet):
    """Look up users to invite onto a board.

    - list: search by ``?email=`` fragment (at most ten matches)
    - retrieve: a single profile by id
    - me: the authenticated user's profile
    """

    serializer_class = UserSerializer
    queryset = User.objects.all()
    pagination_class = None

    def get_queryset(self, *args, **kwargs):  # type: ignore[override]
        if self.action != "list":
            return User.objects.all()
        term = (self.request.query_params.get("email") or "").strip()
        if not term:
            raise ValidationError({"email": "Search term is required."})
        logger.info("Searching users with email fragment %r", term)
        return User.objects.filter(email__icontains=term).order_by("email")[
            :SEARCH_LIMIT
        ]

    @extend_schema(tags=["Users"])
    @action(detail=False)
    def me(self, request):
        serializer = UserSerializer(request.user, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)
