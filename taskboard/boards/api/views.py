"""Boards, lists and tasks endpoints.

Every successful mutation publishes the matching board event after the
request transaction commits; the HTTP response never depends on delivery.
"""

import logging

from django.db.models import Q
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from taskboard.boards import services
from taskboard.boards.models import Board
from taskboard.boards.models import BoardList
from taskboard.boards.models import Task
from taskboard.realtime.events import boards as board_events

from .permissions import IsBoardMember
from .permissions import IsBoardOwner
from .serializers import BoardDetailSerializer
from .serializers import BoardListSerializer
from .serializers import BoardSerializer
from .serializers import ListPositionSerializer
from .serializers import MemberSerializer
from .serializers import TaskPositionSerializer
from .serializers import TaskSerializer

logger = logging.getLogger(__name__)

OWNER_ACTIONS = {"update", "partial_update", "destroy", "add_member", "remove_member"}


@extend_schema_view(
    list=extend_schema(tags=["Boards"]),
    create=extend_schema(tags=["Boards"]),
    retrieve=extend_schema(tags=["Boards"], responses=BoardDetailSerializer),
    update=extend_schema(tags=["Boards"]),
    partial_update=extend_schema(tags=["Boards"]),
    destroy=extend_schema(tags=["Boards"]),
)
class BoardViewSet(viewsets.ModelViewSet):
    """Boards the authenticated user owns or belongs to.

    - list / create / retrieve: any member
    - update / destroy / members: owner only
    - lists (POST): create a list at the end of the board
    """

    serializer_class = BoardSerializer
    queryset = Board.objects.all()
    pagination_class = None

    def get_queryset(self):
        if self.action == "list":
            user = self.request.user
            return (
                Board.objects.filter(Q(created_by=user) | Q(members=user))
                .distinct()
                .prefetch_related("members")
            )
        return Board.objects.all()

    def get_permissions(self):
        if self.action in OWNER_ACTIONS:
            return [IsAuthenticated(), IsBoardOwner()]
        return [IsAuthenticated(), IsBoardMember()]

    def perform_create(self, serializer):
        board = serializer.save(created_by=self.request.user)
        board.members.add(self.request.user)
        logger.info("User %s created board %s", self.request.user.pk, board.pk)

    def retrieve(self, request, *args, **kwargs):
        board = self.get_object()
        lists = board.lists.order_by("position", "created_at")
        tasks = (
            Task.objects.filter(board_list__board=board)
            .prefetch_related("assigned_to")
            .order_by("position", "created_at")
        )
        serializer = BoardDetailSerializer(
            {"board": board, "lists": lists, "tasks": tasks},
            context=self.get_serializer_context(),
        )
        return Response(serializer.data)

    def perform_update(self, serializer):
        board = serializer.save()
        board_events.publish_board_updated(board, BoardSerializer(board).data)

    def perform_destroy(self, instance):
        logger.info("User %s deleted board %s", self.request.user.pk, instance.pk)
        instance.delete()

    @extend_schema(tags=["Boards"], request=MemberSerializer, responses=BoardSerializer)
    @action(detail=True, methods=["post"], url_path="members")
    def add_member(self, request, pk=None):
        board = self.get_object()
        serializer = MemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = serializer.validated_data["user_id"]

        if board.members.filter(pk=user_id).exists():
            return Response(
                {"detail": "User is already a member"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        board.members.add(user_id)
        logger.info("Added member %s to board %s", user_id, board.pk)
        board_events.publish_member_added(board, user_id)
        return Response(BoardSerializer(board).data)

    @extend_schema(tags=["Boards"], request=None, responses=BoardSerializer)
    @action(detail=True, methods=["delete"], url_path=r"members/(?P<user_id>\d+)")
    def remove_member(self, request, pk=None, user_id=None):
        board = self.get_object()
        member_id = int(user_id)
        if not board.members.filter(pk=member_id).exists():
            msg = "Member not found"
            raise NotFound(msg)
        board.members.remove(member_id)
        logger.info("Removed member %s from board %s", member_id, board.pk)
        board_events.publish_member_removed(board, member_id)
        return Response(BoardSerializer(board).data)

    @extend_schema(
        tags=["Lists"],
        request=BoardListSerializer,
        responses={201: BoardListSerializer},
    )
    @action(detail=True, methods=["post"], url_path="lists")
    def create_list(self, request, pk=None):
        board = self.get_object()
        serializer = BoardListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        board_list = serializer.save(
            board=board,
            position=services.next_list_position(board.pk),
        )
        data = BoardListSerializer(board_list).data
        board_events.publish_list_created(board_list, data)
        return Response(data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    update=extend_schema(tags=["Lists"]),
    partial_update=extend_schema(tags=["Lists"]),
    destroy=extend_schema(tags=["Lists"]),
)
class BoardListViewSet(
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = BoardListSerializer
    queryset = BoardList.objects.select_related("board")
    permission_classes = [IsAuthenticated, IsBoardMember]

    def perform_update(self, serializer):
        board_list = serializer.save()
        board_events.publish_list_updated(
            board_list, BoardListSerializer(board_list).data
        )

    def perform_destroy(self, instance):
        board_id, list_id = instance.board_id, instance.pk
        instance.delete()
        logger.info("Deleted list %s (and its tasks) from board %s", list_id, board_id)
        board_events.publish_list_deleted(board_id, list_id)

    @extend_schema(
        tags=["Lists"],
        request=ListPositionSerializer,
        responses=BoardListSerializer,
    )
    @action(detail=True, methods=["put"], url_path="position")
    def position(self, request, pk=None):
        board_list = self.get_object()
        serializer = ListPositionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        board_list = services.move_list(
            board_list, serializer.validated_data["position"]
        )
        data = BoardListSerializer(board_list).data
        board_events.publish_list_updated(board_list, data)
        return Response(data)

    @extend_schema(tags=["Tasks"], request=TaskSerializer, responses=TaskSerializer)
    @action(detail=True, methods=["get", "post"], url_path="tasks")
    def tasks(self, request, pk=None):
        board_list = self.get_object()
        if request.method == "GET":
            tasks = board_list.tasks.prefetch_related("assigned_to").order_by(
                "position", "created_at"
            )
            return Response(TaskSerializer(tasks, many=True).data)

        serializer = TaskSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = serializer.save(
            board_list=board_list,
            position=services.next_task_position(board_list.pk),
            created_by=request.user,
        )
        data = TaskSerializer(task).data
        board_events.publish_task_created(board_list.board_id, data)
        return Response(data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    retrieve=extend_schema(tags=["Tasks"]),
    update=extend_schema(tags=["Tasks"]),
    partial_update=extend_schema(tags=["Tasks"]),
    destroy=extend_schema(tags=["Tasks"]),
)
class TaskViewSet(
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = TaskSerializer
    queryset = Task.objects.select_related("board_list__board")
    permission_classes = [IsAuthenticated, IsBoardMember]

    def perform_update(self, serializer):
        task = serializer.save()
        board_events.publish_task_updated(
            task.board_list.board_id, TaskSerializer(task).data
        )

    def perform_destroy(self, instance):
        board_id, task_id = instance.board_list.board_id, instance.pk
        instance.delete()
        board_events.publish_task_deleted(board_id, task_id)

    @extend_schema(
        tags=["Tasks"],
        request=TaskPositionSerializer,
        responses=TaskSerializer,
    )
    @action(detail=True, methods=["put"], url_path="position")
    def position(self, request, pk=None):
        task = self.get_object()
        serializer = TaskPositionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        list_id = serializer.validated_data.get("list_id")

        target = None
        if list_id is not None and list_id != task.board_list_id:
            target = BoardList.objects.filter(pk=list_id).first()
            if target is None:
                msg = "List not found"
                raise NotFound(msg)
            # Tasks only move between lists of the same board.
            if target.board_id != task.board_list.board_id:
                msg = "Board not found"
                raise NotFound(msg)

        task = services.move_task(task, serializer.validated_data["position"], target)
        data = TaskSerializer(task).data
        board_events.publish_task_updated(task.board_list.board_id, data)
        return Response(data)
