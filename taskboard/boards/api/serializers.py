from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from taskboard.boards.models import Board
from taskboard.boards.models import BoardList
from taskboard.boards.models import Task

User = get_user_model()


class BoardSerializer(serializers.ModelSerializer):
    class Meta:
        model = Board
        fields = (
            "id",
            "title",
            "description",
            "background_color",
            "created_by",
            "members",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "created_by",
            "members",
            "created_at",
            "updated_at",
        )


class BoardListSerializer(serializers.ModelSerializer):
    class Meta:
        model = BoardList
        fields = ("id", "title", "board", "position", "created_at", "updated_at")
        read_only_fields = ("id", "board", "position", "created_at", "updated_at")


class TaskSerializer(serializers.ModelSerializer):
    labels = serializers.ListField(
        child=serializers.CharField(max_length=64, trim_whitespace=True),
        required=False,
    )
    assigned_to = serializers.PrimaryKeyRelatedField(
        many=True,
        queryset=User.objects.all(),
        required=False,
    )

    class Meta:
        model = Task
        fields = (
            "id",
            "title",
            "description",
            "board_list",
            "assigned_to",
            "labels",
            "due_date",
            "position",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "board_list",
            "position",
            "created_by",
            "created_at",
            "updated_at",
        )


class BoardDetailSerializer(serializers.Serializer):
    """Board with its lists and their tasks, both in position order."""

    board = BoardSerializer()
    lists = BoardListSerializer(many=True)
    tasks = TaskSerializer(many=True)


class MemberSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()

    def validate_user_id(self, value: int) -> int:
        if not User.objects.filter(pk=value).exists():
            msg = "User not found."
            raise serializers.ValidationError(msg)
        return value


class ListPositionSerializer(serializers.Serializer):
    position = serializers.IntegerField(min_value=0)


class TaskPositionSerializer(serializers.Serializer):
    position = serializers.IntegerField(min_value=0)
    list_id = serializers.UUIDField(required=False)
