from rest_framework import serializers

from taskboard.users.models import User


class UserSerializer(serializers.ModelSerializer[User]):
    """Public profile; never exposes the password hash."""

    full_name = serializers.CharField(source="name", read_only=True)
    id = serializers.IntegerField(read_only=True)

    # Identity fields are managed outside this API.
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "created_at",
        ]
        read_only_fields = ["created_at"]
