from __future__ import annotations

import itertools

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from taskboard.boards.models import Board
from taskboard.boards.models import BoardList
from taskboard.boards.models import Task
from taskboard.realtime.testing import recording_hub
from taskboard.users.models import User

_seq = itertools.count()


@pytest.fixture
def make_user(db):
    def factory(username: str | None = None, **extra) -> User:
        username = username or f"user{next(_seq)}"
        return User.objects.create_user(
            username=username,
            email=extra.pop("email", f"{username}@example.com"),
            password="TestPass123!",  # noqa: S106
            **extra,
        )

    return factory


@pytest.fixture
def user(make_user) -> User:
    return make_user("alice")


@pytest.fixture
def other_user(make_user) -> User:
    return make_user("bob")


@pytest.fixture
def outsider(make_user) -> User:
    return make_user("mallory")


@pytest.fixture
def board(user, other_user) -> Board:
    board = Board.objects.create(title="Roadmap", created_by=user)
    board.members.add(user, other_user)
    return board


@pytest.fixture
def board_list(board) -> BoardList:
    return BoardList.objects.create(board=board, title="Todo", position=0)


@pytest.fixture
def task(board_list, user) -> Task:
    return Task.objects.create(
        board_list=board_list, title="Write docs", position=0, created_by=user
    )


def token_for(user: User) -> str:
    return str(AccessToken.for_user(user))


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def auth_client(user) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_for(user)}")
    return client


@pytest.fixture
def client_for():
    def factory(user: User) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token_for(user)}")
        return client

    return factory


@pytest.fixture
def realtime():
    """A live hub plus the delivery recording what it sent."""
    with recording_hub() as (hub, delivery):
        yield hub, delivery


@pytest.fixture
def hub(realtime):
    return realtime[0]


@pytest.fixture
def delivery(realtime):
    return realtime[1]
