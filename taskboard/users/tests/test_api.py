from http import HTTPStatus

import pytest
from django.urls import reverse

pytestmark = pytest.mark.django_db


def test_me(auth_client, user):
    resp = auth_client.get(reverse("api_v1:user-me"))

    assert resp.status_code == HTTPStatus.OK
    data = resp.json()
    assert data["id"] == user.pk
    assert data["email"] == "alice@example.com"
    assert "password" not in data


def test_search_by_email_fragment(auth_client, make_user):
    make_user("carol", email="carol@acme.test")
    make_user("dave", email="dave@acme.test")
    make_user("erin", email="erin@other.test")

    resp = auth_client.get(reverse("api_v1:user-list"), {"email": "ACME"})

    assert resp.status_code == HTTPStatus.OK
    assert [u["username"] for u in resp.json()] == ["carol", "dave"]


def test_search_is_capped(auth_client, make_user):
    for i in range(12):
        make_user(f"bulk{i}", email=f"bulk{i}@bulk.test")

    resp = auth_client.get(reverse("api_v1:user-list"), {"email": "bulk"})

    assert len(resp.json()) == 10


def test_search_requires_term(auth_client):
    resp = auth_client.get(reverse("api_v1:user-list"))

    assert resp.status_code == HTTPStatus.BAD_REQUEST
    assert "email" in resp.json()


def test_retrieve(auth_client, other_user):
    resp = auth_client.get(reverse("api_v1:user-detail", args=[other_user.pk]))

    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["username"] == "bob"


def test_anonymous_is_rejected(api_client):
    resp = api_client.get(reverse("api_v1:user-me"))

    assert resp.status_code == HTTPStatus.UNAUTHORIZED
