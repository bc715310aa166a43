"""Bearer credential verification for realtime connections."""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.utils import aware_utcnow
from rest_framework_simplejwt.utils import datetime_from_epoch

from .exceptions import AuthError

logger = logging.getLogger(__name__)

REASON_UNAUTHORIZED = "unauthorized"
# Frontend expects this exact string to trigger a token refresh.
REASON_EXPIRED = "jwt_expired"


def _has_expired(raw: str) -> bool:
    """True when ``raw`` decodes and its ``exp`` claim lies in the past."""
    try:
        payload = AccessToken(raw, verify=False).payload
    except TokenError:
        return False
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)):
        return False
    return datetime_from_epoch(exp) <= aware_utcnow()


class CredentialVerifier:
    """Turn an access token into the id of an active user, or raise AuthError."""

    def verify(self, token: str | None) -> int:
        if not isinstance(token, str) or not token.strip():
            raise AuthError("Authentication required", reason=REASON_UNAUTHORIZED)

        jwt_auth = JWTAuthentication()
        try:
            validated = jwt_auth.get_validated_token(token.strip())
            user = jwt_auth.get_user(validated)
        except (InvalidToken, TokenError) as exc:
            if _has_expired(token.strip()):
                raise AuthError("Token is expired", reason=REASON_EXPIRED) from exc
            raise AuthError("Invalid token", reason=REASON_UNAUTHORIZED) from exc
        except AuthenticationFailed as exc:  # user not found / inactive, etc.
            raise AuthError("Invalid token", reason=REASON_UNAUTHORIZED) from exc

        return int(user.pk)

    @database_sync_to_async
    def averify(self, token: str | None) -> int:
        return self.verify(token)
