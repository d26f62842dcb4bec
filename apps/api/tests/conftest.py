from __future__ import annotations

import jwt
import pytest
from pydantic import SecretStr

from callgate.core.config import settings

APP_ID = "970CA35de60c44645bbae8a215061b33"
APP_CERTIFICATE = "5CFd2fd1755d40ecb72977518be15d3b"


@pytest.fixture
def agora_credentials(monkeypatch):
    monkeypatch.setattr(settings, "agora_app_id", APP_ID)
    monkeypatch.setattr(settings, "agora_app_certificate", SecretStr(APP_CERTIFICATE))
    return APP_ID, APP_CERTIFICATE


@pytest.fixture
def no_agora_credentials(monkeypatch):
    monkeypatch.setattr(settings, "agora_app_id", "")
    monkeypatch.setattr(settings, "agora_app_certificate", SecretStr(""))


JWT_SECRET = "test-jwt-secret-with-at-least-32-bytes"


def make_bearer(claims: dict, secret: str = JWT_SECRET) -> dict[str, str]:
    return {"Authorization": f"Bearer {jwt.encode(claims, secret, algorithm='HS256')}"}


@pytest.fixture
def jwt_secret(monkeypatch):
    monkeypatch.setattr(settings, "jwt_secret", SecretStr(JWT_SECRET))
    monkeypatch.setattr(settings, "jwt_algorithm", "HS256")
    return JWT_SECRET


@pytest.fixture
def auth_headers(jwt_secret):
    return make_bearer({"userId": "user-1", "phoneNumber": "+900000000000"})


@pytest.fixture
def admin_headers(jwt_secret):
    return make_bearer({"userId": "admin-1", "isAdmin": True})
