"""
认证服务测试
"""
from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

from deepwriting.core.exceptions import AuthenticationError, EmailAlreadyRegisteredError
from deepwriting.core.security import hash_password, verify_password
from deepwriting.models import UserSession
from deepwriting.services.auth_service import AuthService


def test_password_hash_round_trip():
    password_hash = hash_password("secret123")

    assert password_hash.startswith("$2b$")
    assert verify_password("secret123", password_hash)
    assert not verify_password("secret124", password_hash)
    assert hash_password("secret123") != password_hash


def test_verify_rejects_malformed_hash():
    assert not verify_password("secret123", "plain-text")
    assert not verify_password("secret123", "$2b$12$short")


def test_register_login_and_resolve(test_db):
    service = AuthService(db_engine=test_db)
    user = service.register("writer@example.com", "secret123")

    token, logged_in = service.login("writer@example.com", "secret123")

    assert logged_in == user
    assert service.resolve_session(token) == user["id"]
    assert service.get_user(user["id"])["email"] == "writer@example.com"


def test_register_duplicate(test_db):
    service = AuthService(db_engine=test_db)
    service.register("dup@example.com", "secret123")

    with pytest.raises(EmailAlreadyRegisteredError):
        service.register("dup@example.com", "another1")


def test_login_unknown_email(test_db):
    with pytest.raises(AuthenticationError):
        AuthService(db_engine=test_db).login("ghost@example.com", "secret123")


def test_expired_session_is_removed(test_db):
    service = AuthService(db_engine=test_db)
    user = service.register("old@example.com", "secret123")
    with Session(test_db) as session:
        session.add(UserSession(
            token="expired",
            user_id=user["id"],
            created_at=datetime.now() - timedelta(days=30),
            expires_at=datetime.now() - timedelta(days=1),
        ))
        session.commit()

    assert service.resolve_session("expired") is None
    with Session(test_db) as session:
        assert session.get(UserSession, "expired") is None


def test_logout_revokes_session(test_db):
    service = AuthService(db_engine=test_db)
    service.register("bye@example.com", "secret123")
    token, _ = service.login("bye@example.com", "secret123")

    service.logout(token)

    assert service.resolve_session(token) is None
    assert service.resolve_session(None) is None
