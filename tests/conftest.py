"""Shared fixtures for the report case tests."""
from __future__ import annotations

import os
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

# Ensure the database URL and JWT secret are available before importing application modules.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_reports.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from casting_reports.database import Base, SessionLocal, engine  # noqa: E402
from casting_reports.main import app  # noqa: E402
from casting_reports.models import (  # noqa: E402
    Notification,
    Report,
    ReportAdminNote,
    ReportCounter,
    ReportEvidence,
    ReportMessage,
    User,
)
from casting_reports.services import get_current_user  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(Notification))
        session.execute(delete(ReportMessage))
        session.execute(delete(ReportAdminNote))
        session.execute(delete(ReportEvidence))
        session.execute(delete(Report))
        session.execute(delete(ReportCounter))
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def user_factory() -> Callable[..., User]:
    def _factory(first_name: str, *, role: str = "talent", last_name: str = "Tester") -> User:
        with SessionLocal() as session:
            user = User(first_name=first_name, last_name=last_name, role=role)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user
    return _factory


@pytest.fixture
def authed_client() -> Iterator[Callable[[User], TestClient]]:
    with TestClient(app) as client:
        def _with_user(user: User) -> TestClient:
            def _override() -> User:
                return user
            app.dependency_overrides[get_current_user] = _override
            return client
        yield _with_user
    app.dependency_overrides.clear()


@pytest.fixture
def file_report(authed_client) -> Callable[..., dict]:
    """File a harassment report through the API and return the response body."""

    def _file(reporter: User, target: User | None = None, **fields: str) -> dict:
        data = {
            "report_type": "user" if target is not None else "system",
            "category": "harassment" if target is not None else "technical_issue",
            "title": "Abusive messages",
            "description": "Sent repeated abusive messages after an audition.",
        }
        if target is not None:
            data["target_id"] = str(target.id)
        data.update(fields)
        response = authed_client(reporter).post("/reports", data=data)
        assert response.status_code == 201, response.text
        return response.json()

    return _file
