from __future__ import annotations

import pytest

from bicho import create_app
from bicho.db import create_session_factory
from bicho.repositories.draw_result_repository import DrawResultRepository


@pytest.fixture
def session_factory(tmp_path):
    return create_session_factory(f"sqlite:///{tmp_path / 'draws.db'}")


@pytest.fixture
def repo(session_factory):
    return DrawResultRepository(session_factory, backend="sql")


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "DB_BACKEND": "sql",
            "DATABASE_URL": f"sqlite:///{tmp_path / 'api.db'}",
            "OVERDUE_MIN_DRAWS": 0,
            "PROXY_LIST": (),
            "PROXY_ROTATION_ENABLED": False,
        }
    )
    yield app
    app.extensions["engine"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()
