"""Health check routes."""

from __future__ import annotations

from flask import Blueprint

from bicho.db import get_db_backend, get_optional_session
from bicho.errors import StoreUnavailableError
from bicho.repositories.draw_result_repository import DrawResultRepository
from bicho.utils.responses import ok

health_bp = Blueprint("health", __name__)

_repo = DrawResultRepository()


@health_bp.get("/health")
def health_check():
    """Health check endpoint; reports the draw store status too."""

    try:
        draws = _repo.count(session=get_optional_session())
        store = "ok"
    except StoreUnavailableError:
        draws = None
        store = "unavailable"

    return ok({"status": "ok", "backend": get_db_backend(), "store": store, "draws": draws})
