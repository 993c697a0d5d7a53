"""Manual scrape trigger."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from bicho.repositories.draw_result_repository import repository_for_app
from bicho.schemas.scrape import ScrapeRequestSchema
from bicho.services.scrape_service import ScrapeRunService
from bicho.utils.responses import ok

scrape_bp = Blueprint("scrape", __name__)

_request_schema = ScrapeRequestSchema()


@scrape_bp.post("/scrape")
def trigger_scrape():
    payload = request.get_json(silent=True) or {}
    data = _request_schema.load(payload)

    service = ScrapeRunService.from_config(
        current_app.config,
        repository_for_app(),
        fetcher=current_app.extensions.get("scrape_fetcher"),
    )
    report = service.run(data.get("lotteries"), target_date=data.get("date"))
    return ok(report.as_dict())
