"""Overdue analysis and suggestion routes. No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from bicho.db import get_optional_session
from bicho.errors import NotFoundError
from bicho.lotteries import LotteryId, parse_lottery_id
from bicho.schemas.overdue import OverdueQuerySchema, OverdueRecordSchema, SuggestionQuerySchema
from bicho.services.overdue_service import OverdueService, Taxonomy
from bicho.services.suggestion_service import SuggestionService
from bicho.utils.responses import ok

overdue_bp = Blueprint("overdue", __name__)

_service = OverdueService()
_suggestions = SuggestionService(overdue_service=_service)
_query_schema = OverdueQuerySchema()
_suggestion_query_schema = SuggestionQuerySchema()
_record_schema = OverdueRecordSchema(many=True)


def _lottery_or_404(raw: str) -> LotteryId:
    try:
        return parse_lottery_id(raw)
    except ValueError as exc:
        raise NotFoundError(str(exc)) from exc


def _min_draws(value: int | None) -> int:
    if value is None:
        return int(current_app.config.get("OVERDUE_MIN_DRAWS", 10))
    return int(value)


@overdue_bp.get("/overdue/<lottery_id>")
def get_overdue(lottery_id: str):
    """Ranked overdue values per taxonomy.

    Query: min_draws (default OVERDUE_MIN_DRAWS), top (default 20).
    """

    lid = _lottery_or_404(lottery_id)
    args = _query_schema.load(request.args.to_dict())
    top = int(args["top"])

    report = _service.overdue(lid, min_draws=_min_draws(args.get("min_draws")), session=get_optional_session())

    return ok(
        {
            "lottery_id": report.lottery_id,
            "total_draws": report.total_draws,
            "min_draws": report.min_draws,
            "dezenas": _record_schema.dump(report.top(Taxonomy.DEZENA, top)),
            "centenas": _record_schema.dump(report.top(Taxonomy.CENTENA, top)),
            "milhares": _record_schema.dump(report.top(Taxonomy.MILHAR, top)),
            "animais": _record_schema.dump(report.top(Taxonomy.ANIMAL, top)),
            "counts": {t.value: len(report[t]) for t in Taxonomy},
        }
    )


@overdue_bp.get("/suggestions/<lottery_id>")
def get_suggestions(lottery_id: str):
    lid = _lottery_or_404(lottery_id)
    args = _suggestion_query_schema.load(request.args.to_dict())

    suggestions = _suggestions.for_lottery(
        lid.value,
        mode=str(args["mode"]),
        per_taxonomy=int(args["count"]),
        min_draws=_min_draws(args.get("min_draws")),
        session=get_optional_session(),
    )
    return ok(suggestions.as_dict())
