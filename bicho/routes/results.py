"""Draw results API."""

from __future__ import annotations

from flask import Blueprint, request

from bicho.db import get_optional_session
from bicho.errors import NotFoundError
from bicho.lotteries import parse_lottery_id
from bicho.repositories.draw_result_repository import DrawResultRepository
from bicho.schemas.draw_result import DrawResultSchema, ResultsQuerySchema
from bicho.utils.responses import ok

results_bp = Blueprint("results", __name__)

_repo = DrawResultRepository()
_query_schema = ResultsQuerySchema()
_schema = DrawResultSchema(many=True)


@results_bp.get("/results")
def list_results():
    args = _query_schema.load(request.args.to_dict())

    lottery_id = None
    if args.get("lottery"):
        try:
            lottery_id = parse_lottery_id(args["lottery"])
        except ValueError as exc:
            raise NotFoundError(str(exc)) from exc

    session = get_optional_session()
    limit = int(args["limit"])
    records = _repo.list_recent(lottery_id, limit=limit, session=session)
    return ok(_schema.dump(records), meta={"count": len(records), "limit": limit})
