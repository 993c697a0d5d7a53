"""Lottery catalogue routes."""

from __future__ import annotations

from flask import Blueprint

from bicho.lotteries import LOTTERIES
from bicho.utils.responses import ok

lotteries_bp = Blueprint("lotteries", __name__)


@lotteries_bp.get("/lotteries")
def list_lotteries():
    # Source URLs stay internal.
    return ok(
        [
            {
                "id": cfg.lottery_id.value,
                "name": cfg.display_name,
                "state": cfg.state,
                "schedule": list(cfg.schedule),
                "prizes": cfg.expected_prizes,
                "digits": cfg.digits,
            }
            for cfg in LOTTERIES.values()
        ]
    )
