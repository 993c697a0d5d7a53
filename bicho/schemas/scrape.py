"""Schemas for manually triggered scrape runs."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validates

from bicho.lotteries import parse_lottery_id


class ScrapeRequestSchema(Schema):
    lotteries = fields.List(fields.String(), required=False, load_default=None)
    date = fields.Date(required=False, load_default=None)

    @validates("lotteries")
    def _validate_lotteries(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if value is None:
            return
        unknown = []
        for raw in value:
            try:
                parse_lottery_id(raw)
            except ValueError:
                unknown.append(raw)
        if unknown:
            raise ValidationError(f"Unknown lotteries: {', '.join(unknown)}")
