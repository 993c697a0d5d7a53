"""Schemas for overdue analysis and suggestions."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from bicho.services.overdue_service import NEVER
from bicho.services.suggestion_service import MAX_PER_TAXONOMY, SUGGESTION_MODES


class OverdueQuerySchema(Schema):
    min_draws = fields.Integer(required=False, load_default=None, validate=validate.Range(min=0))
    top = fields.Integer(required=False, load_default=20, validate=validate.Range(min=1, max=10000))


class OverdueRecordSchema(Schema):
    value = fields.String()
    group = fields.Integer(allow_none=True)
    draws_since_last_seen = fields.Integer()
    last_seen = fields.Method("get_last_seen")
    last_position = fields.Integer(allow_none=True)

    def get_last_seen(self, obj):  # type: ignore[no-untyped-def]
        return obj.last_seen_date.isoformat() if obj.last_seen_date else NEVER


class SuggestionQuerySchema(Schema):
    mode = fields.String(required=False, load_default="overdue", validate=validate.OneOf(SUGGESTION_MODES))
    count = fields.Integer(required=False, load_default=5, validate=validate.Range(min=1, max=MAX_PER_TAXONOMY))
    min_draws = fields.Integer(required=False, load_default=None, validate=validate.Range(min=0))
