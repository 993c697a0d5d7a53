"""Schemas for draw result listings."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from bicho.animals import DEFAULT_ANIMALS

# Upstream providers are never revealed to API callers.
MASKED_SOURCE = "sistema"


class PrizeSchema(Schema):
    position = fields.Integer()
    value = fields.String()
    group = fields.String()
    animal = fields.String()


class DrawResultSchema(Schema):
    lottery_id = fields.String()
    draw_date = fields.Date()
    prizes = fields.Method("get_prizes")
    source = fields.Method("get_source")

    def get_prizes(self, obj):  # type: ignore[no-untyped-def]
        return PrizeSchema(many=True).dump(
            [
                {
                    "position": p.position,
                    "value": p.value,
                    "group": p.animal.group_label,
                    "animal": p.animal.name,
                }
                for p in obj.details(DEFAULT_ANIMALS)
            ]
        )

    def get_source(self, obj):  # type: ignore[no-untyped-def]
        return MASKED_SOURCE


class ResultsQuerySchema(Schema):
    lottery = fields.String(required=False, load_default=None)
    limit = fields.Integer(required=False, load_default=20, validate=validate.Range(min=1, max=500))
