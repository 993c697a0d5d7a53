"""ORM models."""

from bicho.models.draw_result import DrawResult

__all__ = ["DrawResult"]
