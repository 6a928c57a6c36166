"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.product_change import ProductChangeRow
from db.models.product_record import ProductRecordRow

__all__ = [
    "ProductChangeRow",
    "ProductRecordRow",
]
