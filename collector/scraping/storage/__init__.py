"""
Storage layer exports.
"""

from collector.scraping.storage.base import ResultStore
from collector.scraping.storage.sqlalchemy_storage import SQLAlchemyResultStore

__all__ = ["ResultStore", "SQLAlchemyResultStore"]
