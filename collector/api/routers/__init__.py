"""
collector/api/routers package marker.
"""

from collector.api.routers.collection import router as collection_router
from collector.api.routers.products import router as products_router

__all__ = [
    "collection_router",
    "products_router",
]
