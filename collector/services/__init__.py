"""
collector/services package marker.
"""

from collector.services.collection_service import CollectionService, get_collection_service

__all__ = [
    "CollectionService",
    "get_collection_service",
]
