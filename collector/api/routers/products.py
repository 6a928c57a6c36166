"""
collector/api/routers/products.py

Read and delete endpoints for collected products.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from collector.domain.products import ProductQuery
from collector.schemas.products import (
    ChangeHistoryResponse,
    ProductListResponse,
    ProductResponse,
    StoreStatsResponse,
)
from collector.services.collection_service import CollectionService, get_collection_service

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
def list_products(
    platform: str | None = Query(default=None),
    category: str | None = Query(default=None),
    name: str | None = Query(default=None, description="Case-insensitive name substring"),
    description: str | None = Query(default=None, description="Case-insensitive description substring"),
    search: str | None = Query(default=None, description="Substring of name or description"),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    sort_by: str | None = Query(default=None),
    order: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int | None = Query(default=None, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    collection_service: CollectionService = Depends(get_collection_service),
) -> ProductListResponse:
    query = ProductQuery(
        platform=platform,
        category=category,
        name_contains=name,
        description_contains=description,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        descending=order == "desc",
        limit=limit,
        offset=offset,
    )
    try:
        records = collection_service.store.query(query)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    items = [ProductResponse.from_record(record) for record in records]
    return ProductListResponse(items=items, count=len(items))


@router.get("/stats", response_model=StoreStatsResponse)
def product_stats(
    collection_service: CollectionService = Depends(get_collection_service),
) -> StoreStatsResponse:
    return StoreStatsResponse.from_stats(collection_service.store.stats())


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str,
    collection_service: CollectionService = Depends(get_collection_service),
) -> ProductResponse:
    record = collection_service.store.get(product_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product '{product_id}' not found.",
        )
    return ProductResponse.from_record(record)


@router.get("/{product_id}/history", response_model=list[ChangeHistoryResponse])
def product_history(
    product_id: str,
    collection_service: CollectionService = Depends(get_collection_service),
) -> list[ChangeHistoryResponse]:
    if collection_service.store.get(product_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product '{product_id}' not found.",
        )
    return [
        ChangeHistoryResponse.from_entry(entry)
        for entry in collection_service.store.history(product_id)
    ]


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    collection_service: CollectionService = Depends(get_collection_service),
) -> Response:
    if not collection_service.store.delete(product_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product '{product_id}' not found.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
