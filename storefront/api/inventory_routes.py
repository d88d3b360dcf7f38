from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.repositories.inventory_repositories import InventoryRepository
from storefront.schemas.inventory_schemas import (
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
)
from storefront.security.security import require_admin, require_customer
from storefront.services.inventory_services import InventoryService

router = APIRouter(prefix="/inventory", tags=["inventory"])


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    return InventoryService(InventoryRepository(db))


@router.post(
    "/",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def add_item(item_in: InventoryItemCreate, svc: InventoryService = Depends(get_inventory_service)):
    return svc.add_item(item_in)


@router.get("/", response_model=List[InventoryItemResponse], dependencies=[Depends(require_customer)])
def list_items(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.list_items(skip=skip, limit=limit)


@router.get("/low-stock", response_model=List[InventoryItemResponse], dependencies=[Depends(require_admin)])
def list_low_stock(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.list_low_stock(skip=skip, limit=limit)


@router.get("/{item_id}", response_model=InventoryItemResponse, dependencies=[Depends(require_customer)])
def get_item(item_id: int, svc: InventoryService = Depends(get_inventory_service)):
    return svc.get_item(item_id)


@router.put("/{item_id}", response_model=InventoryItemResponse, dependencies=[Depends(require_admin)])
def update_item(
    item_id: int,
    item_in: InventoryItemUpdate,
    svc: InventoryService = Depends(get_inventory_service),
):
    return svc.update_item(item_id, item_in)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_item(item_id: int, svc: InventoryService = Depends(get_inventory_service)):
    svc.delete_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
