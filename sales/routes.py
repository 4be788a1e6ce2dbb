from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFound
from sales import crud
from sales.schemas import SaleCreate, SaleResponse
from users.dependencies import get_current_user
from users.models import User

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.get("")
async def list_sales(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    sales = await crud.get_all_sales(db, owner=user, skip=skip, limit=limit)
    return {"data": [SaleResponse.from_sale(sale) for sale in sales]}


@router.get("/{sale_id}")
async def show_sale(sale_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    sale = await crud.get_sale(db, sale_id, owner=user)
    if sale is None:
        raise NotFound("Sale not found")
    return {"data": SaleResponse.from_sale(sale)}


@router.post("", status_code=201)
async def create_sale(
    payload: SaleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    sale = await crud.create_sale(db, payload, owner=user)
    return {"message": "Sale created successfully", "data": SaleResponse.from_sale(sale)}


@router.api_route("/{sale_id}", methods=["PUT", "PATCH"])
async def update_sale(
    sale_id: int,
    payload: SaleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    sale = await crud.update_sale(db, sale_id, payload, owner=user)
    return {"message": "Sale updated successfully", "data": SaleResponse.from_sale(sale)}


@router.delete("/{sale_id}")
async def delete_sale(sale_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await crud.delete_sale(db, sale_id, owner=user)
    return {"message": "Sale deleted successfully"}
