"""Menu browsing — open to everyone, read-only.

Dishes are added with `smartdine seed`; there is no write API.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.db.engine import get_db
from smartdine.schemas.menu import MenuItemRead
from smartdine.services.menu_service import MenuService

router = APIRouter()


@router.get("/menu", response_model=list[MenuItemRead])
async def list_menu(
    category: Optional[str] = Query(None, max_length=30),
    include_unavailable: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    return await MenuService(db).list_menu(category, include_unavailable)


@router.get("/menu/{item_id}", response_model=MenuItemRead)
async def get_menu_item(item_id: int, db: AsyncSession = Depends(get_db)):
    item = await MenuService(db).get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item
