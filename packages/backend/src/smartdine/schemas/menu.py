"""Pydantic schemas for menu items (read-only; dishes come from `smartdine seed`)."""

from pydantic import BaseModel


class MenuItemRead(BaseModel):
    id: int
    name: str
    description: str
    price: float
    category: str
    ingredients: list[str]
    dietary: dict[str, bool]
    available: bool
    popularity: int

    model_config = {"from_attributes": True}
