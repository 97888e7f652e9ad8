"""Starter data for a fresh database.

Learn: `smartdine seed` runs this outside FastAPI, with its own engine:
1. Creates any missing tables from the ORM metadata
2. Adds the starter dishes whose names aren't on the menu yet

Running it twice adds nothing the second time.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from smartdine.db.models import Base
from smartdine.services.menu_service import MenuService

STARTER_MENU = [
    {
        "name": "Bruschetta",
        "description": "Toasted bread topped with fresh tomatoes, basil, and mozzarella",
        "price": 10.99,
        "category": "appetizer",
        "dietary": {"vegetarian": True, "glutenFree": False},
        "ingredients": ["Bread", "Tomatoes", "Basil", "Mozzarella", "Olive oil"],
        "popularity": 50,
    },
    {
        "name": "Chicken Wings",
        "description": "Spicy buffalo wings with blue cheese dip",
        "price": 13.99,
        "category": "appetizer",
        "dietary": {"spicy": True, "glutenFree": False},
        "ingredients": ["Chicken wings", "Buffalo sauce", "Blue cheese"],
        "popularity": 60,
    },
    {
        "name": "Caesar Salad",
        "description": "Romaine lettuce with Caesar dressing, parmesan, and croutons",
        "price": 12.99,
        "category": "salad",
        "dietary": {"vegetarian": True, "glutenFree": False},
        "ingredients": ["Romaine lettuce", "Caesar dressing", "Parmesan", "Croutons"],
        "popularity": 45,
    },
    {
        "name": "Tomato Basil Soup",
        "description": "Creamy tomato soup with fresh basil and a hint of garlic",
        "price": 8.99,
        "category": "soup",
        "dietary": {"vegetarian": True, "glutenFree": True},
        "ingredients": ["Tomatoes", "Basil", "Garlic", "Cream"],
        "popularity": 42,
    },
    {
        "name": "Grilled Salmon",
        "description": "Atlantic salmon grilled with lemon butter sauce",
        "price": 24.99,
        "category": "main-course",
        "dietary": {"glutenFree": True},
        "ingredients": ["Salmon", "Lemon", "Butter", "Herbs"],
        "popularity": 70,
    },
    {
        "name": "Margherita Pizza",
        "description": "Classic pizza with tomato sauce, fresh mozzarella, and basil",
        "price": 14.99,
        "category": "main-course",
        "dietary": {"vegetarian": True, "glutenFree": False},
        "ingredients": ["Pizza dough", "Tomato sauce", "Mozzarella", "Basil"],
        "popularity": 80,
    },
    {
        "name": "Garden Fresh Salad",
        "description": "Mixed greens, cherry tomatoes, cucumbers, and balsamic vinaigrette",
        "price": 11.99,
        "category": "salad",
        "dietary": {"vegan": True, "vegetarian": True, "glutenFree": True},
        "ingredients": ["Mixed greens", "Cherry tomatoes", "Cucumbers", "Balsamic"],
        "popularity": 38,
    },
    {
        "name": "Chocolate Lava Cake",
        "description": "Warm chocolate cake with a molten center and vanilla ice cream",
        "price": 8.99,
        "category": "dessert",
        "dietary": {"vegetarian": True, "glutenFree": False},
        "ingredients": ["Chocolate", "Flour", "Eggs", "Butter", "Vanilla ice cream"],
        "popularity": 85,
    },
    {
        "name": "Fresh Lemonade",
        "description": "Freshly squeezed lemonade with a hint of mint",
        "price": 4.99,
        "category": "beverage",
        "dietary": {"vegan": True, "vegetarian": True, "glutenFree": True},
        "ingredients": ["Lemons", "Sugar", "Water", "Mint"],
        "popularity": 55,
    },
]


async def seed_database(engine: AsyncEngine) -> int:
    """Create tables and add missing starter dishes. Returns how many were added."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        return await MenuService(session).add_missing(STARTER_MENU)
